# travelog/api/services/planner_service.py
"""Pipeline configurations for every AI endpoint, plus request parsing.

Each endpoint is one :class:`PipelineConfig`: which prompt it builds, how
the extracted JSON is decoded, and which optional steps run after it.
"""

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List

from travelog.api.errors import MalformedModelOutput, ValidationError
from travelog.api.geocoding import enrich_destinations
from travelog.api.models import (
    AccommodationRequest,
    ActivitySuggestionRequest,
    ContactExtractionRequest,
    DestinationQuery,
    DestinationSuggestion,
    EmergencyContact,
    FinalItineraryRequest,
    Itinerary,
    RouteRequest,
    TripDetails,
    TripRequest,
    as_dict,
    as_int,
    as_list,
    as_str,
    decode_activities,
    normalize_activity_type,
    normalize_days,
    parse_date,
)
from travelog.api.pipeline import ITINERARY_MODEL, PipelineConfig
from travelog.api.prompts import (
    ITINERARY_SYSTEM_PROMPT,
    build_accommodation_prompt,
    build_activity_prompt,
    build_contacts_prompt,
    build_contacts_system_prompt,
    build_destination_prompt,
    build_final_itinerary_prompt,
    build_options_prompt,
    build_route_prompt,
)
from travelog.api.services.itinerary_service import ItineraryService, SaveResult
from travelog.api.services.trip_service import TripService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Request parsing
# ---------------------------------------------------------------------------

def _require(data: Dict[str, Any], *names: str) -> None:
    missing = [name for name in names if not as_str(data.get(name))]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")


def parse_activity_request(data: Any) -> ActivitySuggestionRequest:
    data = as_dict(data)
    _require(data, "destination", "date")
    context = as_dict(data.get("context"))
    trip = TripRequest.from_json(context, destination=as_str(data.get("destination")))
    return ActivitySuggestionRequest(
        destination=trip.destination,
        date=as_str(data.get("date")),
        day_number=as_int(context.get("dayNumber")),
        total_days=as_int(context.get("totalDays")),
        trip_name=as_str(context.get("tripName")),
        interests=trip.interests,
        budget=trip.budget,
    )


def parse_destination_query(data: Any) -> DestinationQuery:
    data = as_dict(data)
    _require(data, "query")
    context = as_dict(data.get("context"))
    return DestinationQuery(
        query=as_str(data.get("query")),
        trip=TripRequest.from_json(context),
        trip_name=as_str(context.get("tripName")),
    )


def parse_accommodation_request(data: Any) -> AccommodationRequest:
    data = as_dict(data)
    _require(data, "destination", "checkIn", "checkOut")
    context = as_dict(data.get("context"))
    return AccommodationRequest(
        trip=TripRequest.from_json(context, destination=as_str(data.get("destination"))),
        check_in=as_str(data.get("checkIn")),
        check_out=as_str(data.get("checkOut")),
    )


def parse_route_request(data: Any) -> RouteRequest:
    data = as_dict(data)
    destinations = []
    for item in as_list(data.get("destinations")):
        name = as_str(as_dict(item).get("name")) if isinstance(item, dict) else as_str(item)
        if name:
            destinations.append(name)
    if not destinations:
        raise ValidationError("Missing required fields: destinations")
    return RouteRequest(
        destinations=destinations,
        trip=TripRequest.from_json(data.get("context"), destination=destinations[0]),
    )


def parse_trip_details(data: Any) -> TripDetails:
    """Validate a ``tripDetails`` payload from the itinerary planner."""
    data = as_dict(data)
    if not all(as_str(data.get(k)) for k in ("title", "startDate", "endDate", "mainDestination")):
        raise ValidationError("Missing required trip details")
    start, end = parse_date(data.get("startDate")), parse_date(data.get("endDate"))
    if start is None or end is None:
        raise ValidationError("Invalid date format provided")
    if end < start:
        start, end = end, start
    main = as_str(data.get("mainDestination"))
    destinations = [main]
    for item in as_list(data.get("allDestinations")):
        name = as_str(as_dict(item).get("name")) if isinstance(item, dict) else as_str(item)
        if name and name not in destinations:
            destinations.append(name)
    interests = data.get("interests")
    if isinstance(interests, list):
        interests = ", ".join(s for s in (as_str(v) for v in interests) if s)
    return TripDetails(
        title=as_str(data.get("title")),
        start_date=start,
        end_date=end,
        main_destination=main,
        all_destinations=destinations,
        budget=as_str(data.get("budget")),
        interests=as_str(interests),
    )


def parse_final_request(data: Any) -> FinalItineraryRequest:
    data = as_dict(data)
    details = parse_trip_details(data.get("tripDetails"))
    activities = decode_activities(data.get("selectedActivities"))
    if not activities:
        raise ValidationError("No activities selected")
    return FinalItineraryRequest(details=details, selected_activities=activities)


# ---------------------------------------------------------------------------
# Decoders
# ---------------------------------------------------------------------------

def _require_object(raw: Any, what: str) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise MalformedModelOutput(f"Expected a JSON object for {what}")
    return raw


def decode_activity_suggestions(raw: Any, request: ActivitySuggestionRequest) -> Dict[str, Any]:
    data = _require_object(raw, "activity suggestions")
    return {
        "activities": [a.to_dict() for a in decode_activities(data.get("activities"))],
        "dayOverview": as_str(data.get("dayOverview"), "") or "",
        "localTips": [s for s in (as_str(t) for t in as_list(data.get("localTips"))) if s],
        "transportation": as_str(data.get("transportation"), "") or "",
    }


def decode_destination_suggestions(raw: Any, request: DestinationQuery) -> List[DestinationSuggestion]:
    items = raw if isinstance(raw, list) else _require_object(raw, "destinations").get("destinations")
    return [d for d in (DestinationSuggestion.from_json(v) for v in as_list(items)) if d]


def decode_passthrough(raw: Any, request: Any) -> Dict[str, Any]:
    return _require_object(raw, "recommendations")


def _decode_option_day(raw: Any, option_index: int, position: int) -> Dict[str, Any]:
    day = as_dict(raw)
    number = as_int(day.get("dayNumber")) or as_int(day.get("day")) or position
    activities = []
    for index, act in enumerate(as_list(day.get("activities")), 1):
        act = as_dict(act)
        location = act.get("location")
        if isinstance(location, dict):
            location = location.get("name")
        activities.append({
            "id": as_str(act.get("id")) or f"activity-{option_index}-{number}-{index}",
            "title": as_str(act.get("title")) or as_str(act.get("name")) or "Activity",
            "description": as_str(act.get("description"), "") or "",
            "type": normalize_activity_type(act.get("type")),
            "location": as_str(location) or "Location not specified",
            "duration": as_str(act.get("duration")) or "1-2 hours",
            "cost": as_str(act.get("cost")) or "$",
            "dayNumber": number,
        })
    meals = day.get("meals")
    return {
        "dayNumber": number,
        "title": as_str(day.get("title")) or f"Day {number}",
        "description": as_str(day.get("description")) or "Activities for the day",
        "activities": activities,
        "meals": meals if isinstance(meals, (list, dict)) else [],
    }


def _find_options(data: Any) -> List[Any]:
    if isinstance(data, list):
        return data
    data = as_dict(data)
    for key in ("itineraryOptions", "options", "itineraries", "plans"):
        if isinstance(data.get(key), list):
            if key != "itineraryOptions":
                logger.warning(f"Found options under '{key}', adapting format")
            return data[key]
    final = data.get("finalItinerary")
    if isinstance(final, dict):
        logger.warning("Found finalItinerary instead of itineraryOptions, adapting format")
        return [{
            "id": "option-1",
            "title": final.get("title") or "Recommended Itinerary",
            "description": final.get("description") or "Custom itinerary for your trip",
            "days": final.get("days") or [],
        }]
    raise MalformedModelOutput("Invalid response format: could not locate itinerary options")


def decode_itinerary_options(raw: Any, details: TripDetails) -> List[Dict[str, Any]]:
    options = []
    for index, option in enumerate(_find_options(raw), 1):
        option = as_dict(option)
        if not isinstance(option.get("days"), list):
            continue
        highlights = [s for s in (as_str(h) for h in as_list(option.get("highlights"))) if s]
        options.append({
            "id": as_str(option.get("id")) or f"option-{index}",
            "title": as_str(option.get("title")) or "Itinerary Option",
            "description": as_str(option.get("description")) or "Custom itinerary for your trip",
            "highlights": highlights or ["Custom itinerary based on your preferences"],
            "days": [_decode_option_day(d, index, pos) for pos, d in enumerate(option["days"], 1)],
        })
    if not options:
        raise MalformedModelOutput("No itinerary options generated")
    return options


def decode_final_itinerary(raw: Any, request: FinalItineraryRequest) -> Itinerary:
    data = as_dict(raw)
    final = data.get("finalItinerary")
    if not isinstance(final, dict):
        options = as_list(data.get("itineraryOptions"))
        if options and isinstance(options[0], dict):
            logger.warning("Received itineraryOptions instead of finalItinerary, adapting the first option")
            final = options[0]
        elif isinstance(raw, dict) and isinstance(raw.get("days"), list):
            final = raw
        else:
            raise MalformedModelOutput("Invalid response format: finalItinerary not found")

    itinerary = Itinerary.from_json(final)
    if not itinerary.days:
        raise MalformedModelOutput("Invalid finalItinerary structure: no days")

    details = request.details
    if not itinerary.title:
        itinerary.title = details.title or f"Your Trip to {details.main_destination}"
    if not itinerary.description:
        itinerary.description = f"A {details.duration}-day itinerary for {details.main_destination}"
    itinerary.days = normalize_days(itinerary.days, details.start_date, details.end_date)
    return itinerary


def decode_emergency_contacts(raw: Any, request: ContactExtractionRequest) -> List[EmergencyContact]:
    items = raw if isinstance(raw, list) else as_dict(raw).get("contacts")
    if not isinstance(items, list):
        raise MalformedModelOutput("Expected a list of contacts")
    return [c for c in (EmergencyContact.from_json(v) for v in items) if c]


# ---------------------------------------------------------------------------
# Enrichment and persistence hooks
# ---------------------------------------------------------------------------

def enrich_destination_suggestions(result: List[DestinationSuggestion], geocoder) -> List[DestinationSuggestion]:
    return enrich_destinations(result, geocoder)


@dataclass
class PersistContext:
    """Where a pipeline result is saved."""

    db: Any
    trip_id: str
    user_id: str


@dataclass
class SavedItinerary:
    itinerary: Itinerary
    saved: SaveResult


def persist_itinerary(result: Itinerary, request: FinalItineraryRequest, context: PersistContext) -> SavedItinerary:
    saved = ItineraryService.save_itinerary(context.db, context.trip_id, context.user_id, result)
    return SavedItinerary(itinerary=result, saved=saved)


@dataclass
class SavedContacts:
    contacts: List[EmergencyContact]
    added: List[Dict[str, Any]]


def persist_contacts(result: List[EmergencyContact], request: ContactExtractionRequest,
                     context: PersistContext) -> SavedContacts:
    added = TripService.save_contacts(context.db, context.trip_id, context.user_id, result)
    return SavedContacts(contacts=result, added=added)


# ---------------------------------------------------------------------------
# Endpoint configurations
# ---------------------------------------------------------------------------

def _itinerary_system_prompt(request: Any) -> str:
    return ITINERARY_SYSTEM_PROMPT


ACTIVITY_SUGGESTIONS = PipelineConfig(
    name="activity-suggestions",
    build_prompt=build_activity_prompt,
    decode=decode_activity_suggestions,
    failure_message="Failed to generate activity suggestions",
)

DESTINATION_SUGGESTIONS = PipelineConfig(
    name="destination-suggestions",
    build_prompt=build_destination_prompt,
    decode=decode_destination_suggestions,
    failure_message="Failed to generate destination suggestions",
    enrich=enrich_destination_suggestions,
)

ACCOMMODATION_RECOMMENDATIONS = PipelineConfig(
    name="accommodation-recommendations",
    build_prompt=build_accommodation_prompt,
    decode=decode_passthrough,
    failure_message="Failed to generate accommodation recommendations",
)

TRAVEL_OPTIMIZATIONS = PipelineConfig(
    name="travel-optimizations",
    build_prompt=build_route_prompt,
    decode=decode_passthrough,
    failure_message="Failed to generate travel optimizations",
)

ITINERARY_OPTIONS = PipelineConfig(
    name="itinerary-options",
    build_prompt=build_options_prompt,
    decode=decode_itinerary_options,
    failure_message="Failed to generate itinerary options",
    system_prompt=_itinerary_system_prompt,
    model_role=ITINERARY_MODEL,
    max_tokens=8192,
    json_mode=True,
)

FINAL_ITINERARY = PipelineConfig(
    name="final-itinerary",
    build_prompt=build_final_itinerary_prompt,
    decode=decode_final_itinerary,
    failure_message="Failed to generate final itinerary",
    system_prompt=_itinerary_system_prompt,
    model_role=ITINERARY_MODEL,
    max_tokens=8192,
    json_mode=True,
)

TRIP_ITINERARY = replace(
    FINAL_ITINERARY,
    name="trip-itinerary",
    persist=persist_itinerary,
)

EMERGENCY_CONTACTS = PipelineConfig(
    name="emergency-contacts",
    build_prompt=build_contacts_prompt,
    decode=decode_emergency_contacts,
    failure_message="Failed to extract emergency contacts",
    system_prompt=build_contacts_system_prompt,
    temperature=0.1,
    max_tokens=1000,
    persist=persist_contacts,
)


__all__ = [
    "ACTIVITY_SUGGESTIONS",
    "DESTINATION_SUGGESTIONS",
    "ACCOMMODATION_RECOMMENDATIONS",
    "TRAVEL_OPTIMIZATIONS",
    "ITINERARY_OPTIONS",
    "FINAL_ITINERARY",
    "TRIP_ITINERARY",
    "EMERGENCY_CONTACTS",
    "PersistContext",
    "SavedItinerary",
    "SavedContacts",
    "parse_activity_request",
    "parse_destination_query",
    "parse_accommodation_request",
    "parse_route_request",
    "parse_trip_details",
    "parse_final_request",
]
