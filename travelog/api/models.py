"""Shared data structures for trip planning.

Model output is untrusted JSON. Every ``from_json`` here is total: it
accepts any value, never raises, and turns absent or mistyped fields into
``None`` or an empty default so callers can treat missing data as a normal
state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Dict, List, Optional


# ---------------------------------------------------------------------------
# Decoding helpers
# ---------------------------------------------------------------------------

def as_str(value: Any, default: Optional[str] = None) -> Optional[str]:
    """Return ``value`` as a stripped string, or ``default``."""
    if isinstance(value, str):
        value = value.strip()
        return value or default
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return default


def as_int(value: Any, default: Optional[int] = None) -> Optional[int]:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def as_list(value: Any) -> List[Any]:
    return list(value) if isinstance(value, list) else []


def as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def as_str_list(value: Any) -> List[str]:
    return [s for s in (as_str(v) for v in as_list(value)) if s]


def parse_date(value: Any) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` (or an ISO timestamp) into a date."""
    text = as_str(value)
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def trip_duration(start: date, end: date) -> int:
    """Inclusive number of days between two dates, at least 1."""
    return max(1, (end - start).days + 1)


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------

@dataclass
class TripRequest:
    """Transient description of the trip a prompt is built for."""

    destination: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    budget: Optional[str] = None
    travel_style: Optional[str] = None
    interests: List[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Any, destination: Optional[str] = None) -> "TripRequest":
        data = as_dict(data)
        return cls(
            destination=destination or as_str(data.get("destination"), "") or "",
            start_date=as_str(data.get("startDate")),
            end_date=as_str(data.get("endDate")),
            budget=as_str(data.get("budget")),
            travel_style=as_str(data.get("travelStyle")),
            interests=as_str_list(data.get("interests")),
        )


@dataclass
class ActivitySuggestionRequest:
    destination: str
    date: str
    day_number: Optional[int] = None
    total_days: Optional[int] = None
    trip_name: Optional[str] = None
    interests: List[str] = field(default_factory=list)
    budget: Optional[str] = None


@dataclass
class DestinationQuery:
    query: str
    trip: TripRequest
    trip_name: Optional[str] = None


@dataclass
class AccommodationRequest:
    trip: TripRequest
    check_in: str
    check_out: str


@dataclass
class RouteRequest:
    destinations: List[str]
    trip: TripRequest


@dataclass
class TripDetails:
    """Trip description used by the itinerary option/final generators."""

    title: str
    start_date: date
    end_date: date
    main_destination: str
    all_destinations: List[str] = field(default_factory=list)
    budget: Optional[str] = None
    interests: Optional[str] = None

    @property
    def duration(self) -> int:
        return trip_duration(self.start_date, self.end_date)

    @property
    def other_destinations(self) -> List[str]:
        return [d for d in self.all_destinations if d != self.main_destination]

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "title": self.title,
            "startDate": self.start_date.isoformat(),
            "endDate": self.end_date.isoformat(),
            "duration": self.duration,
            "mainDestination": self.main_destination,
            "allDestinations": list(self.all_destinations),
            "budget": self.budget,
            "interests": self.interests,
        })


@dataclass
class FinalItineraryRequest:
    details: TripDetails
    selected_activities: List["ActivityOption"]


@dataclass
class ContactExtractionRequest:
    destination: str
    accommodations: List[Dict[str, Any]]
    transport: List[Dict[str, Any]]


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

ACTIVITY_TYPES = ("sightseeing", "adventure", "relaxation", "cultural", "culinary", "other")


def normalize_activity_type(value: Any) -> str:
    """Map a model-provided activity type onto the fixed vocabulary."""
    text = (as_str(value) or "").lower()
    return text if text in ACTIVITY_TYPES else "other"


@dataclass(frozen=True)
class ActivityOption:
    """A single suggested activity. Immutable once decoded."""

    name: str
    description: str = ""
    duration: Optional[str] = None
    best_time: Optional[str] = None
    estimated_cost: Optional[str] = None
    category: Optional[str] = None
    reasoning: Optional[str] = None
    location: Optional[str] = None
    day_number: Optional[int] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["ActivityOption"]:
        data = as_dict(data)
        name = as_str(data.get("name")) or as_str(data.get("title"))
        if not name:
            return None
        location = data.get("location")
        if isinstance(location, dict):
            location = location.get("name")
        return cls(
            name=name,
            description=as_str(data.get("description"), "") or "",
            duration=as_str(data.get("duration")),
            best_time=as_str(data.get("bestTime")),
            estimated_cost=as_str(data.get("estimatedCost")) or as_str(data.get("cost")),
            category=as_str(data.get("category")) or as_str(data.get("type")),
            reasoning=as_str(data.get("reasoning")),
            location=as_str(location),
            day_number=as_int(data.get("dayNumber")),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "description": self.description,
            "duration": self.duration,
            "bestTime": self.best_time,
            "estimatedCost": self.estimated_cost,
            "category": self.category,
        }
        data.update(_drop_none({
            "reasoning": self.reasoning,
            "location": self.location,
            "dayNumber": self.day_number,
        }))
        return data


def decode_activities(value: Any) -> List[ActivityOption]:
    return [a for a in (ActivityOption.from_json(v) for v in as_list(value)) if a]


@dataclass
class Meal:
    name: str
    location: Optional[str] = None
    description: Optional[str] = None
    place_id: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["Meal"]:
        if isinstance(data, str):
            return cls(name=data) if data.strip() else None
        data = as_dict(data)
        name = as_str(data.get("name"))
        if not name:
            return None
        return cls(
            name=name,
            location=as_str(data.get("location")),
            description=as_str(data.get("description")),
            place_id=as_str(data.get("placeId")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "location": self.location,
            "description": self.description,
            "placeId": self.place_id,
        })


MEAL_TYPES = ("breakfast", "lunch", "dinner")


@dataclass
class ScheduledActivity:
    """An activity placed on a concrete itinerary day."""

    title: str
    description: str = ""
    type: str = "other"
    location_name: str = ""
    address: Optional[str] = None
    place_id: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[str] = None
    map_url: Optional[str] = None
    image_url: Optional[str] = None
    cost: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["ScheduledActivity"]:
        if isinstance(data, str):
            return cls(title=data) if data.strip() else None
        data = as_dict(data)
        title = as_str(data.get("title")) or as_str(data.get("name"))
        if not title:
            return None
        location = data.get("location")
        if isinstance(location, dict):
            coords = as_dict(location.get("coordinates"))
            location_name = as_str(location.get("name"), "") or ""
            address = as_str(location.get("address"))
            place_id = as_str(location.get("placeId"))
        else:
            coords = {}
            location_name = as_str(location, "") or ""
            address = place_id = None
        return cls(
            title=title,
            description=as_str(data.get("description"), "") or "",
            type=as_str(data.get("type"), "other") or "other",
            location_name=location_name,
            address=address,
            place_id=place_id,
            lat=as_float(coords.get("lat")),
            lng=as_float(coords.get("lng")),
            start_time=as_str(data.get("startTime")),
            end_time=as_str(data.get("endTime")),
            duration=as_str(data.get("duration")),
            map_url=as_str(data.get("mapUrl")),
            image_url=as_str(data.get("imageUrl")),
            cost=as_str(data.get("cost")),
            notes=as_str(data.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        location = _drop_none({
            "name": self.location_name,
            "address": self.address,
            "placeId": self.place_id,
        })
        if self.lat is not None and self.lng is not None:
            location["coordinates"] = {"lat": self.lat, "lng": self.lng}
        return _drop_none({
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "location": location,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "mapUrl": self.map_url,
            "imageUrl": self.image_url,
            "cost": self.cost,
            "notes": self.notes,
        })


@dataclass
class ItineraryDay:
    """One day of an itinerary. ``day_number`` is 1-based."""

    day_number: int
    date: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    activities: List[ScheduledActivity] = field(default_factory=list)
    accommodation: Optional[str] = None
    notes: Optional[str] = None
    meals: Dict[str, Meal] = field(default_factory=dict)

    @classmethod
    def from_json(cls, data: Any, position: int = 1) -> Optional["ItineraryDay"]:
        if not isinstance(data, dict):
            return None
        meals = {}
        raw_meals = data.get("meals")
        if isinstance(raw_meals, dict):
            for meal_type in MEAL_TYPES:
                meal = Meal.from_json(raw_meals.get(meal_type))
                if meal:
                    meals[meal_type] = meal
        return cls(
            day_number=as_int(data.get("dayNumber"), None) or as_int(data.get("day"), position) or position,
            date=as_str(data.get("date")),
            title=as_str(data.get("title")),
            description=as_str(data.get("description")),
            activities=[a for a in (ScheduledActivity.from_json(v) for v in as_list(data.get("activities"))) if a],
            accommodation=as_str(data.get("accommodation")),
            notes=as_str(data.get("notes")),
            meals=meals,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = _drop_none({
            "dayNumber": self.day_number,
            "date": self.date,
            "title": self.title,
            "description": self.description,
            "accommodation": self.accommodation,
            "notes": self.notes,
        })
        data["activities"] = [a.to_dict() for a in self.activities]
        data["meals"] = {k: m.to_dict() for k, m in self.meals.items()}
        return data


@dataclass
class Itinerary:
    title: Optional[str]
    description: Optional[str]
    days: List[ItineraryDay]

    @classmethod
    def from_json(cls, data: Any) -> "Itinerary":
        data = as_dict(data)
        days = []
        for position, raw in enumerate(as_list(data.get("days")), 1):
            day = ItineraryDay.from_json(raw, position)
            if day:
                days.append(day)
        return cls(
            title=as_str(data.get("title")),
            description=as_str(data.get("description")),
            days=days,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "days": [d.to_dict() for d in self.days],
        }


def normalize_days(days: List[ItineraryDay], start: Optional[date], end: Optional[date]) -> List[ItineraryDay]:
    """Renumber days 1..n in model order and pin each date inside the trip.

    Days are ordered by the number the model gave them. When the trip dates
    are known, a missing or out-of-range date is replaced with
    ``start + (day_number - 1)``.
    """
    ordered = sorted(days, key=lambda d: d.day_number)
    for number, day in enumerate(ordered, 1):
        day.day_number = number
        if start is None:
            continue
        current = parse_date(day.date)
        last = end or start
        if current is None or not (start <= current <= last):
            expected = start + timedelta(days=number - 1)
            day.date = min(expected, last).isoformat()
        else:
            day.date = current.isoformat()
    return ordered


@dataclass
class DestinationSuggestion:
    name: str
    country: Optional[str] = None
    reasoning: Optional[str] = None
    best_time_to_visit: Optional[str] = None
    budget_category: Optional[str] = None
    key_attractions: List[str] = field(default_factory=list)
    currency: Dict[str, Any] = field(default_factory=dict)
    estimated_daily_budget: Dict[str, Any] = field(default_factory=dict)
    coordinates: Optional[Dict[str, float]] = None
    address: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["DestinationSuggestion"]:
        data = as_dict(data)
        name = as_str(data.get("name"))
        if not name:
            return None
        currency = data.get("currency")
        if isinstance(currency, str):
            currency = {"code": currency}
        return cls(
            name=name,
            country=as_str(data.get("country")),
            reasoning=as_str(data.get("reasoning")),
            best_time_to_visit=as_str(data.get("bestTimeToVisit")),
            budget_category=as_str(data.get("budgetCategory")),
            key_attractions=as_str_list(data.get("keyAttractions")),
            currency=as_dict(currency),
            estimated_daily_budget=as_dict(data.get("estimatedDailyBudget")),
        )

    @property
    def geocode_query(self) -> str:
        return f"{self.name}, {self.country}" if self.country else self.name

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "country": self.country,
            "reasoning": self.reasoning,
            "bestTimeToVisit": self.best_time_to_visit,
            "budgetCategory": self.budget_category,
            "keyAttractions": list(self.key_attractions),
            "currency": dict(self.currency),
            "estimatedDailyBudget": dict(self.estimated_daily_budget),
        }
        if self.coordinates is not None:
            data["coordinates"] = dict(self.coordinates)
        if self.address is not None:
            data["address"] = self.address
        return data


@dataclass
class EmergencyContact:
    name: str
    type: str = "Other"
    phone: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None

    @classmethod
    def from_json(cls, data: Any) -> Optional["EmergencyContact"]:
        data = as_dict(data)
        name = as_str(data.get("name"))
        if not name:
            return None
        return cls(
            name=name,
            type=as_str(data.get("type"), "Other") or "Other",
            phone=as_str(data.get("phone")),
            email=as_str(data.get("email")),
            address=as_str(data.get("address")),
            notes=as_str(data.get("notes")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return _drop_none({
            "name": self.name,
            "type": self.type,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "notes": self.notes,
        })
