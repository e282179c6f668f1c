# travelog/api/services/trip_service.py
"""Trips and the rows a trip owns."""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from travelog.api.database import (
    TRIP_STATUS_PLANNING,
    AccommodationRecord,
    Companion,
    Database,
    DaySchedule,
    Profile,
    TravelContact,
    TravelDetail,
    Trip,
    TripItineraryItem,
    row_to_dict,
)
from travelog.api.errors import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from travelog.api.models import (
    ContactExtractionRequest,
    EmergencyContact,
    TripDetails,
    as_dict,
    as_int,
    as_list,
    as_str,
    parse_date,
)

logger = logging.getLogger(__name__)

COMPANION_FIELDS = {
    "name": "name",
    "email": "email",
    "phone": "phone",
    "relationship": "relationship_type",
    "notes": "notes",
}

DIARY_WRITE_TYPES = ("itinerary_item", "accommodation", "travel_detail", "companion", "multiple_items")


def _companion_dict(companion: Companion) -> Dict[str, Any]:
    return row_to_dict(companion)


def _first(raw: Dict[str, Any], *keys: str) -> Optional[str]:
    """First non-empty string among ``keys``; payloads use both spellings."""
    for key in keys:
        value = as_str(raw.get(key))
        if value:
            return value
    return None


def _schedule_rows(trip_id: str, schedules: List[Any]) -> List[DaySchedule]:
    rows = []
    for position, raw in enumerate(schedules, 1):
        raw = as_dict(raw)
        day_number = as_int(raw.get("day")) or as_int(raw.get("dayNumber")) or as_int(raw.get("day_number"))
        day_number = day_number or position
        activities = [s for s in (as_str(a) for a in as_list(raw.get("activities"))) if s]
        rows.append(DaySchedule(
            trip_id=trip_id,
            day_number=day_number,
            date=as_str(raw.get("date")),
            title=as_str(raw.get("title")) or f"Day {day_number}",
            activities=activities,
            accommodation=as_str(raw.get("accommodation")),
            notes=as_str(raw.get("notes")),
        ))
    return rows


def _travel_rows(trip_id: str, details: List[Any]) -> List[TravelDetail]:
    return [
        TravelDetail(
            trip_id=trip_id,
            mode=_first(raw, "mode"),
            details=_first(raw, "details"),
            departure_location=_first(raw, "departureLocation", "departure_location"),
            arrival_location=_first(raw, "arrivalLocation", "arrival_location"),
            departure_date=_first(raw, "departureDate", "departure_date"),
            departure_time=_first(raw, "departureTime", "departure_time"),
            arrival_time=_first(raw, "arrivalTime", "arrival_time"),
            booking_reference=_first(raw, "bookingReference", "booking_reference"),
            contact_info=_first(raw, "contactInfo", "contact_info"),
        )
        for raw in map(as_dict, details)
    ]


def _accommodation_rows(trip_id: str, accommodations: List[Any]) -> List[AccommodationRecord]:
    return [
        AccommodationRecord(
            trip_id=trip_id,
            name=_first(raw, "name"),
            address=_first(raw, "address"),
            check_in=_first(raw, "checkIn", "check_in_date", "check_in"),
            check_out=_first(raw, "checkOut", "check_out_date", "check_out"),
            confirmation_number=_first(raw, "confirmationNumber", "confirmation_number"),
            contact_info=_first(raw, "contactInfo", "contact_info"),
            notes=_first(raw, "notes"),
        )
        for raw in map(as_dict, accommodations)
    ]


def _itinerary_item_rows(trip_id: str, items: List[Any]) -> List[TripItineraryItem]:
    rows = []
    for raw in map(as_dict, items):
        title = _first(raw, "title")
        if not title:
            raise ValidationError("Itinerary items need a title")
        rows.append(TripItineraryItem(
            trip_id=trip_id,
            day_number=as_int(raw.get("day_number")) or as_int(raw.get("dayNumber")),
            title=title,
            description=_first(raw, "description"),
            activity_type=_first(raw, "activity_type", "activityType") or "activity",
            location=_first(raw, "location"),
            start_time=_first(raw, "start_time", "startTime"),
            end_time=_first(raw, "end_time", "endTime"),
            estimated_cost=_first(raw, "estimated_cost", "estimatedCost"),
            notes=_first(raw, "notes"),
        ))
    return rows


def _companion_row(trip_id: str, raw: Any) -> Companion:
    raw = as_dict(raw)
    if not as_str(raw.get("name")):
        raise ValidationError("Companion name is required")
    companion = Companion(trip_id=trip_id)
    for key, attr in COMPANION_FIELDS.items():
        setattr(companion, attr, as_str(raw.get(key)))
    if not companion.phone:
        companion.phone = _first(raw, "contact_info", "contactInfo")
    return companion


def normalize_phone(phone: Optional[str]) -> str:
    """Digits only, for duplicate detection."""
    return re.sub(r"\D", "", phone or "")


def _new_trip(user_id: str, title: Optional[str], destination: Optional[str],
              start_raw: Optional[str], end_raw: Optional[str], description: str) -> Trip:
    if not (title and destination and start_raw and end_raw):
        raise ValidationError("Missing required trip fields")
    start, end = parse_date(start_raw), parse_date(end_raw)
    if start is None or end is None:
        raise ValidationError("Invalid date format provided")
    if end < start:
        raise ValidationError("End date must be on or after start date")
    return Trip(
        user_id=user_id,
        title=title,
        destination=destination,
        description=description,
        start_date=start.isoformat(),
        end_date=end.isoformat(),
        status=TRIP_STATUS_PLANNING,
    )


class TripService:
    """Service for trip records. Every public call checks ownership first."""

    @staticmethod
    def get_owned_trip(session, trip_id: str, user_id: str) -> Trip:
        """Load a trip inside ``session`` and check that ``user_id`` owns it.

        Raises:
            NotFoundError: no trip with that id
            AuthorizationError: the trip belongs to another user
        """
        trip = session.get(Trip, trip_id)
        if trip is None:
            raise NotFoundError("Trip not found")
        if trip.user_id != user_id:
            logger.warning(f"User {user_id} denied access to trip {trip_id}")
            raise AuthorizationError()
        return trip

    @staticmethod
    def _insert_trip(db: Database, trip: Trip, build_rows) -> Dict[str, Any]:
        """Write ``trip`` and the rows ``build_rows(trip_id)`` returns in one transaction."""
        try:
            with db.session_scope() as session:
                session.add(trip)
                session.flush()
                session.add_all(build_rows(trip.id))
                result = row_to_dict(trip)
        except SQLAlchemyError as e:
            logger.error(f"Failed to create trip for user {trip.user_id}: {e}")
            raise PersistenceError("Failed to create trip") from e

        logger.info(f"Trip {result['id']} created for user {trip.user_id}")
        return result

    @staticmethod
    def create_trip(db: Database, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a trip in ``planning`` status with its manual entry data.

        The trip row and every manual-entry row are written in one
        transaction.
        """
        data = as_dict(data)
        destination = as_str(data.get("destination"))
        trip = _new_trip(
            user_id,
            as_str(data.get("title")),
            destination,
            as_str(data.get("start_date")),
            as_str(data.get("end_date")),
            as_str(data.get("description")) or f"Manual entry trip to {destination}",
        )
        manual = as_dict(data.get("manual_entry_data"))
        if manual:
            trip.manual_entry_data = {"destinations": as_list(manual.get("destinations"))}
        if as_str(data.get("id")):
            trip.id = as_str(data.get("id"))

        def rows(trip_id):
            return (
                _schedule_rows(trip_id, as_list(manual.get("daySchedules")))
                + _travel_rows(trip_id, as_list(manual.get("travelDetails")))
                + _accommodation_rows(trip_id, as_list(manual.get("accommodations")))
            )

        return TripService._insert_trip(db, trip, rows)

    @staticmethod
    def create_ai_trip(db: Database, user_id: str, trip_data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a trip from the assistant's framed trip data.

        Expects ``{title, destination, startDate, endDate, itinerary: [{day,
        date, activities, accommodation, notes}]}``; each itinerary entry
        becomes one day-schedule row in the same transaction as the trip.
        """
        trip_data = as_dict(trip_data)
        trip = _new_trip(
            user_id,
            as_str(trip_data.get("title")),
            as_str(trip_data.get("destination")),
            _first(trip_data, "startDate", "start_date"),
            _first(trip_data, "endDate", "end_date"),
            as_str(trip_data.get("description")) or "AI-generated trip via PO Assistant",
        )
        itinerary = as_list(trip_data.get("itinerary"))
        return TripService._insert_trip(db, trip, lambda trip_id: _schedule_rows(trip_id, itinerary))

    @staticmethod
    def get_trip(db: Database, trip_id: str, user_id: str) -> Dict[str, Any]:
        with db.session_scope() as session:
            trip = TripService.get_owned_trip(session, trip_id, user_id)
            data = row_to_dict(trip)
            data["companions"] = [_companion_dict(c) for c in trip.companions]
            data["hasItinerary"] = trip.itinerary is not None
            return data

    @staticmethod
    def delete_trip(db: Database, trip_id: str, user_id: str) -> None:
        """Delete a trip and, by cascade, everything it owns."""
        try:
            with db.session_scope() as session:
                trip = TripService.get_owned_trip(session, trip_id, user_id)
                session.delete(trip)
        except SQLAlchemyError as e:
            logger.error(f"Failed to delete trip {trip_id}: {e}")
            raise PersistenceError("Failed to delete trip") from e
        logger.info(f"Trip {trip_id} deleted")

    @staticmethod
    def trip_details(db: Database, trip_id: str, user_id: str,
                     budget: Optional[str] = None, interests: Optional[str] = None) -> TripDetails:
        """Build the itinerary-generation input from a stored trip."""
        with db.session_scope() as session:
            trip = TripService.get_owned_trip(session, trip_id, user_id)
            start = parse_date(trip.start_date)
            end = parse_date(trip.end_date) or start
            if start is None:
                raise ValidationError("Trip has no valid start date")
            destinations = [trip.destination]
            for raw in as_list(as_dict(trip.manual_entry_data).get("destinations")):
                name = as_str(as_dict(raw).get("name")) if isinstance(raw, dict) else as_str(raw)
                if name and name not in destinations:
                    destinations.append(name)
            return TripDetails(
                title=trip.title,
                start_date=start,
                end_date=end,
                main_destination=trip.destination,
                all_destinations=destinations,
                budget=budget,
                interests=interests,
            )

    @staticmethod
    def contact_request(db: Database, trip_id: str, user_id: str) -> ContactExtractionRequest:
        """Collect the stored accommodation and transport rows of a trip."""
        with db.session_scope() as session:
            trip = TripService.get_owned_trip(session, trip_id, user_id)
            accommodations = []
            for row in trip.accommodations:
                data = row_to_dict(row)
                for key in ("id", "trip_id", "created_at"):
                    data.pop(key, None)
                accommodations.append(data)
            transport = []
            for row in trip.travel_details:
                data = row_to_dict(row)
                for key in ("id", "trip_id", "created_at"):
                    data.pop(key, None)
                transport.append(data)
            return ContactExtractionRequest(
                destination=trip.destination,
                accommodations=accommodations,
                transport=transport,
            )

    # -- diary ---------------------------------------------------------------

    @staticmethod
    def _fetch_rows(db: Database, model, trip_id: str, order_by=None) -> List[Dict[str, Any]]:
        with db.session_scope() as session:
            query = select(model).where(model.trip_id == trip_id)
            if order_by is not None:
                query = query.order_by(order_by)
            return [row_to_dict(row) for row in session.scalars(query)]

    @staticmethod
    def get_diary(db: Database, trip_id: str, user_id: str) -> Dict[str, Any]:
        """Trip with its day schedules, travel details, accommodations and
        diary items.

        The child collections are independent reads, so they are fetched
        concurrently, each on its own session.
        """
        with db.session_scope() as session:
            trip = row_to_dict(TripService.get_owned_trip(session, trip_id, user_id))

        with ThreadPoolExecutor(max_workers=4) as executor:
            schedules = executor.submit(
                TripService._fetch_rows, db, DaySchedule, trip_id, DaySchedule.day_number
            )
            travel = executor.submit(TripService._fetch_rows, db, TravelDetail, trip_id)
            accommodations = executor.submit(TripService._fetch_rows, db, AccommodationRecord, trip_id)
            items = executor.submit(
                TripService._fetch_rows, db, TripItineraryItem, trip_id, TripItineraryItem.day_number
            )

            diary = {
                "trip": trip,
                "day_schedules": schedules.result(),
                "travel_details": travel.result(),
                "accommodations": accommodations.result(),
                "itinerary_items": items.result(),
            }

        logger.info(f"Fetched diary for trip {trip_id}")
        return diary

    @staticmethod
    def write_diary(db: Database, trip_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Add rows to a trip's diary.

        ``data`` is ``{"type": ..., "data": ...}`` where type is one of
        ``itinerary_item``, ``accommodation``, ``travel_detail``,
        ``companion`` or ``multiple_items``. Everything is written in one
        transaction after the ownership check.
        """
        data = as_dict(data)
        write_type = as_str(data.get("type"))
        payload = data.get("data")
        if write_type not in DIARY_WRITE_TYPES:
            raise ValidationError("Invalid write type")
        if not isinstance(payload, dict):
            raise ValidationError("Diary data must be an object")

        try:
            with db.session_scope() as session:
                TripService.get_owned_trip(session, trip_id, user_id)
                if write_type == "itinerary_item":
                    rows = _itinerary_item_rows(trip_id, [payload])
                elif write_type == "accommodation":
                    rows = _accommodation_rows(trip_id, [payload])
                elif write_type == "travel_detail":
                    rows = _travel_rows(trip_id, [payload])
                elif write_type == "companion":
                    rows = [_companion_row(trip_id, payload)]
                else:
                    groups = {
                        "itinerary_items": _itinerary_item_rows(trip_id, as_list(payload.get("itinerary_items"))),
                        "accommodations": _accommodation_rows(trip_id, as_list(payload.get("accommodations"))),
                        "travel_details": _travel_rows(trip_id, as_list(payload.get("travel_details"))),
                    }
                    rows = [row for group in groups.values() for row in group]
                session.add_all(rows)
        except SQLAlchemyError as e:
            logger.error(f"Failed to write diary for trip {trip_id}: {e}")
            raise PersistenceError("Failed to write to trip diary") from e

        result = {"type": write_type}
        if write_type == "multiple_items":
            result["counts"] = {key: len(group) for key, group in groups.items()}
            result["message"] = f"Added {len(rows)} items to the trip diary"
        else:
            result["message"] = f"Added {write_type.replace('_', ' ')} to the trip diary"
        logger.info(f"Wrote {len(rows)} diary rows to trip {trip_id}")
        return result

    # -- contacts ------------------------------------------------------------

    @staticmethod
    def save_contacts(db: Database, trip_id: str, user_id: str,
                      contacts: List[EmergencyContact]) -> List[Dict[str, Any]]:
        """Store extracted contacts the user does not have yet.

        Contacts without a phone number are skipped, as are numbers already
        stored for the user (compared as digits only). Returns the new rows.
        """
        try:
            with db.session_scope() as session:
                TripService.get_owned_trip(session, trip_id, user_id)
                stored = session.scalars(select(TravelContact.phone).where(TravelContact.user_id == user_id))
                known = {normalize_phone(phone) for phone in stored}
                added = []
                for contact in contacts:
                    digits = normalize_phone(contact.phone)
                    if not digits or digits in known:
                        continue
                    known.add(digits)
                    row = TravelContact(
                        user_id=user_id,
                        trip_id=trip_id,
                        name=contact.name,
                        phone=contact.phone,
                        relationship_type=contact.type,
                        email=contact.email,
                        address=contact.address,
                        notes=contact.notes,
                    )
                    session.add(row)
                    added.append(row)
                session.flush()
                saved = [row_to_dict(row) for row in added]
        except SQLAlchemyError as e:
            logger.error(f"Failed to save contacts for trip {trip_id}: {e}")
            raise PersistenceError("Failed to save emergency contacts") from e

        logger.info(f"Saved {len(saved)} of {len(contacts)} contacts for user {user_id}")
        return saved


    # -- companions ----------------------------------------------------------

    @staticmethod
    def list_companions(db: Database, trip_id: str, user_id: str) -> List[Dict[str, Any]]:
        with db.session_scope() as session:
            TripService.get_owned_trip(session, trip_id, user_id)
            query = (
                select(Companion)
                .where(Companion.trip_id == trip_id)
                .order_by(Companion.created_at)
            )
            return [_companion_dict(c) for c in session.scalars(query)]

    @staticmethod
    def add_companion(db: Database, trip_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        companion = _companion_row(trip_id, data)
        with db.session_scope() as session:
            TripService.get_owned_trip(session, trip_id, user_id)
            session.add(companion)
            session.flush()
            return _companion_dict(companion)

    @staticmethod
    def update_companion(db: Database, trip_id: str, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        data = as_dict(data)
        companion_id = as_str(data.get("companionId"))
        if not companion_id:
            raise ValidationError("Companion ID is required")
        with db.session_scope() as session:
            TripService.get_owned_trip(session, trip_id, user_id)
            companion = session.get(Companion, companion_id)
            if companion is None or companion.trip_id != trip_id:
                raise NotFoundError("Companion not found")
            for key, attr in COMPANION_FIELDS.items():
                if key in data:
                    setattr(companion, attr, as_str(data.get(key)))
            if not companion.name:
                raise ValidationError("Companion name is required")
            session.flush()
            return _companion_dict(companion)

    @staticmethod
    def delete_companion(db: Database, trip_id: str, user_id: str, companion_id: Optional[str]) -> None:
        if not companion_id:
            raise ValidationError("Companion ID is required")
        with db.session_scope() as session:
            TripService.get_owned_trip(session, trip_id, user_id)
            companion = session.get(Companion, companion_id)
            if companion is None or companion.trip_id != trip_id:
                raise NotFoundError("Companion not found")
            session.delete(companion)

    # -- profile -------------------------------------------------------------

    @staticmethod
    def mark_phone_verified(db: Database, user_id: str, phone_number: str) -> None:
        """Record a verified phone number on the user's profile."""
        try:
            with db.session_scope() as session:
                profile = session.get(Profile, user_id)
                if profile is None:
                    profile = Profile(id=user_id)
                    session.add(profile)
                profile.phone = phone_number
                profile.is_phone_verified = True
                profile.updated_at = datetime.utcnow()
        except SQLAlchemyError as e:
            logger.error(f"Failed to update profile {user_id}: {e}")
            raise PersistenceError("Failed to update user profile") from e


__all__ = ["TripService", "COMPANION_FIELDS", "DIARY_WRITE_TYPES", "normalize_phone"]
