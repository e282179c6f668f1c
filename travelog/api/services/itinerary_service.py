# travelog/api/services/itinerary_service.py
"""Service layer for saving and loading trip itineraries."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy.exc import SQLAlchemyError

from travelog.api.database import (
    TRIP_STATUS_PLANNED,
    ActivityRecord,
    Database,
    ItineraryDayRecord,
    ItineraryRecord,
    MealRecord,
)
from travelog.api.errors import NotFoundError, PersistenceError, ValidationError
from travelog.api.models import Itinerary, ItineraryDay, normalize_days, parse_date
from travelog.api.services.trip_service import TripService

logger = logging.getLogger(__name__)


@dataclass
class SaveResult:
    itinerary_id: str
    operation: str
    day_ids: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Itinerary {self.operation} successfully"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "itineraryId": self.itinerary_id,
            "dayIds": list(self.day_ids),
        }


def _day_record(day: ItineraryDay) -> ItineraryDayRecord:
    record = ItineraryDayRecord(
        day_number=day.day_number,
        date=day.date,
        title=day.title,
        description=day.description,
        accommodation=day.accommodation,
        notes=day.notes,
    )
    record.activities = [
        ActivityRecord(
            title=activity.title,
            description=activity.description,
            type=activity.type,
            location_name=activity.location_name,
            location_address=activity.address or "",
            location_place_id=activity.place_id or "",
            lat=activity.lat,
            lng=activity.lng,
            start_time=activity.start_time,
            end_time=activity.end_time,
            duration=activity.duration,
            image_url=activity.image_url,
            map_url=activity.map_url,
            cost=activity.cost,
            notes=activity.notes,
            sort_order=index,
        )
        for index, activity in enumerate(day.activities)
    ]
    record.meals = [
        MealRecord(
            type=meal_type,
            name=meal.name,
            location=meal.location,
            description=meal.description,
            place_id=meal.place_id,
        )
        for meal_type, meal in day.meals.items()
    ]
    return record


def _activity_to_dict(record: ActivityRecord) -> Dict[str, Any]:
    location: Dict[str, Any] = {"name": record.location_name or ""}
    if record.location_address:
        location["address"] = record.location_address
    if record.location_place_id:
        location["placeId"] = record.location_place_id
    if record.lat is not None and record.lng is not None:
        location["coordinates"] = {"lat": record.lat, "lng": record.lng}
    data = {
        "id": record.id,
        "title": record.title,
        "description": record.description,
        "type": record.type,
        "location": location,
    }
    for key, value in (
        ("startTime", record.start_time),
        ("endTime", record.end_time),
        ("duration", record.duration),
        ("imageUrl", record.image_url),
        ("mapUrl", record.map_url),
        ("cost", record.cost),
        ("notes", record.notes),
    ):
        if value is not None:
            data[key] = value
    return data


def _day_to_dict(record: ItineraryDayRecord) -> Dict[str, Any]:
    meals = {}
    for meal in record.meals:
        meals[meal.type] = {
            k: v for k, v in (
                ("name", meal.name),
                ("location", meal.location),
                ("description", meal.description),
                ("placeId", meal.place_id),
            ) if v is not None
        }
    return {
        "id": record.id,
        "dayNumber": record.day_number,
        "date": record.date,
        "title": record.title,
        "description": record.description,
        "accommodation": record.accommodation,
        "notes": record.notes,
        "activities": [_activity_to_dict(a) for a in record.activities],
        "meals": meals,
    }


class ItineraryService:
    """Maps itineraries onto the itineraries / itinerary_days / activities / meals tables."""

    @staticmethod
    def save_itinerary(db: Database, trip_id: str, user_id: str, itinerary: Itinerary) -> SaveResult:
        """Create or replace the itinerary attached to a trip.

        Validation and the ownership check both happen before any row is
        written. The writes run in a single transaction, so a failure leaves
        the previous itinerary untouched.

        Args:
            db: Database handle
            trip_id: Trip the itinerary belongs to
            user_id: Authenticated user; must own the trip
            itinerary: Decoded itinerary with at least one day

        Returns:
            SaveResult with the itinerary id and the new day ids

        Raises:
            ValidationError: missing title or no days
            NotFoundError: trip does not exist
            AuthorizationError: trip belongs to another user
            PersistenceError: the store rejected the write
        """
        if not itinerary.title or not itinerary.days:
            raise ValidationError("Invalid itinerary format")

        try:
            with db.session_scope() as session:
                trip = TripService.get_owned_trip(session, trip_id, user_id)

                days = normalize_days(
                    itinerary.days,
                    parse_date(trip.start_date),
                    parse_date(trip.end_date),
                )

                record = trip.itinerary
                operation = "updated" if record is not None else "created"
                if record is None:
                    record = ItineraryRecord(user_id=user_id)
                    trip.itinerary = record

                record.title = itinerary.title
                record.description = itinerary.description
                record.updated_at = datetime.utcnow()
                # delete-orphan cascade removes the previous days with their rows
                record.days = [_day_record(day) for day in days]

                trip.status = TRIP_STATUS_PLANNED
                trip.updated_at = datetime.utcnow()
                session.flush()

                result = SaveResult(
                    itinerary_id=record.id,
                    operation=operation,
                    day_ids=[d.id for d in record.days],
                )
        except SQLAlchemyError as e:
            logger.error(f"Failed to save itinerary for trip {trip_id}: {e}")
            raise PersistenceError("Failed to save itinerary") from e

        logger.info(f"Itinerary {operation} for trip {trip_id} with {len(result.day_ids)} days")
        return result

    @staticmethod
    def get_itinerary(db: Database, trip_id: str, user_id: str) -> Dict[str, Any]:
        """Return the stored itinerary of a trip with ordered days.

        Raises:
            NotFoundError: trip or itinerary does not exist
            AuthorizationError: trip belongs to another user
        """
        with db.session_scope() as session:
            trip = TripService.get_owned_trip(session, trip_id, user_id)
            record = trip.itinerary
            if record is None:
                raise NotFoundError("Itinerary not found")
            return {
                "id": record.id,
                "tripId": trip.id,
                "title": record.title,
                "description": record.description,
                "days": [_day_to_dict(day) for day in record.days],
            }


__all__ = ["ItineraryService", "SaveResult"]
