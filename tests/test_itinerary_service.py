"""
Unit tests for travelog/api/services/itinerary_service.py

Runs against a file-backed SQLite database per test.
"""
from unittest.mock import patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import OTHER_ID, OWNER_ID
from travelog.api.database import ActivityRecord, ItineraryDayRecord, ItineraryRecord, MealRecord, Trip
from travelog.api.errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from travelog.api.models import Itinerary
from travelog.api.services.itinerary_service import ItineraryService


def _itinerary(days=2, title="Paris in June"):
    return Itinerary.from_json({
        "title": title,
        "description": "Three relaxed days",
        "days": [
            {
                "dayNumber": n,
                "title": f"Day {n}",
                "activities": [
                    {"title": "Louvre", "type": "cultural", "location": {"name": "Musée du Louvre",
                                                                        "coordinates": {"lat": 48.86, "lng": 2.33}}},
                    {"title": "Seine walk", "type": "relaxation", "location": "Quai de la Tournelle"},
                ],
                "meals": {"lunch": {"name": "Le Comptoir"}},
            }
            for n in range(1, days + 1)
        ],
    })


def _count(db, model):
    with db.session_scope() as session:
        return session.scalar(select(func.count()).select_from(model))


class TestSaveItinerary:

    def test_creates_itinerary_and_marks_trip_planned(self, db, make_trip):
        trip_id = make_trip()

        result = ItineraryService.save_itinerary(db, trip_id, OWNER_ID, _itinerary())

        assert result.operation == "created"
        assert len(result.day_ids) == 2
        assert result.to_dict()["success"] is True
        assert result.to_dict()["itineraryId"] == result.itinerary_id
        with db.session_scope() as session:
            assert session.get(Trip, trip_id).status == "planned"
        assert _count(db, ItineraryDayRecord) == 2
        assert _count(db, ActivityRecord) == 4
        assert _count(db, MealRecord) == 2

    def test_replaces_previous_days(self, db, make_trip):
        trip_id = make_trip()
        first = ItineraryService.save_itinerary(db, trip_id, OWNER_ID, _itinerary(days=3))

        second = ItineraryService.save_itinerary(db, trip_id, OWNER_ID, _itinerary(days=1, title="Shorter"))

        assert second.operation == "updated"
        assert second.itinerary_id == first.itinerary_id
        assert _count(db, ItineraryRecord) == 1
        assert _count(db, ItineraryDayRecord) == 1
        assert _count(db, ActivityRecord) == 2

    def test_days_are_pinned_to_trip_dates(self, db, make_trip):
        trip_id = make_trip(start_date="2025-06-01", end_date="2025-06-03")
        itinerary = _itinerary(days=2)
        itinerary.days[0].date = "1999-01-01"

        ItineraryService.save_itinerary(db, trip_id, OWNER_ID, itinerary)

        stored = ItineraryService.get_itinerary(db, trip_id, OWNER_ID)
        assert [d["date"] for d in stored["days"]] == ["2025-06-01", "2025-06-02"]
        assert [d["dayNumber"] for d in stored["days"]] == [1, 2]

    def test_other_users_trip_is_forbidden_without_writes(self, db, make_trip):
        trip_id = make_trip(user_id=OTHER_ID)

        with pytest.raises(AuthorizationError):
            ItineraryService.save_itinerary(db, trip_id, OWNER_ID, _itinerary())

        assert _count(db, ItineraryRecord) == 0
        assert _count(db, ItineraryDayRecord) == 0
        with db.session_scope() as session:
            assert session.get(Trip, trip_id).status == "planning"

    def test_missing_trip(self, db):
        with pytest.raises(NotFoundError):
            ItineraryService.save_itinerary(db, "no-such-trip", OWNER_ID, _itinerary())

    def test_empty_days_rejected_before_lookup(self, db):
        # no trip exists, so reaching the lookup would raise NotFoundError instead
        with pytest.raises(ValidationError):
            ItineraryService.save_itinerary(db, "no-such-trip", OWNER_ID, _itinerary(days=0))

    def test_missing_title_rejected(self, db, make_trip):
        trip_id = make_trip()
        itinerary = _itinerary()
        itinerary.title = None
        with pytest.raises(ValidationError):
            ItineraryService.save_itinerary(db, trip_id, OWNER_ID, itinerary)

    def test_store_failure_rolls_back(self, db, make_trip):
        trip_id = make_trip()

        with patch("travelog.api.services.itinerary_service._day_record",
                   side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
            with pytest.raises(PersistenceError):
                ItineraryService.save_itinerary(db, trip_id, OWNER_ID, _itinerary())

        assert _count(db, ItineraryRecord) == 0
        with db.session_scope() as session:
            assert session.get(Trip, trip_id).status == "planning"


class TestGetItinerary:

    def test_round_trip_shape(self, db, make_trip):
        trip_id = make_trip()
        ItineraryService.save_itinerary(db, trip_id, OWNER_ID, _itinerary(days=1))

        stored = ItineraryService.get_itinerary(db, trip_id, OWNER_ID)

        assert stored["tripId"] == trip_id
        assert stored["title"] == "Paris in June"
        day = stored["days"][0]
        assert [a["title"] for a in day["activities"]] == ["Louvre", "Seine walk"]
        assert day["activities"][0]["location"]["coordinates"] == {"lat": 48.86, "lng": 2.33}
        assert day["meals"]["lunch"] == {"name": "Le Comptoir"}

    def test_no_itinerary_yet(self, db, make_trip):
        trip_id = make_trip()
        with pytest.raises(NotFoundError):
            ItineraryService.get_itinerary(db, trip_id, OWNER_ID)

    def test_other_users_trip(self, db, make_trip):
        trip_id = make_trip(user_id=OTHER_ID)
        with pytest.raises(AuthorizationError):
            ItineraryService.get_itinerary(db, trip_id, OWNER_ID)
