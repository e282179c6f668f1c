"""
Unit tests for travelog/api/prompts.py
"""
from datetime import date

import pytest

from travelog.api.models import (
    AccommodationRequest,
    ActivityOption,
    ActivitySuggestionRequest,
    ContactExtractionRequest,
    DestinationQuery,
    FinalItineraryRequest,
    RouteRequest,
    TripDetails,
    TripRequest,
)
from travelog.api.prompts import (
    ASSISTANT_SYSTEM_PROMPT,
    TRIP_DATA_END,
    TRIP_DATA_START,
    build_accommodation_prompt,
    build_activity_prompt,
    build_contacts_prompt,
    build_contacts_system_prompt,
    build_destination_prompt,
    build_final_itinerary_prompt,
    build_options_prompt,
    build_route_prompt,
)


@pytest.fixture
def details():
    return TripDetails(
        title="Summer Trip",
        start_date=date(2025, 6, 1),
        end_date=date(2025, 6, 3),
        main_destination="Paris",
        all_destinations=["Paris", "Versailles"],
    )


def _minimal_prompts(details):
    bare_trip = TripRequest(destination="Lisbon")
    return [
        build_activity_prompt(ActivitySuggestionRequest(destination="Lisbon", date="2025-06-01")),
        build_destination_prompt(DestinationQuery(query="beaches", trip=TripRequest(destination=""))),
        build_accommodation_prompt(AccommodationRequest(trip=bare_trip, check_in="2025-06-01", check_out="2025-06-04")),
        build_route_prompt(RouteRequest(destinations=["Lisbon", "Porto"], trip=bare_trip)),
        build_options_prompt(details),
        build_final_itinerary_prompt(FinalItineraryRequest(details, [ActivityOption(name="Louvre")])),
    ]


class TestFallbacks:

    def test_absent_fields_never_render_as_undefined_or_none(self, details):
        for prompt in _minimal_prompts(details):
            assert "undefined" not in prompt
            assert "None" not in prompt

    def test_activity_prompt_fallbacks(self):
        prompt = build_activity_prompt(ActivitySuggestionRequest(destination="Lisbon", date="2025-06-01"))
        assert "- Interests: General sightseeing" in prompt
        assert "- Budget: Moderate" in prompt
        assert "- Trip: Not specified" in prompt
        assert "Day Not specified of Not specified total days" in prompt

    def test_accommodation_prompt_fallbacks(self):
        trip = TripRequest(destination="Lisbon")
        prompt = build_accommodation_prompt(AccommodationRequest(trip, "2025-06-01", "2025-06-04"))
        assert "Moderate" in prompt
        assert "Mid-range" in prompt
        assert "General tourism" in prompt


class TestContent:

    def test_activity_prompt_uses_request_values(self):
        req = ActivitySuggestionRequest(
            destination="Paris",
            date="2025-06-01",
            day_number=1,
            total_days=3,
            trip_name="Summer Trip",
            interests=["art", "food"],
            budget="Luxury",
        )
        prompt = build_activity_prompt(req)
        assert "You are a local travel expert for Paris." in prompt
        assert "Day 1 of 3 total days" in prompt
        assert "- Interests: art, food" in prompt
        assert "- Budget: Luxury" in prompt
        assert "A brief summary of the perfect day in Paris" in prompt
        assert '"bestTime"' in prompt

    def test_route_prompt_joins_destinations(self):
        prompt = build_route_prompt(RouteRequest(["Rome", "Florence", "Venice"], TripRequest("Rome")))
        assert "Rome → Florence → Venice" in prompt

    def test_options_prompt_mentions_duration_month_and_other_destinations(self, details):
        prompt = build_options_prompt(details)
        assert "3-day trip to Paris" in prompt
        assert "June" in prompt
        assert "Versailles" in prompt
        assert '"itineraryOptions"' in prompt

    def test_final_prompt_lists_selected_activities(self, details):
        activities = [
            ActivityOption(name="Louvre", description="Museum", category="cultural", day_number=1),
            ActivityOption(name="Seine cruise"),
        ]
        prompt = build_final_itinerary_prompt(FinalItineraryRequest(details, activities))
        assert "- Day 1: Louvre - Museum (cultural)" in prompt
        assert "- Day Not specified: Seine cruise - Not specified (other)" in prompt
        assert '"title": "Summer Trip"' in prompt
        assert "dates from 2025-06-01 to 2025-06-03" in prompt

    def test_contacts_prompts(self):
        req = ContactExtractionRequest(
            destination="Tokyo",
            accommodations=[{"name": "Park Hyatt", "contact_info": "+81 3 5322 1234"}],
            transport=[],
        )
        assert "trip to Tokyo" in build_contacts_system_prompt(req)
        user_prompt = build_contacts_prompt(req)
        assert "Park Hyatt" in user_prompt
        assert "Destination: Tokyo" in user_prompt

    def test_assistant_prompt_describes_framing(self):
        assert TRIP_DATA_START in ASSISTANT_SYSTEM_PROMPT
        assert TRIP_DATA_END in ASSISTANT_SYSTEM_PROMPT


class TestDeterminism:

    def test_same_request_same_prompt(self, details):
        assert _minimal_prompts(details) == _minimal_prompts(details)
