"""
Tests for the two-step planner (travelog/routes/planner.py).
"""
import json

import pytest

from travelog.api.errors import UpstreamError

TRIP_DETAILS = {
    "title": "Roman Holiday",
    "startDate": "2025-05-10",
    "endDate": "2025-05-12",
    "mainDestination": "Rome",
    "allDestinations": ["Rome", {"name": "Tivoli"}],
    "budget": "Mid-range",
    "interests": ["history", "food"],
}

SELECTED = [
    {"name": "Colosseum", "dayNumber": 1, "duration": "3 hours"},
    {"name": "Villa d'Este", "dayNumber": 2},
]


class TestGenerateOptions:

    def test_options_are_normalized(self, client, model):
        model.queue(json.dumps({"itineraryOptions": [
            {
                "title": "Ancient Rome",
                "days": [{"dayNumber": 1, "activities": [
                    {"title": "Colosseum", "type": "Cultural", "location": {"name": "Piazza del Colosseo"}},
                    {"name": "Street food tour", "type": "shopping"},
                ]}],
            },
            {"title": "no days, skipped"},
        ]}))

        response = client.post("/api/openrouter/generate-options", json={"tripDetails": TRIP_DETAILS})

        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        options = body["itineraryOptions"]
        assert len(options) == 1
        option = options[0]
        assert option["id"] == "option-1"
        assert option["highlights"] == ["Custom itinerary based on your preferences"]
        first, second = option["days"][0]["activities"]
        assert first["id"] == "activity-1-1-1"
        assert first["type"] == "cultural"
        assert first["location"] == "Piazza del Colosseo"
        assert second["title"] == "Street food tour"
        assert second["type"] == "other"
        assert second["location"] == "Location not specified"

        call = model.calls[0]
        assert call["model"] == "itinerary-model"
        assert call["json_mode"] is True
        assert call["max_tokens"] == 8192
        assert call["messages"][0]["role"] == "system"
        assert "Tivoli" in call["messages"][1]["content"]

    @pytest.mark.parametrize("key", ["options", "itineraries", "plans"])
    def test_alternative_keys(self, client, model, key):
        model.queue(json.dumps({key: [{"title": "Plan A", "days": [{"activities": []}]}]}))
        response = client.post("/api/openrouter/generate-options", json={"tripDetails": TRIP_DETAILS})
        assert response.get_json()["itineraryOptions"][0]["title"] == "Plan A"

    def test_final_itinerary_adapted_as_single_option(self, client, model):
        model.queue(json.dumps({"finalItinerary": {"title": "Only one", "days": [{"dayNumber": 1}]}}))
        response = client.post("/api/gemini/generate-options", json={"tripDetails": TRIP_DETAILS})
        options = response.get_json()["itineraryOptions"]
        assert [o["id"] for o in options] == ["option-1"]
        assert options[0]["title"] == "Only one"

    def test_no_options_found(self, client, model):
        model.queue('{"message": "nothing here"}')
        response = client.post("/api/openrouter/generate-options", json={"tripDetails": TRIP_DETAILS})
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "Failed to generate itinerary options"}

    def test_unknown_provider(self, client, model):
        response = client.post("/api/claude/generate-options", json={"tripDetails": TRIP_DETAILS})
        assert response.status_code == 404
        assert model.calls == []

    def test_missing_details(self, client):
        response = client.post("/api/openrouter/generate-options", json={"tripDetails": {"title": "x"}})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Missing required trip details"

    def test_invalid_dates(self, client):
        details = dict(TRIP_DETAILS, startDate="soon")
        response = client.post("/api/openrouter/generate-options", json={"tripDetails": details})
        assert response.status_code == 400
        assert response.get_json()["error"] == "Invalid date format provided"


class TestGenerateFinalItinerary:

    def test_final_itinerary(self, client, model):
        model.queue(json.dumps({"finalItinerary": {
            "days": [
                {"dayNumber": 4, "date": "2025-05-10", "activities": [{"title": "Colosseum", "type": "historical"}]},
                {"dayNumber": 7, "date": "2031-01-01", "activities": [{"title": "Villa d'Este"}]},
            ],
        }}))

        response = client.post("/api/openrouter/generate-final-itinerary", json={
            "tripDetails": TRIP_DETAILS,
            "selectedActivities": SELECTED,
        })

        assert response.status_code == 200
        body = response.get_json()
        assert body["canSaveItinerary"] is True
        itinerary = body["finalItinerary"]
        assert itinerary["title"] == "Roman Holiday"
        assert itinerary["description"] == "A 3-day itinerary for Rome"
        assert [d["dayNumber"] for d in itinerary["days"]] == [1, 2]
        assert [d["date"] for d in itinerary["days"]] == ["2025-05-10", "2025-05-11"]
        assert "Colosseum" in model.calls[0]["messages"][-1]["content"]

    def test_options_shape_is_adapted(self, client, model):
        model.queue(json.dumps({"itineraryOptions": [{"title": "Option", "days": [{"activities": []}]}]}))
        response = client.post("/api/openrouter/generate-final-itinerary", json={
            "tripDetails": TRIP_DETAILS,
            "selectedActivities": SELECTED,
        })
        assert response.get_json()["finalItinerary"]["title"] == "Option"

    def test_no_activities_selected(self, client, model):
        response = client.post("/api/openrouter/generate-final-itinerary", json={
            "tripDetails": TRIP_DETAILS,
            "selectedActivities": [{"description": "nameless"}],
        })
        assert response.status_code == 400
        assert response.get_json()["error"] == "No activities selected"
        assert model.calls == []

    def test_empty_days(self, client, model):
        model.queue('{"finalItinerary": {"title": "Empty", "days": []}}')
        response = client.post("/api/openrouter/generate-final-itinerary", json={
            "tripDetails": TRIP_DETAILS,
            "selectedActivities": SELECTED,
        })
        assert response.status_code == 500
        assert response.get_json()["error"] == "Failed to generate final itinerary"

    def test_upstream_failure(self, client, model):
        model.queue(UpstreamError(None, "timeout"))
        response = client.post("/api/gemini/generate-final-itinerary", json={
            "tripDetails": TRIP_DETAILS,
            "selectedActivities": SELECTED,
        })
        assert response.status_code == 500
        assert response.get_json() == {"success": False, "error": "Failed to generate final itinerary"}
