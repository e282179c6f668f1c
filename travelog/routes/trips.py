# travelog/routes/trips.py
"""Trip endpoints. Every route here requires a signed-in user."""

import logging

from flask import Blueprint, g, jsonify, request

from travelog.api.auth import login_required
from travelog.api.errors import (
    AuthorizationError,
    MalformedModelOutput,
    UpstreamError,
    ValidationError,
)
from travelog.api.models import FinalItineraryRequest, Itinerary, as_str, decode_activities
from travelog.api.services.itinerary_service import ItineraryService
from travelog.api.services.planner_service import (
    EMERGENCY_CONTACTS,
    TRIP_ITINERARY,
    PersistContext,
)
from travelog.api.services.trip_service import TripService
from travelog.routes import get_services, json_body, pipeline_failure
from travelog.routes.planner import PROVIDERS

logger = logging.getLogger(__name__)


def create_trips_blueprint():
    """Create the blueprint for trips, diaries, companions and itineraries.

    Returns:
        Configured Flask Blueprint
    """
    trips_bp = Blueprint("trips", __name__, url_prefix="/api/trips")

    @trips_bp.route("/create", methods=["POST"])
    @login_required
    def create_trip():
        trip = TripService.create_trip(get_services().db, g.user_id, json_body())
        return jsonify({"success": True, "trip": trip})

    @trips_bp.route("/create-ai-trip", methods=["POST"])
    @login_required
    def create_ai_trip():
        """Create a trip from the trip data the assistant framed in its reply."""
        data = json_body()
        trip_data = data.get("tripData") if isinstance(data.get("tripData"), dict) else data
        trip = TripService.create_ai_trip(get_services().db, g.user_id, trip_data)
        return jsonify({
            "success": True,
            "tripId": trip["id"],
            "trip": trip,
            "message": "AI trip created successfully",
        })

    @trips_bp.route("/<trip_id>", methods=["GET"])
    @login_required
    def get_trip(trip_id):
        trip = TripService.get_trip(get_services().db, trip_id, g.user_id)
        return jsonify({"success": True, "trip": trip})

    @trips_bp.route("/<trip_id>", methods=["DELETE"])
    @login_required
    def delete_trip(trip_id):
        TripService.delete_trip(get_services().db, trip_id, g.user_id)
        return jsonify({"success": True, "message": "Trip deleted successfully"})

    @trips_bp.route("/<trip_id>/diary", methods=["GET"])
    @login_required
    def diary(trip_id):
        """Trip with schedules, travel details, accommodations and diary items."""
        return jsonify(TripService.get_diary(get_services().db, trip_id, g.user_id))

    @trips_bp.route("/<trip_id>/diary", methods=["POST"])
    @login_required
    def write_diary(trip_id):
        result = TripService.write_diary(get_services().db, trip_id, g.user_id, json_body())
        return jsonify({"success": True, "result": result})

    # -- companions ----------------------------------------------------------

    @trips_bp.route("/<trip_id>/companions", methods=["GET"])
    @login_required
    def list_companions(trip_id):
        companions = TripService.list_companions(get_services().db, trip_id, g.user_id)
        return jsonify({"success": True, "companions": companions})

    @trips_bp.route("/<trip_id>/companions", methods=["POST"])
    @login_required
    def add_companion(trip_id):
        companion = TripService.add_companion(get_services().db, trip_id, g.user_id, json_body())
        return jsonify({"success": True, "companion": companion})

    @trips_bp.route("/<trip_id>/companions", methods=["PUT"])
    @login_required
    def update_companion(trip_id):
        companion = TripService.update_companion(get_services().db, trip_id, g.user_id, json_body())
        return jsonify({"success": True, "companion": companion})

    @trips_bp.route("/<trip_id>/companions", methods=["DELETE"])
    @login_required
    def delete_companion(trip_id):
        TripService.delete_companion(
            get_services().db, trip_id, g.user_id, request.args.get("companionId")
        )
        return jsonify({"success": True, "message": "Companion deleted successfully"})

    # -- itineraries ---------------------------------------------------------

    @trips_bp.route("/save-itinerary", methods=["POST"])
    @login_required
    def save_itinerary():
        """Create or replace the itinerary of a trip the user owns."""
        data = json_body()
        trip_id = as_str(data.get("tripId"))
        if not trip_id or not isinstance(data.get("itinerary"), dict):
            raise ValidationError("Missing required fields: tripId, itinerary")
        claimed = as_str(data.get("userId"))
        if claimed and claimed != g.user_id:
            raise AuthorizationError()

        itinerary = Itinerary.from_json(data["itinerary"])
        result = ItineraryService.save_itinerary(get_services().db, trip_id, g.user_id, itinerary)
        return jsonify(result.to_dict())

    @trips_bp.route("/get-itinerary", methods=["GET"])
    @login_required
    def get_itinerary():
        trip_id = request.args.get("tripId")
        if not trip_id:
            raise ValidationError("Missing required parameter: tripId")
        itinerary = ItineraryService.get_itinerary(get_services().db, trip_id, g.user_id)
        return jsonify({"success": True, "itinerary": itinerary})

    @trips_bp.route("/<trip_id>/itinerary/generate", methods=["POST"])
    @login_required
    def generate_itinerary(trip_id):
        """Generate a final itinerary for a stored trip and save it."""
        services = get_services()
        data = json_body()
        provider = as_str(data.get("provider"), "openrouter")
        if provider not in PROVIDERS:
            raise ValidationError(f"Unknown provider: {provider}")

        details = TripService.trip_details(
            services.db,
            trip_id,
            g.user_id,
            budget=as_str(data.get("budget")),
            interests=as_str(data.get("interests")),
        )
        activities = decode_activities(data.get("selectedActivities"))
        if not activities:
            raise ValidationError("No activities selected")

        context = PersistContext(db=services.db, trip_id=trip_id, user_id=g.user_id)
        try:
            generated = services.pipelines[provider].run(
                TRIP_ITINERARY, FinalItineraryRequest(details, activities), context
            )
        except (UpstreamError, MalformedModelOutput) as e:
            return pipeline_failure(TRIP_ITINERARY, e)

        body = generated.saved.to_dict()
        body["finalItinerary"] = generated.itinerary.to_dict()
        return jsonify(body)

    @trips_bp.route("/<trip_id>/emergency-contacts/extract", methods=["POST"])
    @login_required
    def extract_emergency_contacts(trip_id):
        """Pull contact details out of the trip's bookings and store the new ones."""
        services = get_services()
        req = TripService.contact_request(services.db, trip_id, g.user_id)
        if not req.accommodations and not req.transport:
            return jsonify({"success": True, "contacts": []})
        context = PersistContext(db=services.db, trip_id=trip_id, user_id=g.user_id)
        try:
            saved = services.pipeline.run(EMERGENCY_CONTACTS, req, context)
        except (UpstreamError, MalformedModelOutput) as e:
            return pipeline_failure(EMERGENCY_CONTACTS, e)
        logger.info(f"Extracted {len(saved.contacts)} contacts for trip {trip_id}, {len(saved.added)} new")
        return jsonify({
            "success": True,
            "contacts": [c.to_dict() for c in saved.contacts],
            "extractedContacts": len(saved.contacts),
            "newContactsAdded": len(saved.added),
        })

    return trips_bp


__all__ = ["create_trips_blueprint"]
