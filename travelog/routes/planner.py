# travelog/routes/planner.py
"""Two-step itinerary planner: options first, then the final itinerary."""

import logging

from flask import Blueprint, jsonify

from travelog.api.errors import MalformedModelOutput, NotFoundError, UpstreamError
from travelog.api.services.planner_service import (
    FINAL_ITINERARY,
    ITINERARY_OPTIONS,
    parse_final_request,
    parse_trip_details,
)
from travelog.routes import get_services, json_body, pipeline_failure

logger = logging.getLogger(__name__)

PROVIDERS = ("openrouter", "gemini")


def create_planner_blueprint():
    planner_bp = Blueprint("planner", __name__, url_prefix="/api")

    def pipeline_for(provider):
        if provider not in PROVIDERS:
            raise NotFoundError(f"Unknown provider: {provider}")
        return get_services().pipelines[provider]

    @planner_bp.route("/<provider>/generate-options", methods=["POST"])
    def generate_options(provider):
        """Three themed itinerary options for the trip details."""
        pipeline = pipeline_for(provider)
        details = parse_trip_details(json_body().get("tripDetails"))
        logger.info(f"Generating itinerary options via {provider} for {details.main_destination}")
        try:
            options = pipeline.run(ITINERARY_OPTIONS, details)
        except (UpstreamError, MalformedModelOutput) as e:
            return pipeline_failure(ITINERARY_OPTIONS, e)
        return jsonify({"success": True, "itineraryOptions": options})

    @planner_bp.route("/<provider>/generate-final-itinerary", methods=["POST"])
    def generate_final_itinerary(provider):
        """Day-by-day itinerary built from the selected activities."""
        pipeline = pipeline_for(provider)
        req = parse_final_request(json_body())
        try:
            itinerary = pipeline.run(FINAL_ITINERARY, req)
        except (UpstreamError, MalformedModelOutput) as e:
            return pipeline_failure(FINAL_ITINERARY, e)
        return jsonify({
            "success": True,
            "finalItinerary": itinerary.to_dict(),
            "canSaveItinerary": True,
        })

    return planner_bp


__all__ = ["create_planner_blueprint", "PROVIDERS"]
