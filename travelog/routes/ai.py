# travelog/routes/ai.py
"""Suggestion endpoints under /api/ai."""

from flask import Blueprint, jsonify

from travelog.api.errors import MalformedModelOutput, UpstreamError
from travelog.api.services.planner_service import (
    ACCOMMODATION_RECOMMENDATIONS,
    ACTIVITY_SUGGESTIONS,
    DESTINATION_SUGGESTIONS,
    TRAVEL_OPTIMIZATIONS,
    parse_accommodation_request,
    parse_activity_request,
    parse_destination_query,
    parse_route_request,
)
from travelog.routes import get_services, json_body, pipeline_failure


def create_ai_blueprint():
    """Create the blueprint for the single-shot suggestion endpoints.

    Returns:
        Configured Flask Blueprint
    """
    ai_bp = Blueprint("ai", __name__, url_prefix="/api/ai")

    def run(config, parse):
        req = parse(json_body())
        try:
            return get_services().pipeline.run(config, req), None
        except (UpstreamError, MalformedModelOutput) as e:
            return None, pipeline_failure(config, e, wrap=False)

    @ai_bp.route("/activity-suggestions", methods=["POST"])
    def activity_suggestions():
        """Activities for one day of a trip."""
        result, failure = run(ACTIVITY_SUGGESTIONS, parse_activity_request)
        return failure or jsonify(result)

    @ai_bp.route("/destination-suggestions", methods=["POST"])
    def destination_suggestions():
        """Destinations matching a free-text query, geocoded when possible."""
        result, failure = run(DESTINATION_SUGGESTIONS, parse_destination_query)
        if failure:
            return failure
        return jsonify({"destinations": [d.to_dict() for d in result]})

    @ai_bp.route("/accommodation-recommendations", methods=["POST"])
    def accommodation_recommendations():
        result, failure = run(ACCOMMODATION_RECOMMENDATIONS, parse_accommodation_request)
        return failure or jsonify(result)

    @ai_bp.route("/travel-optimizations", methods=["POST"])
    def travel_optimizations():
        result, failure = run(TRAVEL_OPTIMIZATIONS, parse_route_request)
        return failure or jsonify(result)

    return ai_bp


__all__ = ["create_ai_blueprint"]
