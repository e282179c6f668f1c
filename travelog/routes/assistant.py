# travelog/routes/assistant.py
"""Assistant chat endpoint."""

import logging

from flask import Blueprint, jsonify

from travelog.api.auth import optional_user
from travelog.api.errors import UpstreamError
from travelog.routes import get_services, json_body

logger = logging.getLogger(__name__)


def create_assistant_blueprint():
    assistant_bp = Blueprint("assistant", __name__, url_prefix="/api/assistant")

    @assistant_bp.route("/chat", methods=["POST"])
    def chat():
        """Chat with the assistant; signed-in users keep their history."""
        try:
            reply = get_services().assistant.chat(json_body(), user_id=optional_user())
        except UpstreamError as e:
            logger.error(f"Assistant upstream failure: {e}")
            return jsonify({"success": False, "error": "No response from AI assistant"}), 500
        return jsonify(reply)

    return assistant_bp


__all__ = ["create_assistant_blueprint"]
