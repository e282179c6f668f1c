# travelog/routes/__init__.py
import logging

from flask import current_app, jsonify, request

from travelog.api.errors import ValidationError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "travelog"


def get_services():
    """Collaborators built by ``create_app`` for the current application."""
    return current_app.extensions[EXTENSION_KEY]


def json_body():
    """Request body as a dict; anything else is a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def pipeline_failure(config, error, wrap=True):
    """Log a failed pipeline run and answer with the endpoint's message."""
    logger.error(f"[{config.name}] {type(error).__name__}: {error}")
    body = {"success": False, "error": config.failure_message} if wrap else {"error": config.failure_message}
    return jsonify(body), 500


__all__ = ["EXTENSION_KEY", "get_services", "json_body", "pipeline_failure"]
