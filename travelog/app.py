# travelog/app.py
"""Flask application factory.

External clients are built once here and handed to the blueprints through
``app.extensions["travelog"]``; nothing in the request path reads the
environment.
"""

import logging
import os
from dataclasses import dataclass
from typing import Dict, Optional

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from travelog.api.config import Settings, load_settings
from travelog.api.database import Database
from travelog.api.errors import TravelogError
from travelog.api.geocoding import Geocoder, build_geocoder
from travelog.api.llm import GeminiClient, OpenRouterClient
from travelog.api.pipeline import CHAT_MODEL, ITINERARY_MODEL, ItineraryPipeline
from travelog.api.services.assistant_service import AssistantService
from travelog.api.sms import TwilioVerifyClient
from travelog.routes import EXTENSION_KEY
from travelog.routes.ai import create_ai_blueprint
from travelog.routes.assistant import create_assistant_blueprint
from travelog.routes.auth import create_auth_blueprint
from travelog.routes.planner import create_planner_blueprint
from travelog.routes.trips import create_trips_blueprint

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Process-lifetime collaborators shared by every request."""

    settings: Settings
    db: Optional[Database]
    pipelines: Dict[str, ItineraryPipeline]
    sms: TwilioVerifyClient
    assistant: AssistantService
    geocoder: Optional[Geocoder] = None

    @property
    def pipeline(self) -> ItineraryPipeline:
        """Default pipeline (OpenRouter)."""
        return self.pipelines["openrouter"]


def build_services(settings: Settings) -> Services:
    """Construct every external client from ``settings``.

    A provider without credentials gets no client; the operations that need
    it then fail with ConfigurationError instead of the process failing to
    start.
    """
    openrouter = None
    if settings.openrouter_api_key:
        openrouter = OpenRouterClient(
            api_key=settings.openrouter_api_key,
            default_model=settings.chat_model,
            base_url=settings.openrouter_base_url,
            timeout=settings.upstream_timeout,
            site_url=settings.site_url,
            site_name=settings.site_name,
        )
    else:
        logger.warning("OpenRouter API key not configured")

    gemini = None
    if settings.gemini_api_key:
        gemini = GeminiClient(
            api_key=settings.gemini_api_key,
            default_model=settings.gemini_model,
            timeout=settings.upstream_timeout,
        )
    else:
        logger.warning("Gemini API key not configured")

    geocoder = build_geocoder(
        settings.geoapify_api_key,
        settings.google_maps_api_key,
        timeout=min(settings.upstream_timeout, 10.0),
    )
    if geocoder is None:
        logger.warning("No geocoding provider configured; destinations will not be enriched")

    db = Database(settings.database_url)
    db.create_all()

    pipelines = {
        "openrouter": ItineraryPipeline(
            openrouter,
            geocoder,
            models={CHAT_MODEL: settings.chat_model, ITINERARY_MODEL: settings.itinerary_model},
        ),
        "gemini": ItineraryPipeline(
            gemini,
            geocoder,
            models={CHAT_MODEL: settings.gemini_model, ITINERARY_MODEL: settings.gemini_model},
        ),
    }

    return Services(
        settings=settings,
        db=db,
        pipelines=pipelines,
        sms=TwilioVerifyClient(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            verify_service_sid=settings.twilio_verify_service_sid,
            disabled=settings.twilio_disabled,
            timeout=min(settings.upstream_timeout, 10.0),
        ),
        assistant=AssistantService(openrouter, db=db, model=settings.chat_model),
        geocoder=geocoder,
    )


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(TravelogError)
    def handle_travelog_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({"success": False, "error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected(error):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "error": "An unexpected error occurred"}), 500


def create_app(settings: Optional[Settings] = None, services: Optional[Services] = None) -> Flask:
    """Create the Flask application.

    Args:
        settings: Explicit configuration; read from the environment when omitted
        services: Pre-built collaborators (tests inject fakes here)

    Returns:
        Configured Flask app
    """
    settings = settings or (services.settings if services else load_settings())
    services = services or build_services(settings)

    app = Flask(__name__)
    app.secret_key = os.getenv("FLASK_SECRET_KEY") or os.urandom(32).hex()
    app.config["SUPABASE_JWT_SECRET"] = settings.supabase_jwt_secret
    app.extensions[EXTENSION_KEY] = services

    CORS(app, origins="*", supports_credentials=True)

    app.register_blueprint(create_ai_blueprint())
    app.register_blueprint(create_planner_blueprint())
    app.register_blueprint(create_trips_blueprint())
    app.register_blueprint(create_auth_blueprint())
    app.register_blueprint(create_assistant_blueprint())
    register_error_handlers(app)

    @app.route("/health")
    def health():
        """Health check endpoint."""
        return jsonify({"status": "ok", "service": "travelog"})

    return app


__all__ = ["create_app", "build_services", "Services"]
