# travelog/api/config.py
"""Configuration management for the travel planner API."""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
DEFAULT_CHAT_MODEL = "anthropic/claude-3.5-sonnet"
DEFAULT_ITINERARY_MODEL = "openai/gpt-4o"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


def get_openrouter_api_key():
    """Get OpenRouter API key from environment (None when unset)."""
    return os.getenv("OPENROUTER_API_KEY") or os.getenv("OPEN_ROUTER_API_KEY") or None


def get_gemini_api_key():
    """Get Gemini API key from environment (None when unset)."""
    return os.getenv("GEMINI_API_KEY") or None


def get_geocoding_config():
    """Get geocoding provider keys."""
    return {
        "geoapify_api_key": os.getenv("GEOAPIFY_API_KEY", ""),
        "google_maps_api_key": os.getenv("GOOGLE_MAPS_API_KEY", ""),
    }


def get_twilio_config():
    """Get Twilio Verify configuration."""
    return {
        "account_sid": os.getenv("TWILIO_ACCOUNT_SID", ""),
        "auth_token": os.getenv("TWILIO_AUTH_TOKEN", ""),
        "verify_service_sid": os.getenv("TWILIO_VERIFY_SERVICE_SID", ""),
        "disabled": os.getenv("DISABLE_TWILIO", "false").lower() == "true",
    }


def get_database_url():
    """Get the Postgres (Supabase) connection string."""
    return os.getenv("DATABASE_URL", "sqlite:///./travelog.db")


def get_port():
    """Get port configuration."""
    return int(os.getenv("PORT", 5000))


@dataclass(frozen=True)
class Settings:
    """Process-wide configuration, read once at startup."""

    openrouter_api_key: Optional[str] = None
    openrouter_base_url: str = OPENROUTER_BASE_URL
    chat_model: str = DEFAULT_CHAT_MODEL
    itinerary_model: str = DEFAULT_ITINERARY_MODEL
    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    geoapify_api_key: str = ""
    google_maps_api_key: str = ""
    database_url: str = "sqlite:///./travelog.db"
    supabase_jwt_secret: str = ""
    twilio_account_sid: str = ""
    twilio_auth_token: str = ""
    twilio_verify_service_sid: str = ""
    twilio_disabled: bool = False
    upstream_timeout: float = 30.0
    site_url: str = "https://pandatravelog.netlify.app"
    site_name: str = "PandaTraveLog"


def load_settings() -> Settings:
    """Build a Settings object from the environment."""
    geo = get_geocoding_config()
    twilio = get_twilio_config()
    return Settings(
        openrouter_api_key=get_openrouter_api_key(),
        openrouter_base_url=os.getenv("OPENROUTER_BASE_URL", OPENROUTER_BASE_URL),
        chat_model=os.getenv("OPENROUTER_MODEL", DEFAULT_CHAT_MODEL),
        itinerary_model=os.getenv("OPENROUTER_ITINERARY_MODEL", DEFAULT_ITINERARY_MODEL),
        gemini_api_key=get_gemini_api_key(),
        gemini_model=os.getenv("GEMINI_MODEL", DEFAULT_GEMINI_MODEL),
        geoapify_api_key=geo["geoapify_api_key"],
        google_maps_api_key=geo["google_maps_api_key"],
        database_url=get_database_url(),
        supabase_jwt_secret=os.getenv("SUPABASE_JWT_SECRET", ""),
        twilio_account_sid=twilio["account_sid"],
        twilio_auth_token=twilio["auth_token"],
        twilio_verify_service_sid=twilio["verify_service_sid"],
        twilio_disabled=twilio["disabled"],
        upstream_timeout=float(os.getenv("UPSTREAM_TIMEOUT_SECONDS", "30")),
        site_url=os.getenv("SITE_URL", "https://pandatravelog.netlify.app"),
        site_name=os.getenv("SITE_NAME", "PandaTraveLog"),
    )
