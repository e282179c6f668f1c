# travelog/api/errors.py
"""Error taxonomy shared by services and HTTP handlers.

Every error carries the HTTP status it maps to and a message that is safe
to show to the user. Handlers never serialize anything else.
"""

from typing import Optional


class TravelogError(Exception):
    """Base class for all errors surfaced to HTTP clients."""

    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class ValidationError(TravelogError):
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(TravelogError):
    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(TravelogError):
    status_code = 403
    default_message = "Unauthorized: User does not have access to this trip"


class NotFoundError(TravelogError):
    status_code = 404
    default_message = "Trip not found"


class UpstreamError(TravelogError):
    """A model, geocoding or SMS provider answered with a failure."""

    default_message = "Upstream service error"

    def __init__(self, status: Optional[int] = None, body: str = "", message: Optional[str] = None):
        self.status = status
        self.body = body
        super().__init__(message or f"Upstream service error (status={status})")


class UpstreamEmptyResponse(UpstreamError):
    """The provider answered successfully but returned no message content."""

    def __init__(self, body: str = ""):
        super().__init__(status=None, body=body, message="No content received from AI")


class MalformedModelOutput(TravelogError):
    default_message = "Could not parse response from AI service"

    def __init__(self, message: Optional[str] = None, raw: str = ""):
        self.raw = raw
        super().__init__(message)


class PersistenceError(TravelogError):
    default_message = "Failed to save data"


class ConfigurationError(TravelogError):
    default_message = "API key is missing on server"


__all__ = [
    "TravelogError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "NotFoundError",
    "UpstreamError",
    "UpstreamEmptyResponse",
    "MalformedModelOutput",
    "PersistenceError",
    "ConfigurationError",
]
