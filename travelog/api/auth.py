# travelog/api/auth.py
"""Bearer-token authentication against Supabase-issued JWTs."""

import logging
from functools import wraps
from typing import Optional

from flask import current_app, g, request
from jose import JWTError, jwt

from travelog.api.errors import AuthenticationError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
AUDIENCE = "authenticated"


def verify_access_token(token: str, secret: str) -> str:
    """Return the user id (``sub``) of a valid access token.

    Raises:
        AuthenticationError: if the token is malformed, expired or unsigned.
    """
    if not secret:
        logger.error("SUPABASE_JWT_SECRET is not configured")
        raise AuthenticationError("Authentication is not configured")
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM], audience=AUDIENCE)
    except JWTError as e:
        logger.info(f"Rejected access token: {e}")
        raise AuthenticationError("Unauthorized") from e
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Unauthorized")
    return user_id


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip() or None


def optional_user() -> Optional[str]:
    """User id for the current request, or None when no valid token is sent."""
    token = _bearer_token()
    if not token:
        return None
    try:
        return verify_access_token(token, current_app.config["SUPABASE_JWT_SECRET"])
    except AuthenticationError:
        return None


def current_user_id() -> str:
    token = _bearer_token()
    if not token:
        raise AuthenticationError("Missing or invalid authorization header")
    return verify_access_token(token, current_app.config["SUPABASE_JWT_SECRET"])


def login_required(view):
    """Reject the request with 401 unless it carries a valid bearer token."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.user_id = current_user_id()
        return view(*args, **kwargs)

    return wrapper


__all__ = ["verify_access_token", "optional_user", "current_user_id", "login_required"]
