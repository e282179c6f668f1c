# travelog/routes/auth.py
"""Phone verification endpoints."""

import logging

from flask import Blueprint, jsonify

from travelog.api.auth import optional_user
from travelog.api.errors import ValidationError
from travelog.api.models import as_str
from travelog.api.services.trip_service import TripService
from travelog.api.sms import STATUS_APPROVED, format_phone_number
from travelog.routes import get_services, json_body

logger = logging.getLogger(__name__)


def create_auth_blueprint():
    auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")

    def verify_code(phone_number, code):
        services = get_services()
        status = services.sms.check_verification(phone_number, code)
        if status != STATUS_APPROVED:
            raise ValidationError("Invalid verification code")
        user_id = optional_user()
        if user_id and services.db is not None:
            TripService.mark_phone_verified(services.db, user_id, phone_number)
        logger.info(f"Phone verified for user {user_id or 'anonymous'}")
        return jsonify({
            "success": True,
            "verified": True,
            "message": "Phone number verified successfully",
        })

    @auth_bp.route("/otp", methods=["POST"])
    def otp():
        """Send a code (``action=send``) or check one (``action=verify``)."""
        data = json_body()
        phone = as_str(data.get("phoneNumber"))
        if not phone:
            raise ValidationError("Phone number is required")
        phone = format_phone_number(phone)
        action, code = data.get("action"), as_str(data.get("code"))

        if action == "send":
            status = get_services().sms.send_verification(phone)
            return jsonify({
                "success": True,
                "status": status,
                "message": "Verification code sent successfully",
            })
        if action == "verify" and code:
            return verify_code(phone, code)
        raise ValidationError("Invalid action or missing code")

    @auth_bp.route("/verify", methods=["POST"])
    def verify():
        data = json_body()
        phone, code = as_str(data.get("phoneNumber")), as_str(data.get("code"))
        if not phone or not code:
            raise ValidationError("Phone number and code are required")
        return verify_code(format_phone_number(phone), code)

    return auth_bp


__all__ = ["create_auth_blueprint"]
