# travelog/api/sms.py
"""Phone verification through the Twilio Verify REST API."""

import logging

import requests

from travelog.api.errors import UpstreamError

logger = logging.getLogger(__name__)

TWILIO_VERIFY_URL = "https://verify.twilio.com/v2/Services/{service_sid}"
STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"


def format_phone_number(phone_number: str) -> str:
    phone_number = phone_number.strip()
    return phone_number if phone_number.startswith("+") else f"+{phone_number}"


class TwilioVerifyClient:
    """Sends and checks one-time codes.

    Without credentials (or with ``disabled=True``) the client runs in mock
    mode: sends report ``pending`` and any 6-digit code is approved.
    """

    def __init__(
        self,
        account_sid: str = "",
        auth_token: str = "",
        verify_service_sid: str = "",
        disabled: bool = False,
        timeout: float = 10.0,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.verify_service_sid = verify_service_sid
        self.timeout = timeout
        self.mock = disabled or not (account_sid.startswith("AC") and auth_token and verify_service_sid)
        if disabled:
            logger.info("Twilio verification is disabled by configuration")
        elif self.mock:
            logger.warning("Missing Twilio environment variables, falling back to mock mode")

    def _post(self, path: str, data: dict) -> str:
        url = TWILIO_VERIFY_URL.format(service_sid=self.verify_service_sid) + path
        try:
            response = requests.post(
                url,
                data=data,
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Twilio request failed: {e}")
            raise UpstreamError(None, str(e), message="SMS verification service unavailable") from e
        if not response.ok:
            logger.error(f"Twilio error {response.status_code}: {response.text[:200]}")
            raise UpstreamError(response.status_code, response.text, message="SMS verification failed")
        return response.json().get("status", "")

    def send_verification(self, phone_number: str) -> str:
        """Start an SMS verification and return its status."""
        if self.mock:
            logger.info("Using mock verification mode")
            return STATUS_PENDING
        return self._post("/Verifications", {"To": phone_number, "Channel": "sms"})

    def check_verification(self, phone_number: str, code: str) -> str:
        """Check a code and return the provider status (``approved`` on success)."""
        if self.mock:
            logger.info("Using mock verification mode")
            return STATUS_APPROVED if len(code) == 6 and code.isdigit() else STATUS_PENDING
        return self._post("/VerificationCheck", {"To": phone_number, "Code": code})


__all__ = ["TwilioVerifyClient", "format_phone_number", "STATUS_APPROVED", "STATUS_PENDING"]
