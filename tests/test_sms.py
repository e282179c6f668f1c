"""
Unit tests for travelog/api/sms.py
"""
from unittest.mock import MagicMock, patch

import pytest
import requests

from travelog.api.errors import UpstreamError
from travelog.api.sms import STATUS_APPROVED, STATUS_PENDING, TwilioVerifyClient, format_phone_number


def _response(status_code=200, payload=None):
    response = MagicMock()
    response.ok = status_code < 400
    response.status_code = status_code
    response.json.return_value = payload or {}
    response.text = "provider said no"
    return response


def _client():
    return TwilioVerifyClient("AC123", "token", "VA456")


class TestFormatPhoneNumber:

    @pytest.mark.parametrize("raw,expected", [
        ("15551234567", "+15551234567"),
        ("+447700900123", "+447700900123"),
        ("  33612345678 ", "+33612345678"),
    ])
    def test_prefix(self, raw, expected):
        assert format_phone_number(raw) == expected


class TestMockMode:

    def test_unconfigured_client_is_mock(self):
        assert TwilioVerifyClient().mock is True

    def test_disabled_overrides_credentials(self):
        assert TwilioVerifyClient("AC123", "token", "VA456", disabled=True).mock is True

    def test_account_sid_must_look_real(self):
        assert TwilioVerifyClient("XX123", "token", "VA456").mock is True

    @patch("travelog.api.sms.requests.post")
    def test_send_is_pending(self, mock_post):
        assert TwilioVerifyClient().send_verification("+15551234567") == STATUS_PENDING
        mock_post.assert_not_called()

    @pytest.mark.parametrize("code,expected", [
        ("123456", STATUS_APPROVED),
        ("12345", STATUS_PENDING),
        ("abcdef", STATUS_PENDING),
    ])
    def test_check(self, code, expected):
        assert TwilioVerifyClient().check_verification("+15551234567", code) == expected


@patch("travelog.api.sms.requests.post")
class TestTwilioRequests:

    def test_send(self, mock_post):
        mock_post.return_value = _response(payload={"status": "pending"})

        status = _client().send_verification("+15551234567")

        assert status == "pending"
        args, kwargs = mock_post.call_args
        assert args[0] == "https://verify.twilio.com/v2/Services/VA456/Verifications"
        assert kwargs["data"] == {"To": "+15551234567", "Channel": "sms"}
        assert kwargs["auth"] == ("AC123", "token")

    def test_check(self, mock_post):
        mock_post.return_value = _response(payload={"status": "approved"})
        assert _client().check_verification("+15551234567", "654321") == STATUS_APPROVED
        args, kwargs = mock_post.call_args
        assert args[0].endswith("/VerificationCheck")
        assert kwargs["data"] == {"To": "+15551234567", "Code": "654321"}

    def test_provider_error(self, mock_post):
        mock_post.return_value = _response(status_code=400)
        with pytest.raises(UpstreamError) as excinfo:
            _client().send_verification("+15551234567")
        assert excinfo.value.status == 400
        assert excinfo.value.message == "SMS verification failed"

    def test_transport_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("no route")
        with pytest.raises(UpstreamError) as excinfo:
            _client().check_verification("+15551234567", "123456")
        assert excinfo.value.status is None
