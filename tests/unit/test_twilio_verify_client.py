"""Unit tests for TwilioVerifyClient."""

from unittest.mock import MagicMock, patch

import pytest
import requests
from shared.errors import ProviderError

from services.verification.twilio_verify_client import (
    TwilioVerifyClient,
    create_twilio_verify_client,
)

POST = "services.verification.twilio_verify_client.requests.post"


@pytest.fixture
def client():
    """TwilioVerifyClient with test credentials."""
    return TwilioVerifyClient("ACtest", "token", "VAservice")


def _response(status_code=200, body=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = body or {}
    return response


class TestTwilioVerifyClient:
    """Tests for send_verification and check_verification."""

    def test_send_verification(self, client):
        """A started verification returns its SID."""
        with patch(POST) as m:
            m.return_value = _response(201, {"sid": "VE123", "status": "pending"})
            sid = client.send_verification("+15551234567")
        assert sid == "VE123"
        url = m.call_args[0][0]
        assert url == "https://verify.twilio.com/v2/Services/VAservice/Verifications"
        assert m.call_args[1]["data"] == {"To": "+15551234567", "Channel": "sms"}
        assert m.call_args[1]["timeout"] == 15

    def test_check_verification_approved(self, client):
        """An approved check returns True."""
        with patch(POST) as m:
            m.return_value = _response(200, {"status": "approved"})
            assert client.check_verification("+15551234567", "123456") is True
        assert m.call_args[0][0].endswith("/VerificationCheck")
        assert m.call_args[1]["data"] == {"To": "+15551234567", "Code": "123456"}

    def test_check_verification_pending(self, client):
        """A wrong code leaves the verification pending."""
        with patch(POST) as m:
            m.return_value = _response(200, {"status": "pending"})
            assert client.check_verification("+15551234567", "000001") is False

    def test_error_carries_twilio_code(self, client):
        """Twilio error bodies become ProviderError with the numeric code."""
        with patch(POST) as m:
            m.return_value = _response(
                400, {"code": 21608, "message": "The number is unverified"}
            )
            with pytest.raises(ProviderError, match=r"Twilio Error 21608") as exc_info:
                client.send_verification("+15551234567")
        assert exc_info.value.code == 21608

    def test_error_without_json_body(self, client):
        """Non-JSON error bodies still raise ProviderError."""
        response = _response(503)
        response.json.side_effect = ValueError("no json")
        with patch(POST, return_value=response):
            with pytest.raises(ProviderError, match="HTTP 503") as exc_info:
                client.send_verification("+15551234567")
        assert exc_info.value.code is None

    def test_timeout(self, client):
        """Timeouts are provider errors."""
        with patch(POST, side_effect=requests.exceptions.Timeout("slow")):
            with pytest.raises(ProviderError, match="timed out"):
                client.check_verification("+15551234567", "123456")

    def test_connection_error(self, client):
        """Network failures are provider errors."""
        with patch(POST, side_effect=requests.exceptions.ConnectionError("down")):
            with pytest.raises(ProviderError, match="unreachable"):
                client.send_verification("+15551234567")


class TestCreateTwilioVerifyClient:
    """Tests for create_twilio_verify_client."""

    @pytest.mark.parametrize(
        "sid,token,service_id",
        [
            (None, "token", "VAservice"),
            ("ACtest", "", "VAservice"),
            ("XXtest", "token", "VAservice"),
            ("ACtest", "token", None),
            ("ACtest", "token", "your-verify-service-id"),
        ],
    )
    def test_incomplete_configuration(self, sid, token, service_id):
        """Missing or placeholder settings give no client."""
        assert create_twilio_verify_client(sid, token, service_id) is None

    def test_complete_configuration(self):
        """A full configuration builds a client."""
        client = create_twilio_verify_client("ACtest", "token", "VAservice")
        assert isinstance(client, TwilioVerifyClient)
        assert client.service_id == "VAservice"
