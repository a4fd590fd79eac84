"""Twilio Verify REST API client for sending and checking SMS codes."""

import logging
from typing import Any

import requests
from requests.auth import HTTPBasicAuth
from shared.errors import ProviderError

logger = logging.getLogger(__name__)

TWILIO_VERIFY_URL = "https://verify.twilio.com/v2"
PLACEHOLDER_SERVICE_ID = "your-verify-service-id"


class TwilioVerifyClient:
    """Client for the Twilio Verify v2 API."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        service_id: str,
        api_url: str = TWILIO_VERIFY_URL,
        timeout: int = 15,
    ):
        """Initialize the Twilio Verify client.

        Args:
            account_sid: Twilio account SID (starts with "AC")
            auth_token: Twilio auth token
            service_id: Verify service SID
            api_url: Base URL of the Verify API
            timeout: Request timeout in seconds
        """
        self.api_url = api_url.rstrip("/")
        self.service_id = service_id
        self.timeout = timeout
        self.auth = HTTPBasicAuth(account_sid, auth_token)

    def send_verification(self, phone_number: str, channel: str = "sms") -> str:
        """Start a verification; Twilio generates and texts the code.

        Args:
            phone_number: Recipient phone number
            channel: Delivery channel

        Returns:
            Verification SID

        Raises:
            ProviderError: If Twilio rejects the request (carries the Twilio error code)
        """
        url = f"{self.api_url}/Services/{self.service_id}/Verifications"
        result = self._post(url, {"To": phone_number, "Channel": channel})
        logger.info(f"Twilio verification started for {phone_number}: sid={result.get('sid')}")
        return result["sid"]

    def check_verification(self, phone_number: str, code: str) -> bool:
        """Check a code the user typed in.

        Returns:
            True when Twilio approves the code, False otherwise

        Raises:
            ProviderError: If Twilio rejects the request
        """
        url = f"{self.api_url}/Services/{self.service_id}/VerificationCheck"
        result = self._post(url, {"To": phone_number, "Code": code})
        approved = result.get("status") == "approved"
        logger.info(f"Twilio verification check for {phone_number}: status={result.get('status')}")
        return approved

    def _post(self, url: str, data: dict[str, str]) -> dict[str, Any]:
        try:
            response = requests.post(url, data=data, auth=self.auth, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.error(f"Timeout calling Twilio Verify: {url}")
            raise ProviderError("Verification provider timed out") from e
        except requests.exceptions.RequestException as e:
            logger.error(f"Error calling Twilio Verify: {e}", exc_info=True)
            raise ProviderError("Verification provider is unreachable") from e

        if response.status_code >= 400:
            raise self._error_from_response(response)
        return response.json()

    @staticmethod
    def _error_from_response(response: requests.Response) -> ProviderError:
        try:
            body = response.json()
        except ValueError:
            body = {}
        code = body.get("code")
        message = body.get("message") or f"Twilio request failed with HTTP {response.status_code}"
        logger.error(
            f"Twilio Verify error: code={code} status={response.status_code} "
            f"message={message} more_info={body.get('more_info')}"
        )
        suffix = f" (Twilio Error {code})" if code else ""
        return ProviderError(f"{message}{suffix}", code=code)


def create_twilio_verify_client(
    account_sid: str | None, auth_token: str | None, service_id: str | None
) -> TwilioVerifyClient | None:
    """Build a client when Twilio is fully configured.

    Returns:
        TwilioVerifyClient, or None when credentials are missing, the account
        SID is malformed or the service id is still the placeholder
    """
    if not account_sid or not auth_token or not account_sid.startswith("AC"):
        logger.warning("Twilio client NOT initialized - missing credentials or invalid SID")
        return None
    if not service_id or service_id == PLACEHOLDER_SERVICE_ID:
        logger.warning("Twilio client NOT initialized - Verify service id is not configured")
        return None
    logger.info("Twilio Verify client initialized")
    return TwilioVerifyClient(account_sid, auth_token, service_id)
