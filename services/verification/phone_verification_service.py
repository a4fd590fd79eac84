"""Phone number verification over SMS with a local fallback code."""

import logging
from typing import Any

import psycopg2
from shared.database import Database
from shared.errors import PersistenceError, ProviderError, ValidationError

from .queries import (
    DELETE_EXPIRED_VERIFICATIONS,
    GET_LATEST_PENDING_VERIFICATION,
    INCREMENT_VERIFICATION_ATTEMPTS,
    INSERT_PHONE_VERIFICATION,
    INSERT_VERIFIED_VERIFICATION,
    IS_PHONE_VERIFIED,
    MARK_VERIFICATION_VERIFIED,
)
from .twilio_verify_client import TwilioVerifyClient

logger = logging.getLogger(__name__)

# Stored instead of a code when Twilio generated and holds the code
PROVIDER_CODE_PLACEHOLDER = "twilio-verify"
DEV_MODE_REF = "dev-mode"
MAX_ATTEMPTS = 5

# Twilio errors that switch to the fallback code instead of failing:
# 21608 trial account and unverified recipient, 60200 invalid `To` parameter,
# 21211 invalid `To` number, 21408 SMS not enabled for the region
FALLBACK_ERROR_CODES = frozenset({21608, 60200, 21211, 21408})
# Twilio answers 20404 when there is no pending verification to check
NO_PENDING_VERIFICATION_CODE = 20404


class PhoneVerificationService:
    """Service for one-time SMS codes sent before registration."""

    def __init__(
        self,
        database: Database,
        provider: TwilioVerifyClient | None = None,
        fallback_code: str = "000000",
        ttl_seconds: int = 600,
    ):
        """Initialize the verification service.

        Args:
            database: Database connection interface
            provider: Twilio Verify client; None runs in development mode,
                where every phone receives ``fallback_code``
            fallback_code: Code stored when the provider is absent or refuses the phone
            ttl_seconds: How long a code stays valid
        """
        if not database:
            raise ValueError("Database is required")
        self.db = database
        self.provider = provider
        self.fallback_code = fallback_code
        self.ttl_seconds = ttl_seconds

    def send_code(self, phone_number: str) -> dict[str, Any]:
        """Send a verification code to a phone.

        Args:
            phone_number: Recipient phone number

        Returns:
            Dictionary with ``provider_ref`` and ``mode`` ("provider",
            "development" or "fallback"); ``verification_code`` is included
            only when the fallback code was issued

        Raises:
            ProviderError: If Twilio fails with an error that has no fallback
        """
        if self.provider is None:
            logger.info(f"Development mode - use verification code {self.fallback_code} for {phone_number}")
            self._store(phone_number, self.fallback_code, DEV_MODE_REF)
            return {
                "provider_ref": DEV_MODE_REF,
                "mode": "development",
                "verification_code": self.fallback_code,
            }

        try:
            sid = self.provider.send_verification(phone_number)
        except ProviderError as e:
            if e.code not in FALLBACK_ERROR_CODES:
                raise
            provider_ref = f"test-fallback-{e.code}"
            logger.warning(
                f"Twilio refused {phone_number} (error {e.code}); "
                f"falling back to verification code {self.fallback_code}"
            )
            self._store(phone_number, self.fallback_code, provider_ref)
            return {
                "provider_ref": provider_ref,
                "mode": "fallback",
                "verification_code": self.fallback_code,
            }

        self._store(phone_number, PROVIDER_CODE_PLACEHOLDER, sid)
        return {"provider_ref": sid, "mode": "provider"}

    def verify_code(self, phone_number: str, code: str) -> bool:
        """Check a code entered by the user and mark the phone verified.

        A pending record holding a local code (development or fallback) is
        checked locally; otherwise the code is checked with Twilio.

        Returns:
            True once the phone is verified

        Raises:
            ValidationError: If the code is wrong, expired, used up or was never sent
            ProviderError: If Twilio fails
        """
        code = (code or "").strip()
        pending = self._latest_pending(phone_number)

        if pending and pending["verification_code"] != PROVIDER_CODE_PLACEHOLDER:
            return self._verify_locally(pending, code)

        if self.provider is not None:
            try:
                approved = self.provider.check_verification(phone_number, code)
            except ProviderError as e:
                if e.code == NO_PENDING_VERIFICATION_CODE:
                    raise ValidationError(
                        "Verification code has expired or exceeded maximum attempts"
                    ) from e
                raise
            if not approved:
                raise ValidationError("Invalid verification code")
            self._mark_verified(phone_number, pending)
            logger.info(f"Phone {phone_number} verified via Twilio")
            return True

        if not pending:
            raise ValidationError("No verification code found for this phone number")
        return self._verify_locally(pending, code)

    def is_phone_verified(self, phone_number: str) -> bool:
        """Whether the phone has a verified, unexpired verification record."""
        try:
            with self.db.get_cursor() as cur:
                cur.execute(IS_PHONE_VERIFIED, (phone_number,))
                return bool(cur.fetchone()[0])
        except psycopg2.Error as e:
            logger.error(f"Phone verification check error for {phone_number}: {e}", exc_info=True)
            return False

    def cleanup_expired(self) -> int:
        """Delete expired verification records.

        Returns:
            Number of records deleted
        """
        try:
            with self.db.get_cursor() as cur:
                cur.execute(DELETE_EXPIRED_VERIFICATIONS)
                deleted = cur.rowcount
        except psycopg2.Error as e:
            logger.error(f"Error cleaning up verification records: {e}", exc_info=True)
            raise PersistenceError("clean up verification records", e) from e
        logger.info(f"Cleaned up {deleted} expired verification records")
        return deleted

    def _verify_locally(self, pending: dict[str, Any], code: str) -> bool:
        if pending["attempts"] >= MAX_ATTEMPTS or not pending["is_unexpired"]:
            raise ValidationError("Verification code has expired or exceeded maximum attempts")
        matches = pending["verification_code"] == code
        try:
            with self.db.get_cursor() as cur:
                if matches:
                    cur.execute(MARK_VERIFICATION_VERIFIED, (pending["verification_id"],))
                else:
                    cur.execute(INCREMENT_VERIFICATION_ATTEMPTS, (pending["verification_id"],))
        except psycopg2.Error as e:
            logger.error(
                f"Error updating verification for {pending['phone_number']}: {e}", exc_info=True
            )
            raise PersistenceError("update verification record", e) from e

        if not matches:
            logger.info(
                f"Wrong verification code for {pending['phone_number']} "
                f"(attempt {pending['attempts'] + 1})"
            )
            raise ValidationError("Invalid verification code")
        logger.info(f"Phone {pending['phone_number']} verified with local code")
        return True

    def _mark_verified(self, phone_number: str, pending: dict[str, Any] | None) -> None:
        try:
            with self.db.get_cursor() as cur:
                if pending:
                    cur.execute(MARK_VERIFICATION_VERIFIED, (pending["verification_id"],))
                else:
                    cur.execute(
                        INSERT_VERIFIED_VERIFICATION,
                        (phone_number, PROVIDER_CODE_PLACEHOLDER, None, self.ttl_seconds),
                    )
        except psycopg2.Error as e:
            logger.error(f"Error marking {phone_number} verified: {e}", exc_info=True)
            raise PersistenceError("update verification record", e) from e

    def _latest_pending(self, phone_number: str) -> dict[str, Any] | None:
        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_LATEST_PENDING_VERIFICATION, (phone_number,))
                columns = [desc[0] for desc in cur.description]
                row = cur.fetchone()
        except psycopg2.Error as e:
            logger.error(f"Error fetching verification for {phone_number}: {e}", exc_info=True)
            raise PersistenceError("fetch verification record", e) from e
        return dict(zip(columns, row)) if row else None

    def _store(self, phone_number: str, code: str, provider_ref: str) -> int:
        try:
            with self.db.get_cursor() as cur:
                cur.execute(
                    INSERT_PHONE_VERIFICATION,
                    (phone_number, code, provider_ref, self.ttl_seconds),
                )
                return cur.fetchone()[0]
        except psycopg2.Error as e:
            logger.error(f"Error saving verification for {phone_number}: {e}", exc_info=True)
            raise PersistenceError("save verification record", e) from e
