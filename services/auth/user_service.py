"""User directory: accounts, PINs, profiles and notification audiences."""

import logging
import re
from datetime import date
from typing import Any

import bcrypt
import psycopg2
from psycopg2.errors import UniqueViolation
from shared.database import Database
from shared.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from shared.text_match import like_pattern

from .queries import (
    CHECK_PHONE_EXISTS,
    COMPLETE_USER_PROFILE,
    FIND_NOTIFICATION_AUDIENCE,
    GET_USER_BY_ID,
    GET_USER_BY_PHONE,
    INSERT_USER,
    UPDATE_USER_LAST_LOGIN,
    UPDATE_USER_PIN,
)

logger = logging.getLogger(__name__)

PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")
PIN_PATTERN = re.compile(r"^\d{4}$")
EMAIL_PATTERN = re.compile(r"^\w+([.-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,3})+$")
FULL_NAME_MAX_LENGTH = 100
LOCATION_MAX_LENGTH = 200


def normalize_phone(phone_number: str | None) -> str:
    """Strip a phone number and check its format.

    Raises:
        ValidationError: If the phone number is missing or malformed
    """
    phone = (phone_number or "").strip()
    if not phone:
        raise ValidationError("Phone number is required")
    if not PHONE_PATTERN.match(phone):
        raise ValidationError("Please enter a valid phone number")
    return phone


def validate_pin(pin: Any) -> str:
    if not isinstance(pin, str) or not PIN_PATTERN.match(pin):
        raise ValidationError("PIN must be exactly 4 digits")
    return pin


class UserService:
    """Service for user management and authentication."""

    def __init__(self, database: Database):
        """Initialize the user service.

        Args:
            database: Database connection interface
        """
        if not database:
            raise ValueError("Database is required")
        self.db = database

    def create_user(self, phone_number: str, pin: str, role: str = "user") -> int:
        """Create a new user account with a verified phone number.

        Args:
            phone_number: Unique phone number
            pin: 4-digit PIN (will be hashed)
            role: User role ('user' or 'admin'), defaults to 'user'

        Returns:
            User ID of the created user

        Raises:
            ValidationError: If the phone number, PIN or role is invalid
            ConflictError: If a user already exists with this phone number
        """
        phone = normalize_phone(phone_number)
        validate_pin(pin)
        if role not in ("user", "admin"):
            raise ValidationError("Role must be 'user' or 'admin'")

        if self.phone_exists(phone):
            raise ConflictError("User already exists with this phone number")

        pin_hash = self._hash_pin(pin)
        try:
            with self.db.get_cursor() as cur:
                cur.execute(INSERT_USER, (phone, pin_hash, role))
                user_id = cur.fetchone()[0]
        except UniqueViolation as e:
            raise ConflictError("User already exists with this phone number") from e
        except psycopg2.Error as e:
            logger.error(f"Error creating user {phone}: {e}", exc_info=True)
            raise PersistenceError("create user account", e) from e

        logger.info(f"Created user {user_id} for phone {phone}")
        return user_id

    def get_user_by_phone(self, phone_number: str) -> dict[str, Any] | None:
        """Get user by phone number.

        Args:
            phone_number: Phone number to lookup

        Returns:
            User dictionary or None if not found
        """
        with self.db.get_cursor() as cur:
            cur.execute(GET_USER_BY_PHONE, (phone_number.strip(),))
            columns = [desc[0] for desc in cur.description]
            row = cur.fetchone()

            if not row:
                return None

            return dict(zip(columns, row))

    def get_user_by_id(self, user_id: int) -> dict[str, Any] | None:
        """Get user by ID.

        Args:
            user_id: User ID to lookup

        Returns:
            User dictionary or None if not found
        """
        with self.db.get_cursor() as cur:
            cur.execute(GET_USER_BY_ID, (user_id,))
            columns = [desc[0] for desc in cur.description]
            row = cur.fetchone()

            if not row:
                return None

            return dict(zip(columns, row))

    def phone_exists(self, phone_number: str) -> bool:
        with self.db.get_cursor() as cur:
            cur.execute(CHECK_PHONE_EXISTS, (phone_number.strip(),))
            return bool(cur.fetchone()[0])

    def verify_pin(self, pin: str, pin_hash: str) -> bool:
        """Verify a PIN against a hash.

        Args:
            pin: Plain text PIN
            pin_hash: Bcrypt PIN hash

        Returns:
            True if the PIN matches, False otherwise
        """
        try:
            return bcrypt.checkpw(pin.encode("utf-8"), pin_hash.encode("utf-8"))
        except (TypeError, ValueError) as e:
            logger.error(f"Error verifying PIN: {e}", exc_info=True)
            return False

    def update_last_login(self, user_id: int) -> None:
        """Update user's last login timestamp.

        Args:
            user_id: User ID to update
        """
        try:
            with self.db.get_cursor() as cur:
                cur.execute(UPDATE_USER_LAST_LOGIN, (user_id,))
        except Exception as e:
            logger.error(f"Error updating last login for user {user_id}: {e}", exc_info=True)
            raise

    def update_pin(self, user_id: int, new_pin: str) -> None:
        """Replace a user's PIN.

        Raises:
            ValidationError: If the PIN is not 4 digits
            NotFoundError: If the user does not exist
        """
        validate_pin(new_pin)
        pin_hash = self._hash_pin(new_pin)
        try:
            with self.db.get_cursor() as cur:
                cur.execute(UPDATE_USER_PIN, (pin_hash, user_id))
                if cur.rowcount == 0:
                    raise NotFoundError("User not found")
        except psycopg2.Error as e:
            logger.error(f"Error updating PIN for user {user_id}: {e}", exc_info=True)
            raise PersistenceError("change PIN", e) from e
        logger.info(f"Updated PIN for user {user_id}")

    def complete_profile(
        self,
        user_id: int,
        full_name: str | None,
        email: str | None,
        location: str | None = None,
        date_of_birth: Any = None,
        profile_image: str | None = None,
    ) -> dict[str, Any]:
        """Fill in a user's profile and mark it complete.

        Location, date of birth and image are optional; when omitted the
        stored values are kept.

        Args:
            user_id: User to update
            full_name: Display name (required, at most 100 characters)
            email: Contact email (required)
            location: Free-text area, used to match nearby jobs
            date_of_birth: ISO date string or date
            profile_image: Relative path of an already-uploaded image

        Returns:
            The updated user

        Raises:
            ValidationError: If a field is missing or malformed
            NotFoundError: If the user does not exist
        """
        full_name = (full_name or "").strip()
        email = (email or "").strip().lower()
        if not full_name or not email:
            raise ValidationError("Full name and email are required")
        if len(full_name) > FULL_NAME_MAX_LENGTH:
            raise ValidationError("Full name cannot be more than 100 characters")
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Please enter a valid email address")

        location = location.strip() if isinstance(location, str) and location.strip() else None
        if location and len(location) > LOCATION_MAX_LENGTH:
            raise ValidationError("Location cannot be more than 200 characters")

        if date_of_birth and not isinstance(date_of_birth, date):
            try:
                date_of_birth = date.fromisoformat(str(date_of_birth)[:10])
            except ValueError as e:
                raise ValidationError("Date of birth must be a valid date (YYYY-MM-DD)") from e

        try:
            with self.db.get_cursor() as cur:
                cur.execute(
                    COMPLETE_USER_PROFILE,
                    (
                        full_name,
                        email,
                        location,
                        date_of_birth or None,
                        profile_image or None,
                        user_id,
                    ),
                )
                if cur.rowcount == 0:
                    raise NotFoundError("User not found")
        except psycopg2.Error as e:
            logger.error(f"Error updating profile for user {user_id}: {e}", exc_info=True)
            raise PersistenceError("update profile", e) from e

        logger.info(f"Completed profile for user {user_id}")
        return self.get_user_by_id(user_id)

    def find_notification_audience(
        self, tokens: list[str], exclude_user_id: int | None = None
    ) -> list[dict[str, Any]]:
        """Find users whose profile location mentions any of the tokens.

        Only active users with a complete profile qualify.

        Args:
            tokens: Address strings (case-insensitive substring match)
            exclude_user_id: User to leave out, typically the job poster

        Returns:
            List of dictionaries with ``user_id``, ``full_name`` and ``location``
        """
        patterns = [like_pattern(token) for token in tokens if token and token.strip()]
        if not patterns:
            return []
        with self.db.get_cursor() as cur:
            cur.execute(FIND_NOTIFICATION_AUDIENCE, (patterns, exclude_user_id, exclude_user_id))
            columns = [desc[0] for desc in cur.description]
            users = [dict(zip(columns, row)) for row in cur.fetchall()]

        logger.debug(f"Found {len(users)} user(s) matching {len(patterns)} address token(s)")
        return users

    def _hash_pin(self, pin: str) -> str:
        """Hash a PIN using bcrypt.

        Args:
            pin: Plain text PIN

        Returns:
            Bcrypt PIN hash
        """
        return bcrypt.hashpw(pin.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
