"""Authentication service: phone verification, registration and login."""

import logging
from typing import Any

from shared.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError

from .user_service import UserService, normalize_phone, validate_pin

logger = logging.getLogger(__name__)


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    """User dictionary without the PIN hash."""
    return {k: v for k, v in user.items() if k != "pin_hash"}


class AuthService:
    """Service for authentication operations."""

    def __init__(self, user_service: UserService, verification_service):
        """Initialize the auth service.

        Args:
            user_service: UserService instance for user operations
            verification_service: PhoneVerificationService for SMS codes
        """
        if not user_service:
            raise ValueError("UserService is required")
        if not verification_service:
            raise ValueError("PhoneVerificationService is required")
        self.user_service = user_service
        self.verification_service = verification_service

    def send_verification(self, phone_number: str | None) -> dict[str, Any]:
        """Send a verification code to a phone that is not registered yet.

        Returns:
            Dictionary with ``phone_number``, ``provider_ref`` and ``mode``
            (plus ``verification_code`` in development or fallback mode)

        Raises:
            ValidationError: If the phone number is missing or malformed
            ConflictError: If the phone is already registered
            ProviderError: If Twilio fails without a fallback
        """
        phone = normalize_phone(phone_number)
        if self.user_service.phone_exists(phone):
            raise ConflictError("Phone number already registered")
        result = self.verification_service.send_code(phone)
        return {"phone_number": phone, **result}

    def resend_verification(self, phone_number: str | None) -> dict[str, Any]:
        """Send a fresh code; the newest code is the one checked."""
        return self.send_verification(phone_number)

    def verify_phone(self, phone_number: str | None, code: str | None) -> dict[str, Any]:
        """Check a verification code.

        Raises:
            ValidationError: If either field is missing or the code is rejected
        """
        if not phone_number or not code:
            raise ValidationError("Phone number and verification code are required")
        phone = normalize_phone(phone_number)
        self.verification_service.verify_code(phone, code)
        return {"phone_number": phone, "is_verified": True}

    def register_user(self, phone_number: str | None, pin: str | None) -> dict[str, Any]:
        """Register a new user with a verified phone.

        Returns:
            The created user (without PIN hash)

        Raises:
            ValidationError: If fields are missing, the PIN is malformed or the
                phone has not been verified
            ConflictError: If a user already exists with this phone number
        """
        if not phone_number or not pin:
            raise ValidationError("Phone number and PIN are required")
        phone = normalize_phone(phone_number)
        validate_pin(pin)

        if not self.verification_service.is_phone_verified(phone):
            raise ValidationError("Phone number must be verified before registration")

        user_id = self.user_service.create_user(phone, pin)
        logger.info(f"Registered user {user_id}")
        return public_user(self.user_service.get_user_by_id(user_id))

    def login(self, phone_number: str | None, pin: str | None) -> dict[str, Any]:
        """Authenticate a user by phone number and PIN.

        Returns:
            User dictionary (without PIN hash)

        Raises:
            ValidationError: If either field is missing
            AuthenticationError: If the credentials are wrong or the account
                is deactivated
        """
        if not phone_number or not pin:
            raise ValidationError("Phone number and PIN are required")

        user = self.user_service.get_user_by_phone(phone_number)
        if not user:
            logger.warning(f"Authentication failed: user not found: {phone_number}")
            raise AuthenticationError("Invalid credentials")

        if not user["is_active"]:
            logger.warning(f"Authentication failed: account deactivated: {phone_number}")
            raise AuthenticationError("Account is deactivated")

        if not self.user_service.verify_pin(pin, user["pin_hash"]):
            logger.warning(f"Authentication failed: invalid PIN for user {user['user_id']}")
            raise AuthenticationError("Invalid credentials")

        # Don't fail authentication if last login update fails
        try:
            self.user_service.update_last_login(user["user_id"])
        except Exception as e:
            logger.error(f"Error updating last login: {e}", exc_info=True)

        logger.info(f"User authenticated: {user['user_id']}")
        return public_user(user)

    def check_phone_exists(self, phone_number: str | None) -> bool:
        phone = normalize_phone(phone_number)
        return self.user_service.phone_exists(phone)

    def get_current_user(self, user_id: int) -> dict[str, Any]:
        """Fetch the signed-in user.

        Raises:
            NotFoundError: If the user no longer exists
        """
        user = self.user_service.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        return public_user(user)

    def complete_profile(self, user_id: int, profile: dict[str, Any]) -> dict[str, Any]:
        user = self.user_service.complete_profile(
            user_id,
            full_name=profile.get("full_name"),
            email=profile.get("email"),
            location=profile.get("location"),
            date_of_birth=profile.get("date_of_birth"),
            profile_image=profile.get("profile_image"),
        )
        return public_user(user)

    def change_pin(self, user_id: int, current_pin: str | None, new_pin: str | None) -> None:
        """Change a user's PIN after checking the current one.

        Raises:
            ValidationError: If a PIN is missing or malformed, or the new PIN
                equals the current one
            AuthenticationError: If the current PIN is wrong
            NotFoundError: If the user does not exist
        """
        if not current_pin or not new_pin:
            raise ValidationError("Current PIN and new PIN are required")
        validate_pin(new_pin)
        if current_pin == new_pin:
            raise ValidationError("New PIN must be different from the current PIN")

        user = self.user_service.get_user_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        if not self.user_service.verify_pin(current_pin, user["pin_hash"]):
            raise AuthenticationError("Current PIN is incorrect")

        self.user_service.update_pin(user_id, new_pin)

    def is_admin(self, user: dict[str, Any]) -> bool:
        """Check if user is an admin.

        Args:
            user: User dictionary

        Returns:
            True if user is admin, False otherwise
        """
        return user.get("role") == "admin"
