"""Unit tests for authentication services."""

from unittest.mock import Mock

import pytest
from shared.errors import AuthenticationError, ConflictError, NotFoundError, ValidationError

from services.auth.auth_service import AuthService, public_user
from services.auth.user_service import UserService

PHONE = "+15551234567"


@pytest.fixture
def mock_user_service():
    """Create a mock UserService."""
    return Mock(spec=UserService)


@pytest.fixture
def mock_verification_service():
    """Create a mock PhoneVerificationService."""
    return Mock()


@pytest.fixture
def auth_service(mock_user_service, mock_verification_service):
    """Create an AuthService instance with mocked dependencies."""
    return AuthService(
        user_service=mock_user_service, verification_service=mock_verification_service
    )


@pytest.fixture
def stored_user():
    return {
        "user_id": 11,
        "phone_number": PHONE,
        "pin_hash": "$2b$12$hashed_pin",
        "is_active": True,
        "is_profile_complete": False,
        "role": "user",
    }


class TestAuthService:
    """Test cases for AuthService."""

    def test_init_requires_user_service(self, mock_verification_service):
        """Test that AuthService requires a UserService."""
        with pytest.raises(ValueError, match="UserService is required"):
            AuthService(user_service=None, verification_service=mock_verification_service)

    def test_init_requires_verification_service(self, mock_user_service):
        """Test that AuthService requires a verification service."""
        with pytest.raises(ValueError, match="PhoneVerificationService is required"):
            AuthService(user_service=mock_user_service, verification_service=None)

    def test_public_user_strips_pin_hash(self, stored_user):
        """Test that the PIN hash never leaves the service."""
        assert "pin_hash" not in public_user(stored_user)

    def test_send_verification(self, auth_service, mock_user_service, mock_verification_service):
        """Test sending a code to an unregistered phone."""
        mock_user_service.phone_exists.return_value = False
        mock_verification_service.send_code.return_value = {
            "provider_ref": "VE123",
            "mode": "provider",
        }

        result = auth_service.send_verification(f" {PHONE} ")

        assert result == {"phone_number": PHONE, "provider_ref": "VE123", "mode": "provider"}
        mock_verification_service.send_code.assert_called_once_with(PHONE)

    def test_send_verification_registered_phone(
        self, auth_service, mock_user_service, mock_verification_service
    ):
        """Test that registered phones get no code."""
        mock_user_service.phone_exists.return_value = True

        with pytest.raises(ConflictError, match="already registered"):
            auth_service.send_verification(PHONE)
        mock_verification_service.send_code.assert_not_called()

    def test_verify_phone_requires_both_fields(self, auth_service):
        """Test verify_phone input validation."""
        with pytest.raises(ValidationError, match="verification code are required"):
            auth_service.verify_phone(PHONE, "")

    def test_verify_phone(self, auth_service, mock_verification_service):
        """Test a successful verification."""
        result = auth_service.verify_phone(PHONE, "123456")

        assert result == {"phone_number": PHONE, "is_verified": True}
        mock_verification_service.verify_code.assert_called_once_with(PHONE, "123456")

    def test_register_requires_verified_phone(
        self, auth_service, mock_user_service, mock_verification_service
    ):
        """Test that registration needs a verified phone."""
        mock_verification_service.is_phone_verified.return_value = False

        with pytest.raises(ValidationError, match="must be verified before registration"):
            auth_service.register_user(PHONE, "1234")
        mock_user_service.create_user.assert_not_called()

    def test_register_rejects_bad_pin(self, auth_service, mock_verification_service):
        """Test PIN validation before any lookup."""
        with pytest.raises(ValidationError, match="4 digits"):
            auth_service.register_user(PHONE, "12")
        mock_verification_service.is_phone_verified.assert_not_called()

    def test_register_user(
        self, auth_service, mock_user_service, mock_verification_service, stored_user
    ):
        """Test successful registration returns the public user."""
        mock_verification_service.is_phone_verified.return_value = True
        mock_user_service.create_user.return_value = 11
        mock_user_service.get_user_by_id.return_value = stored_user

        user = auth_service.register_user(PHONE, "1234")

        assert user["user_id"] == 11
        assert "pin_hash" not in user
        mock_user_service.create_user.assert_called_once_with(PHONE, "1234")

    def test_login_success(self, auth_service, mock_user_service, stored_user):
        """Test a successful login."""
        mock_user_service.get_user_by_phone.return_value = stored_user
        mock_user_service.verify_pin.return_value = True

        user = auth_service.login(PHONE, "1234")

        assert user["user_id"] == 11
        assert "pin_hash" not in user
        mock_user_service.update_last_login.assert_called_once_with(11)

    def test_login_unknown_phone(self, auth_service, mock_user_service):
        """Test that unknown phones give the generic error."""
        mock_user_service.get_user_by_phone.return_value = None

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            auth_service.login(PHONE, "1234")

    def test_login_wrong_pin(self, auth_service, mock_user_service, stored_user):
        """Test that a wrong PIN gives the same generic error."""
        mock_user_service.get_user_by_phone.return_value = stored_user
        mock_user_service.verify_pin.return_value = False

        with pytest.raises(AuthenticationError, match="Invalid credentials"):
            auth_service.login(PHONE, "9999")
        mock_user_service.update_last_login.assert_not_called()

    def test_login_deactivated(self, auth_service, mock_user_service, stored_user):
        """Test that deactivated accounts cannot log in."""
        stored_user["is_active"] = False
        mock_user_service.get_user_by_phone.return_value = stored_user

        with pytest.raises(AuthenticationError, match="deactivated"):
            auth_service.login(PHONE, "1234")

    def test_login_survives_last_login_failure(
        self, auth_service, mock_user_service, stored_user
    ):
        """Test that a failed last-login update does not block the login."""
        mock_user_service.get_user_by_phone.return_value = stored_user
        mock_user_service.verify_pin.return_value = True
        mock_user_service.update_last_login.side_effect = Exception("DB error")

        assert auth_service.login(PHONE, "1234")["user_id"] == 11

    def test_get_current_user_missing(self, auth_service, mock_user_service):
        """Test that a deleted user behind a valid token is 404."""
        mock_user_service.get_user_by_id.return_value = None

        with pytest.raises(NotFoundError):
            auth_service.get_current_user(11)

    def test_complete_profile_passes_fields(self, auth_service, mock_user_service, stored_user):
        """Test that profile fields are forwarded to the user directory."""
        mock_user_service.complete_profile.return_value = stored_user

        auth_service.complete_profile(11, {"full_name": "Casey", "email": "c@example.com"})

        mock_user_service.complete_profile.assert_called_once_with(
            11,
            full_name="Casey",
            email="c@example.com",
            location=None,
            date_of_birth=None,
            profile_image=None,
        )


class TestChangePin:
    """Test cases for AuthService.change_pin."""

    def test_same_pin_rejected(self, auth_service):
        """Test that the new PIN must differ."""
        with pytest.raises(ValidationError, match="must be different"):
            auth_service.change_pin(11, "1234", "1234")

    def test_wrong_current_pin(self, auth_service, mock_user_service, stored_user):
        """Test that the current PIN is checked."""
        mock_user_service.get_user_by_id.return_value = stored_user
        mock_user_service.verify_pin.return_value = False

        with pytest.raises(AuthenticationError, match="Current PIN is incorrect"):
            auth_service.change_pin(11, "1234", "5678")
        mock_user_service.update_pin.assert_not_called()

    def test_change_pin(self, auth_service, mock_user_service, stored_user):
        """Test a successful PIN change."""
        mock_user_service.get_user_by_id.return_value = stored_user
        mock_user_service.verify_pin.return_value = True

        auth_service.change_pin(11, "1234", "5678")

        mock_user_service.update_pin.assert_called_once_with(11, "5678")

    def test_is_admin(self, auth_service):
        """Test the admin role check."""
        assert auth_service.is_admin({"role": "admin"}) is True
        assert auth_service.is_admin({"role": "user"}) is False
