import logging

from flask import Blueprint, request
from flask_jwt_extended import create_access_token, jwt_required
from utils.decorators import current_user_id, rate_limit
from utils.errors import error_response, success_response
from utils.services import get_auth_service

logger = logging.getLogger(__name__)
auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _body() -> dict:
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _session_user(user: dict) -> dict:
    """Summary of the signed-in user returned next to a token."""
    return {
        "user_id": user["user_id"],
        "phone_number": user["phone_number"],
        "is_phone_verified": user["is_phone_verified"],
        "is_profile_complete": user["is_profile_complete"],
        "role": user["role"],
    }


@auth_bp.route("/send-verification", methods=["POST"])
@rate_limit()
def api_send_verification():
    """Send an SMS code to a phone that is not registered yet."""
    try:
        result = get_auth_service().send_verification(_body().get("phone_number"))
        return success_response("Verification code sent successfully", **result)
    except Exception as e:
        return error_response(e, "sending verification code")


@auth_bp.route("/resend-verification", methods=["POST"])
@rate_limit()
def api_resend_verification():
    try:
        result = get_auth_service().resend_verification(_body().get("phone_number"))
        return success_response("Verification code resent successfully", **result)
    except Exception as e:
        return error_response(e, "resending verification code")


@auth_bp.route("/verify-phone", methods=["POST"])
def api_verify_phone():
    try:
        data = _body()
        result = get_auth_service().verify_phone(
            data.get("phone_number"), data.get("verification_code")
        )
        return success_response("Phone number verified successfully", **result)
    except Exception as e:
        return error_response(e, "verifying phone number")


@auth_bp.route("/register", methods=["POST"])
def api_register():
    """Register a new user with a verified phone and a 4-digit PIN."""
    try:
        data = _body()
        user = get_auth_service().register_user(data.get("phone_number"), data.get("pin"))

        # Create access token for immediate login
        access_token = create_access_token(identity=str(user["user_id"]))
        return success_response(
            "User registered successfully",
            201,
            token=access_token,
            user=_session_user(user),
        )
    except Exception as e:
        return error_response(e, "registering user")


@auth_bp.route("/login", methods=["POST"])
def api_login():
    try:
        data = _body()
        user = get_auth_service().login(data.get("phone_number"), data.get("pin"))

        access_token = create_access_token(identity=str(user["user_id"]))
        return success_response("Login successful", token=access_token, user=_session_user(user))
    except Exception as e:
        return error_response(e, "logging in")


@auth_bp.route("/check-phone", methods=["POST"])
def api_check_phone():
    try:
        phone_number = _body().get("phone_number")
        exists = get_auth_service().check_phone_exists(phone_number)
        return success_response(phone_number=phone_number.strip(), exists=exists)
    except Exception as e:
        return error_response(e, "checking phone number")


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def api_me():
    try:
        user = get_auth_service().get_current_user(current_user_id())
        return success_response(user=user)
    except Exception as e:
        return error_response(e, "fetching current user")


@auth_bp.route("/complete-profile", methods=["PUT"])
@jwt_required()
def api_complete_profile():
    try:
        user = get_auth_service().complete_profile(current_user_id(), _body())
        return success_response("Profile completed successfully", user=user)
    except Exception as e:
        return error_response(e, "completing profile")


@auth_bp.route("/change-pin", methods=["PUT"])
@jwt_required()
def api_change_pin():
    try:
        data = _body()
        get_auth_service().change_pin(
            current_user_id(), data.get("current_pin"), data.get("new_pin")
        )
        return success_response("PIN changed successfully")
    except Exception as e:
        return error_response(e, "changing PIN")
