import logging

from flask import jsonify
from shared.errors import MarketplaceError, PersistenceError

logger = logging.getLogger(__name__)


def _sanitize_error_message(error: Exception) -> str:
    """Sanitize error messages to avoid leaking sensitive information.

    Args:
        error: Exception object

    Returns:
        Sanitized error message safe for client display
    """
    error_str = str(error).lower()

    # Remove potential file paths
    if "/" in str(error) or "\\" in str(error):
        return "File operation failed. Please check file permissions."

    # Remove database connection strings
    if "password" in error_str or "connection" in error_str or "database" in error_str:
        return "Database operation failed. Please try again."

    # Remove API keys
    if "api" in error_str and ("key" in error_str or "token" in error_str):
        return "API authentication failed. Please check configuration."

    # Generic fallback for unknown errors
    return "An unexpected error occurred. Please try again later."


def success_response(message: str | None = None, status_code: int = 200, **data):
    """Build a ``{"status": "success", ...}`` JSON response."""
    body = {"status": "success"}
    if message:
        body["message"] = message
    if data:
        body["data"] = data
    return jsonify(body), status_code


def error_response(error: Exception, action: str = "handling request"):
    """Translate an exception into a ``{"status": "error", ...}`` JSON response.

    Marketplace errors answer with their own status and message; anything
    else is logged and reported as a sanitized 500.

    Args:
        error: The exception raised by a service
        action: What the endpoint was doing, for the log line
    """
    if isinstance(error, MarketplaceError):
        body = {"status": "error", "message": error.message}
        if isinstance(error, PersistenceError):
            logger.error(f"Error {action}: {error.detail}")
            body["error"] = error.detail
        return jsonify(body), error.status_code

    logger.error(f"Error {action}: {error}", exc_info=True)
    return jsonify({"status": "error", "message": _sanitize_error_message(error)}), 500
