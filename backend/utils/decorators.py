import logging
import threading
from datetime import datetime
from functools import wraps

from flask import current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required

from .services import get_user_service

logger = logging.getLogger(__name__)

# Rate limiting storage (in-memory, resets on restart)
_rate_limit_storage: dict[str, list[float]] = {}
_rate_limit_lock = threading.Lock()


def current_user_id() -> int | None:
    """Return the authenticated user's id, or None for anonymous requests."""
    identity = get_jwt_identity()
    return int(identity) if identity is not None else None


def _evict_idle_clients(endpoint: str, now: float, window: float) -> None:
    """Drop keys of one endpoint whose calls all fell out of the window.

    Caller must hold ``_rate_limit_lock``.
    """
    suffix = f":{endpoint}"
    idle = [
        key
        for key, timestamps in _rate_limit_storage.items()
        if key.endswith(suffix) and (not timestamps or now - timestamps[-1] >= window)
    ]
    for key in idle:
        del _rate_limit_storage[key]


def rate_limit(max_calls: int | None = None, window_seconds: int | None = None):
    """Simple rate limiting decorator keyed by client address.

    Args:
        max_calls: Maximum number of calls allowed (default OTP_RATE_LIMIT_CALLS)
        window_seconds: Time window in seconds (default OTP_RATE_LIMIT_WINDOW_SECONDS)
    """

    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            calls = max_calls or current_app.config["OTP_RATE_LIMIT_CALLS"]
            window = window_seconds or current_app.config["OTP_RATE_LIMIT_WINDOW_SECONDS"]
            client = request.headers.get("X-Forwarded-For", request.remote_addr or "unknown")
            client = client.split(",")[0].strip()

            # Use client + endpoint as key
            key = f"{client}:{f.__name__}"
            now = datetime.now().timestamp()

            with _rate_limit_lock:
                _evict_idle_clients(f.__name__, now, window)

                # Clean old entries
                recent = [
                    timestamp
                    for timestamp in _rate_limit_storage.get(key, [])
                    if now - timestamp < window
                ]

                # Check rate limit
                if len(recent) >= calls:
                    _rate_limit_storage[key] = recent
                    logger.warning(f"Rate limit exceeded for {client} on {f.__name__}")
                    return jsonify(
                        {
                            "status": "error",
                            "message": f"Too many requests. Maximum {calls} requests per {window} seconds.",
                        }
                    ), 429

                # Record this call
                recent.append(now)
                _rate_limit_storage[key] = recent

            return f(*args, **kwargs)

        return decorated_function

    return decorator


def admin_required(f):
    """Decorator to require admin role."""

    @wraps(f)
    @jwt_required()
    def decorated_function(*args, **kwargs):
        user_service = get_user_service()
        user = user_service.get_user_by_id(current_user_id())

        if not user or user.get("role") != "admin":
            return jsonify({"status": "error", "message": "Admin access required"}), 403
        return f(*args, **kwargs)

    return decorated_function
