"""Error types shared by the marketplace services.

Each error carries the HTTP status the request handlers answer with, so the
blueprints can translate any of them with a single ``except`` clause.
"""

from __future__ import annotations


class MarketplaceError(Exception):
    """Base class for expected, user-visible failures."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    """Missing, malformed or out-of-range input."""

    status_code = 400


class AuthenticationError(MarketplaceError):
    """Unknown phone number, wrong PIN or deactivated account."""

    status_code = 401


class AuthorizationError(MarketplaceError):
    """The actor is not allowed to touch the resource (not the owner)."""

    status_code = 403


class NotFoundError(MarketplaceError):
    """The requested job, location, notification or user does not exist."""

    status_code = 404


class ConflictError(MarketplaceError):
    """Duplicate location name, already-registered phone number, etc."""

    status_code = 409


class ProviderError(MarketplaceError):
    """The SMS verification backend rejected or failed a request."""

    status_code = 502

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class PersistenceError(MarketplaceError):
    """Unexpected datastore failure; the driver message travels in ``detail``."""

    status_code = 500

    def __init__(self, action: str, error: Exception):
        super().__init__(f"Failed to {action}")
        self.action = action
        self.detail = str(error)
