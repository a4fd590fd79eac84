"""Service for users' saved locations."""

import logging
from typing import Any

import psycopg2
from psycopg2.errors import UniqueViolation
from shared.database import Database
from shared.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

from .queries import (
    DELETE_LOCATION,
    GET_LOCATION_BY_ID,
    GET_LOCATION_BY_NAME,
    GET_USER_LOCATIONS,
    INSERT_LOCATION,
)

logger = logging.getLogger(__name__)

NAME_MAX_LENGTH = 100
ADDRESS_DETAILS_MAX_LENGTH = 500


def _is_number(value: Any) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _duplicate_name(name: str) -> ConflictError:
    return ConflictError(
        f'Location with name "{name}" already exists. Please choose a different name.'
    )


class LocationService:
    """Service for saving, listing and deleting favourite addresses."""

    def __init__(self, database: Database):
        """Initialize the location service.

        Args:
            database: Database connection interface
        """
        if not database:
            raise ValueError("Database is required")
        self.db = database

    def save_location(self, user_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        """Save a named address for a user.

        Args:
            user_id: Owner of the location
            payload: ``name``, ``full_address``, ``latitude``, ``longitude`` and
                optional ``address_details``

        Returns:
            The saved location

        Raises:
            ValidationError: If a field is missing or out of range
            ConflictError: If the user already has a location with this name
        """
        name = (payload.get("name") or "").strip()
        full_address = (payload.get("full_address") or "").strip()
        latitude = payload.get("latitude")
        longitude = payload.get("longitude")
        address_details = (payload.get("address_details") or "").strip()

        if not name or not full_address or latitude is None or longitude is None:
            raise ValidationError("Name, full address, latitude, and longitude are required")
        if not _is_number(latitude) or not _is_number(longitude):
            raise ValidationError("Latitude and longitude must be valid numbers")
        if not -90 <= latitude <= 90:
            raise ValidationError("Latitude must be between -90 and 90")
        if not -180 <= longitude <= 180:
            raise ValidationError("Longitude must be between -180 and 180")
        if len(name) > NAME_MAX_LENGTH:
            raise ValidationError("Location name cannot be more than 100 characters")
        if len(address_details) > ADDRESS_DETAILS_MAX_LENGTH:
            raise ValidationError("Address details cannot be more than 500 characters")

        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_LOCATION_BY_NAME, (user_id, name))
                if cur.fetchone():
                    raise _duplicate_name(name)
                cur.execute(
                    INSERT_LOCATION,
                    (user_id, name, full_address, latitude, longitude, address_details),
                )
                columns = [desc[0] for desc in cur.description]
                location = dict(zip(columns, cur.fetchone()))
        except UniqueViolation as e:
            raise _duplicate_name(name) from e
        except psycopg2.Error as e:
            logger.error(f"Error saving location for user {user_id}: {e}", exc_info=True)
            raise PersistenceError("save location", e) from e

        logger.info(f"Saved location {location['location_id']} for user {user_id}")
        return location

    def list_locations(self, user_id: int) -> list[dict[str, Any]]:
        """List a user's saved locations, newest first."""
        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_USER_LOCATIONS, (user_id,))
                columns = [desc[0] for desc in cur.description]
                return [dict(zip(columns, row)) for row in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Error fetching locations for user {user_id}: {e}", exc_info=True)
            raise PersistenceError("retrieve locations", e) from e

    def delete_location(self, location_id: int, user_id: int) -> None:
        """Delete one of the user's saved locations.

        Raises:
            NotFoundError: If the location does not exist
            AuthorizationError: If it belongs to another user
        """
        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_LOCATION_BY_ID, (location_id,))
                columns = [desc[0] for desc in cur.description]
                row = cur.fetchone()
                if not row:
                    raise NotFoundError("Location not found")
                if dict(zip(columns, row))["user_id"] != user_id:
                    raise AuthorizationError("Not authorized to delete this location")
                cur.execute(DELETE_LOCATION, (location_id, user_id))
        except psycopg2.Error as e:
            logger.error(f"Error deleting location {location_id}: {e}", exc_info=True)
            raise PersistenceError("delete location", e) from e
        logger.info(f"Deleted location {location_id}")
