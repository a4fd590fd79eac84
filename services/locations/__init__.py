"""Users' saved favourite addresses."""

from .location_service import LocationService

__all__ = ["LocationService"]
