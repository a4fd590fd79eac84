"""Job locations, keyed by job type.

An OnSite job happens at one address; a Pickup job moves something from a
source address to a destination address. The two shapes are modelled as
separate classes and every payload goes through ``parse_job_location`` so the
shape always matches the job type.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, ClassVar

from shared.errors import ValidationError

JOB_TYPE_ONSITE = "OnSite"
JOB_TYPE_PICKUP = "Pickup"
JOB_TYPES = (JOB_TYPE_PICKUP, JOB_TYPE_ONSITE)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Address:
    """A single point a job refers to."""

    id: str
    name: str
    full_address: str
    latitude: float
    longitude: float
    address_details: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> Address | None:
        """Build an address, or return None when required fields are missing."""
        if not isinstance(data, dict):
            return None
        location_id = data.get("id")
        name = data.get("name")
        full_address = data.get("full_address")
        latitude = data.get("latitude")
        longitude = data.get("longitude")
        if location_id in (None, "") or not isinstance(name, str) or not name.strip():
            return None
        if not isinstance(full_address, str) or not full_address.strip():
            return None
        if not _is_number(latitude) or not _is_number(longitude):
            return None
        details = data.get("address_details")
        return cls(
            id=str(location_id),
            name=name.strip(),
            full_address=full_address.strip(),
            latitude=float(latitude),
            longitude=float(longitude),
            address_details=details.strip() if isinstance(details, str) and details.strip() else None,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "full_address": self.full_address,
            "latitude": self.latitude,
            "longitude": self.longitude,
        }
        if self.address_details:
            data["address_details"] = self.address_details
        return data


@dataclass(frozen=True)
class OnSiteLocation:
    address: Address

    job_type: ClassVar[str] = JOB_TYPE_ONSITE

    def addresses(self) -> list[Address]:
        return [self.address]

    def display_address(self) -> str:
        return self.address.full_address

    def to_dict(self) -> dict[str, Any]:
        return self.address.to_dict()


@dataclass(frozen=True)
class PickupLocation:
    source: Address
    destination: Address

    job_type: ClassVar[str] = JOB_TYPE_PICKUP

    def addresses(self) -> list[Address]:
        return [self.source, self.destination]

    def display_address(self) -> str:
        return f"{self.source.full_address} → {self.destination.full_address}"

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source.to_dict(), "destination": self.destination.to_dict()}


JobLocation = OnSiteLocation | PickupLocation


def parse_job_location(job_type: str, raw: Any) -> JobLocation:
    """Validate a location payload against the job type.

    Args:
        job_type: "OnSite" or "Pickup"
        raw: Location object, or its JSON encoding (multipart clients send strings)

    Returns:
        OnSiteLocation or PickupLocation

    Raises:
        ValidationError: If the job type is unknown, the JSON is malformed or
            the shape does not match the job type
    """
    if job_type not in JOB_TYPES:
        raise ValidationError(f"Job type must be one of: {', '.join(JOB_TYPES)}")

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError("Invalid location format") from e

    if job_type == JOB_TYPE_ONSITE:
        address = Address.from_dict(raw)
        if address is None:
            raise ValidationError(
                "OnSite jobs require a single location object with id, name, "
                "full_address, latitude, and longitude"
            )
        return OnSiteLocation(address=address)

    source = Address.from_dict(raw.get("source")) if isinstance(raw, dict) else None
    destination = Address.from_dict(raw.get("destination")) if isinstance(raw, dict) else None
    if source is None or destination is None:
        raise ValidationError(
            "Pickup jobs require both source and destination locations with id, name, "
            "full_address, latitude, and longitude"
        )
    return PickupLocation(source=source, destination=destination)


def display_address(job_type: str, raw: Any) -> str:
    """Human-readable address of a stored job location."""
    try:
        return parse_job_location(job_type, raw).display_address()
    except ValidationError:
        return "No address available"
