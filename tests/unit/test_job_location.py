"""Unit tests for job location parsing."""

import json

import pytest
from shared.errors import ValidationError

from services.jobs.job_location import (
    OnSiteLocation,
    PickupLocation,
    display_address,
    parse_job_location,
)


class TestParseJobLocation:
    """Test cases for parse_job_location."""

    def test_onsite_location(self, onsite_location):
        """Test that an OnSite job takes a single address."""
        location = parse_job_location("OnSite", onsite_location)

        assert isinstance(location, OnSiteLocation)
        assert location.address.name == "Downtown Gym"
        assert location.display_address() == "12 Main St, Springfield"
        assert location.to_dict() == onsite_location

    def test_pickup_location(self, pickup_location):
        """Test that a Pickup job takes source and destination."""
        location = parse_job_location("Pickup", pickup_location)

        assert isinstance(location, PickupLocation)
        assert [a.name for a in location.addresses()] == ["Hardware Store", "Riverside Flats"]
        assert location.display_address() == (
            "5 Oak Ave, Springfield → 88 River Rd, Shelbyville"
        )

    def test_json_string_is_accepted(self, onsite_location):
        """Test that multipart clients may send the location JSON-encoded."""
        location = parse_job_location("OnSite", json.dumps(onsite_location))
        assert location.address.full_address == "12 Main St, Springfield"

    def test_malformed_json_raises(self):
        """Test that broken JSON is a validation error, not a crash."""
        with pytest.raises(ValidationError, match="Invalid location format"):
            parse_job_location("OnSite", "{not json")

    def test_onsite_rejects_pickup_shape(self, pickup_location):
        """Test that the shape must match the job type."""
        with pytest.raises(ValidationError, match="OnSite jobs require"):
            parse_job_location("OnSite", pickup_location)

    def test_pickup_requires_both_ends(self, pickup_location):
        """Test that a Pickup job without destination is rejected."""
        del pickup_location["destination"]
        with pytest.raises(ValidationError, match="Pickup jobs require"):
            parse_job_location("Pickup", pickup_location)

    def test_coordinates_must_be_numbers(self, onsite_location):
        """Test that string or boolean coordinates are rejected."""
        onsite_location["latitude"] = "40.1"
        with pytest.raises(ValidationError):
            parse_job_location("OnSite", onsite_location)
        onsite_location["latitude"] = True
        with pytest.raises(ValidationError):
            parse_job_location("OnSite", onsite_location)

    def test_unknown_job_type(self, onsite_location):
        """Test that the job type must be known."""
        with pytest.raises(ValidationError, match="Job type must be one of"):
            parse_job_location("Remote", onsite_location)


class TestDisplayAddress:
    """Test cases for display_address."""

    def test_unreadable_location_has_placeholder(self):
        """Test the fallback text for broken stored locations."""
        assert display_address("OnSite", {"name": "x"}) == "No address available"
