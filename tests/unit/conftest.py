"""
Pytest configuration and fixtures for unit tests.

Unit tests are fast, isolated tests that don't require external dependencies.
"""

from datetime import date, datetime
from unittest.mock import MagicMock, Mock

import pytest


@pytest.fixture
def mock_cursor():
    """Cursor handed out by mock_database."""
    cursor = MagicMock()
    cursor.description = []
    cursor.rowcount = 0
    return cursor


@pytest.fixture
def mock_database(mock_cursor):
    """Mock database whose get_cursor() context yields mock_cursor."""
    db = Mock()
    db.get_cursor.return_value.__enter__ = Mock(return_value=mock_cursor)
    db.get_cursor.return_value.__exit__ = Mock(return_value=False)
    return db


@pytest.fixture
def fixed_now():
    """A fixed local 'now' used by clock-dependent services."""
    return datetime(2025, 3, 10, 14, 30)


@pytest.fixture
def onsite_location():
    return {
        "id": "loc-1",
        "name": "Downtown Gym",
        "full_address": "12 Main St, Springfield",
        "latitude": 40.1,
        "longitude": -75.2,
    }


@pytest.fixture
def pickup_location():
    return {
        "source": {
            "id": "src-1",
            "name": "Hardware Store",
            "full_address": "5 Oak Ave, Springfield",
            "latitude": 40.0,
            "longitude": -75.0,
        },
        "destination": {
            "id": "dst-1",
            "name": "Riverside Flats",
            "full_address": "88 River Rd, Shelbyville",
            "latitude": 40.3,
            "longitude": -75.4,
        },
    }


@pytest.fixture
def job_payload(onsite_location):
    """Valid creation payload for an OnSite job."""
    return {
        "title": "Help moving gym equipment",
        "description": "Need two people to move benches",
        "cost": "$50",
        "job_type": "OnSite",
        "location": onsite_location,
        "urgency": "Urgent",
        "scheduled_date": "2025-03-12",
        "scheduled_time": "9:30 AM",
        "response_preference": "show_interest",
    }


@pytest.fixture
def stored_job(onsite_location):
    """A job dictionary as returned by JobService."""
    return {
        "job_id": 7,
        "title": "Help moving gym equipment",
        "description": "Need two people to move benches",
        "cost": "$50",
        "job_type": "OnSite",
        "location": onsite_location,
        "urgency": "Urgent",
        "scheduled_date": date(2025, 3, 12),
        "scheduled_time": "9:30 AM",
        "response_preference": "show_interest",
        "attachments": [],
        "status": "open",
        "posted_by": 1,
        "is_active": True,
        "completed_at": None,
        "interested_users": [],
        "display_address": "12 Main St, Springfield",
    }
