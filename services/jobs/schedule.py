"""Scheduled date/time handling for job postings.

A job's scheduled moment is its calendar date plus a free-text time typed by
the poster, either "9:30 PM" style or "21:30" style. Times that match neither
format leave the job without a scheduled moment, and such jobs never expire.
"""

import re
from datetime import date, datetime, time
from typing import Any

from shared.errors import ValidationError

_TWELVE_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*([AaPp][Mm])\s*$")
_TWENTY_FOUR_HOUR = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")


def parse_scheduled_time(value: Any) -> time | None:
    """Parse "H:MM AM/PM" or "HH:MM" into a time, or None if neither matches."""
    if not isinstance(value, str):
        return None

    match = _TWELVE_HOUR.match(value)
    if match:
        hour, minute, meridiem = int(match.group(1)), int(match.group(2)), match.group(3).upper()
        if not 1 <= hour <= 12 or minute > 59:
            return None
        hour = hour % 12 + (12 if meridiem == "PM" else 0)
        return time(hour, minute)

    match = _TWENTY_FOUR_HOUR.match(value)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return time(hour, minute)

    return None


def parse_scheduled_date(value: Any) -> date:
    """Parse a scheduled date from a date, datetime or ISO string.

    ISO datetimes ("2025-03-01T00:00:00.000Z") are reduced to their date part.

    Raises:
        ValidationError: If the value is not a recognizable date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError("Scheduled date must be a valid date (YYYY-MM-DD)")


def scheduled_moment(scheduled_date: Any, scheduled_time: Any) -> datetime | None:
    """Combine date and time into the moment the job takes place."""
    parsed_time = parse_scheduled_time(scheduled_time)
    if parsed_time is None:
        return None
    try:
        parsed_date = parse_scheduled_date(scheduled_date)
    except ValidationError:
        return None
    return datetime.combine(parsed_date, parsed_time)


def is_expired(scheduled_date: Any, scheduled_time: Any, now: datetime) -> bool:
    """True when the scheduled moment is strictly before ``now``."""
    moment = scheduled_moment(scheduled_date, scheduled_time)
    return moment is not None and moment < now
