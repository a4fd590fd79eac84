"""Validation of job payloads for creation and partial updates."""

from datetime import date
from typing import Any

from shared.errors import ValidationError

from .job_location import JOB_TYPES, JobLocation, parse_job_location
from .schedule import parse_scheduled_date

URGENCY_LEVELS = ("Urgent", "Normal")
RESPONSE_PREFERENCES = ("direct_contact", "show_interest")
JOB_STATUSES = ("open", "completed", "cancelled")
MAX_ATTACHMENTS = 5

REQUIRED_FIELDS = (
    "title",
    "description",
    "cost",
    "location",
    "job_type",
    "urgency",
    "scheduled_date",
    "scheduled_time",
    "response_preference",
)

# Fields an owner may change, with max lengths for the free-text ones
UPDATABLE_FIELDS = (
    "title",
    "description",
    "cost",
    "job_type",
    "location",
    "urgency",
    "scheduled_date",
    "scheduled_time",
    "response_preference",
    "attachments",
)
TEXT_LIMITS = {"title": 100, "description": 2000, "cost": 100, "scheduled_time": 20}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _clean_text(field: str, value: Any) -> str:
    if not isinstance(value, (str, int, float)) or isinstance(value, bool):
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} must be text")
    text = str(value).strip()
    if not text:
        raise ValidationError(f"{field.replace('_', ' ').capitalize()} is required")
    limit = TEXT_LIMITS[field]
    if len(text) > limit:
        raise ValidationError(
            f"{field.replace('_', ' ').capitalize()} cannot be more than {limit} characters"
        )
    return text


def _choice(field: str, value: Any, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        label = field.replace("_", " ").capitalize()
        raise ValidationError(f"{label} must be one of: {', '.join(allowed)}")
    return value


def _scheduled_date(value: Any, today: date) -> date:
    scheduled = parse_scheduled_date(value)
    if scheduled < today:
        raise ValidationError("Scheduled date cannot be in the past")
    return scheduled


def _attachments(value: Any) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValidationError("Attachments must be a list of file paths")
    if len(value) > MAX_ATTACHMENTS:
        raise ValidationError(f"Cannot have more than {MAX_ATTACHMENTS} attachments")
    return [item.strip() for item in value if item.strip()]


def validate_new_job(payload: dict[str, Any], today: date) -> dict[str, Any]:
    """Validate a job creation payload.

    Args:
        payload: Request body
        today: Current date; scheduling before it is rejected

    Returns:
        Dictionary of validated column values, with ``location`` as a JobLocation

    Raises:
        ValidationError: On the first missing or invalid field
    """
    if not isinstance(payload, dict):
        raise ValidationError("Job details must be a JSON object")
    if any(_is_blank(payload.get(field)) for field in REQUIRED_FIELDS):
        raise ValidationError("All required fields must be provided")

    job_type = _choice("job_type", payload["job_type"], JOB_TYPES)
    return {
        "title": _clean_text("title", payload["title"]),
        "description": _clean_text("description", payload["description"]),
        "cost": _clean_text("cost", payload["cost"]),
        "job_type": job_type,
        "location": parse_job_location(job_type, payload["location"]),
        "urgency": _choice("urgency", payload["urgency"], URGENCY_LEVELS),
        "scheduled_date": _scheduled_date(payload["scheduled_date"], today),
        "scheduled_time": _clean_text("scheduled_time", payload["scheduled_time"]),
        "response_preference": _choice(
            "response_preference", payload["response_preference"], RESPONSE_PREFERENCES
        ),
        "attachments": _attachments(payload.get("attachments")),
    }


def validate_job_patch(
    current: dict[str, Any], patch: dict[str, Any], today: date
) -> dict[str, Any]:
    """Validate a partial update against the stored job.

    Touched fields go through the creation rules. A new job type or a new
    location is checked against the job type the job will have afterwards.

    Args:
        current: Stored job (``location`` as stored JSON)
        patch: Request body
        today: Current date

    Returns:
        Column values to write, including values equal to the stored ones
        (``location`` as a JobLocation)

    Raises:
        ValidationError: If a field is invalid, or no updatable field is given
    """
    if not isinstance(patch, dict):
        raise ValidationError("Job details must be a JSON object")
    touched = [field for field in UPDATABLE_FIELDS if field in patch]
    if not touched:
        raise ValidationError("No valid fields to update")

    validated: dict[str, Any] = {}
    for field in touched:
        value = patch[field]
        if field in TEXT_LIMITS:
            validated[field] = _clean_text(field, value)
        elif field == "job_type":
            validated[field] = _choice(field, value, JOB_TYPES)
        elif field == "urgency":
            validated[field] = _choice(field, value, URGENCY_LEVELS)
        elif field == "response_preference":
            validated[field] = _choice(field, value, RESPONSE_PREFERENCES)
        elif field == "scheduled_date":
            validated[field] = _scheduled_date(value, today)
        elif field == "attachments":
            validated[field] = _attachments(value)

    if "job_type" in validated or "location" in touched:
        job_type = validated.get("job_type", current.get("job_type"))
        raw_location = patch["location"] if "location" in touched else current.get("location")
        location: JobLocation = parse_job_location(job_type, raw_location)
        validated["location"] = location

    return validated
