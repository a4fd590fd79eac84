"""Row-to-dictionary helpers for job queries."""

from typing import Any

from .job_location import display_address

_POSTER_PREFIX = "poster_"


def rows_to_dicts(cur) -> list[dict[str, Any]]:
    """Fetch all rows of the last query as dictionaries."""
    columns = [desc[0] for desc in cur.description]
    return [dict(zip(columns, row)) for row in cur.fetchall()]


def row_to_dict(cur) -> dict[str, Any] | None:
    """Fetch one row of the last query as a dictionary, or None."""
    columns = [desc[0] for desc in cur.description]
    row = cur.fetchone()
    if not row:
        return None
    return dict(zip(columns, row))


def shape_job(record: dict[str, Any]) -> dict[str, Any]:
    """Nest the joined poster columns and add the display address.

    Args:
        record: Flat row from ``JOB_SELECT``

    Returns:
        Job dictionary with ``posted_by`` as the owner id and ``poster`` as
        the owner's public summary
    """
    job = {key: value for key, value in record.items() if not key.startswith(_POSTER_PREFIX)}
    job["poster"] = {
        "user_id": record.get("posted_by"),
        "phone_number": record.get("poster_phone_number"),
        "full_name": record.get("poster_full_name"),
        "email": record.get("poster_email"),
        "location": record.get("poster_location"),
    }
    job["interested_users"] = record.get("interested_users") or []
    job["attachments"] = list(record.get("attachments") or [])
    job["display_address"] = display_address(record.get("job_type"), record.get("location"))
    return job
