"""Offset pagination and sort helpers shared by the list endpoints."""

import math
from dataclasses import dataclass
from typing import Any

from shared.errors import ValidationError

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page:
    """A resolved page request."""

    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def _to_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def normalize_paging(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_PAGE_SIZE,
    max_limit: int = MAX_PAGE_SIZE,
) -> Page:
    """Turn raw query-string values into a usable page.

    Missing or unparseable values fall back to page 1 / ``default_limit``;
    the limit is capped at ``max_limit``.
    """
    page_num = _to_int(page)
    if page_num is None or page_num < 1:
        page_num = 1
    page_size = _to_int(limit)
    if page_size is None or page_size < 1:
        page_size = default_limit
    return Page(page=page_num, limit=min(page_size, max_limit))


def build_pagination(page: Page, total: int, total_key: str = "total_jobs") -> dict[str, Any]:
    """Build the pagination block returned next to a list of results."""
    total_pages = math.ceil(total / page.limit) if page.limit else 0
    return {
        "current_page": page.page,
        "total_pages": total_pages,
        total_key: total,
        "has_next_page": page.page < total_pages,
        "has_prev_page": page.page > 1,
    }


def resolve_sort(
    sort_by: str | None,
    sort_order: str | None,
    allowed_columns: dict[str, str],
    default: str = "created_at",
) -> str:
    """Map a requested sort field onto an ORDER BY clause.

    Args:
        sort_by: Requested field name (None for the default)
        sort_order: "asc" for ascending; anything else sorts descending
        allowed_columns: Public field name -> SQL column expression
        default: Field used when sort_by is empty

    Returns:
        ORDER BY expression such as "j.created_at DESC"

    Raises:
        ValidationError: If sort_by is not an allowed field
    """
    field = sort_by or default
    column = allowed_columns.get(field)
    if column is None:
        allowed = ", ".join(sorted(allowed_columns))
        raise ValidationError(f"Invalid sort field '{field}'. Must be one of: {allowed}")
    direction = "ASC" if (sort_order or "").lower() == "asc" else "DESC"
    return f"{column} {direction}"
