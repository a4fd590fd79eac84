"""Job discovery: filtered, paginated listings and expired-job sweeps."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import psycopg2
from shared.database import Database
from shared.errors import PersistenceError, ValidationError
from shared.pagination import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    build_pagination,
    normalize_paging,
    resolve_sort,
)
from shared.text_match import like_pattern

from .job_location import JOB_TYPES
from .job_payload import JOB_STATUSES, URGENCY_LEVELS
from .job_records import rows_to_dicts, shape_job
from .queries import (
    ADDRESS_FIELDS,
    CANCEL_EXPIRED_JOBS,
    COUNT_JOBS,
    COUNT_OPEN_JOBS,
    DEACTIVATE_EXPIRED_JOBS,
    GET_ACTIVE_OPEN_JOB_SCHEDULES,
    GET_OPEN_JOB_SCHEDULES,
    JOB_SELECT,
    TEXT_FIELDS,
)
from .schedule import is_expired

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = {
    "created_at": "j.created_at",
    "updated_at": "j.updated_at",
    "scheduled_date": "j.scheduled_date",
    "title": "j.title",
    "urgency": "j.urgency",
    "status": "j.status",
}


@dataclass
class JobFilters:
    """Criteria for a job listing.

    ``status=None`` and ``active_only=False`` drop the corresponding
    constraint (used for an owner's own postings).
    """

    active_only: bool = True
    status: str | None = "open"
    urgency: str | None = None
    job_type: str | None = None
    location: str | None = None
    search: str | None = None
    posted_by: int | None = None
    exclude_posted_by: int | None = None
    poster_location: str | None = None

    def validate(self) -> None:
        if self.urgency is not None and self.urgency not in URGENCY_LEVELS:
            raise ValidationError(f"Urgency must be one of: {', '.join(URGENCY_LEVELS)}")
        if self.job_type is not None and self.job_type not in JOB_TYPES:
            raise ValidationError(f"Job type must be one of: {', '.join(JOB_TYPES)}")
        if self.status is not None and self.status not in JOB_STATUSES:
            raise ValidationError(
                f"Invalid status. Must be one of: {', '.join(JOB_STATUSES)}"
            )


def build_job_filters(filters: JobFilters) -> tuple[str, list[Any]]:
    """Translate filters into a WHERE clause and its parameters.

    Returns:
        Tuple of ("WHERE ..." or "", parameter list)
    """
    conditions: list[str] = []
    params: list[Any] = []

    if filters.active_only:
        conditions.append("j.is_active = true")
    if filters.status is not None:
        conditions.append("j.status = %s")
        params.append(filters.status)
    if filters.urgency:
        conditions.append("j.urgency = %s")
        params.append(filters.urgency)
    if filters.job_type:
        conditions.append("j.job_type = %s")
        params.append(filters.job_type)
    if filters.posted_by is not None:
        conditions.append("j.posted_by = %s")
        params.append(filters.posted_by)
    if filters.exclude_posted_by is not None:
        conditions.append("j.posted_by <> %s")
        params.append(filters.exclude_posted_by)
    if filters.location:
        pattern = like_pattern(filters.location)
        conditions.append("(" + " OR ".join(f"{f} ILIKE %s" for f in ADDRESS_FIELDS) + ")")
        params.extend([pattern] * len(ADDRESS_FIELDS))
    if filters.search:
        pattern = like_pattern(filters.search)
        fields = TEXT_FIELDS + ADDRESS_FIELDS
        conditions.append("(" + " OR ".join(f"{f} ILIKE %s" for f in fields) + ")")
        params.extend([pattern] * len(fields))
    if filters.poster_location:
        conditions.append("u.location ILIKE %s")
        params.append(like_pattern(filters.poster_location))

    where = ("WHERE " + " AND ".join(conditions)) if conditions else ""
    return where, params


class JobDiscoveryService:
    """Service answering "which jobs match these filters" for the feeds."""

    def __init__(
        self,
        database: Database,
        clock: Callable[[], datetime] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ):
        """Initialize the discovery service.

        Args:
            database: Database connection interface
            clock: Returns the current local time (defaults to datetime.now)
            page_size: Page size when the caller gives none
            max_page_size: Largest page size a caller may ask for
        """
        if not database:
            raise ValueError("Database is required")
        self.db = database
        self.clock = clock or datetime.now
        self.page_size = page_size
        self.max_page_size = max_page_size

    def _paging(self, page: Any, limit: Any):
        return normalize_paging(page, limit, self.page_size, self.max_page_size)

    def list_jobs(
        self,
        filters: JobFilters | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> dict[str, Any]:
        """List jobs matching the filters.

        Public discovery uses the default filters: active, open jobs only.

        Args:
            filters: Listing criteria
            sort_by: Field to sort by (default created_at)
            sort_order: "asc" or "desc" (default desc)
            page: 1-based page number
            limit: Page size

        Returns:
            Dictionary with ``jobs`` and ``pagination``
        """
        filters = filters or JobFilters()
        filters.validate()
        order_by = resolve_sort(sort_by, sort_order, SORTABLE_FIELDS)
        return self._query_page(filters, order_by, self._paging(page, limit))

    def list_my_jobs(
        self,
        owner_id: int,
        status: str | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> dict[str, Any]:
        """List an owner's own postings, including inactive and closed ones."""
        filters = JobFilters(active_only=False, status=status or None, posted_by=owner_id)
        return self.list_jobs(filters, sort_by, sort_order, page, limit)

    def list_by_urgency_near_location(
        self,
        urgency: str,
        location: str,
        exclude_user_id: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> dict[str, Any]:
        """List open jobs of one urgency posted by users near a location.

        "Near" means the poster's profile location contains ``location``
        (case-insensitive). Expired listings are retired before the query.

        Args:
            urgency: "Urgent" or "Normal"
            location: Substring of the poster's profile location
            exclude_user_id: Caller's user id; their own jobs are left out

        Raises:
            ValidationError: If location is missing or urgency is invalid
        """
        if not location or not location.strip():
            raise ValidationError("Location parameter is required")
        filters = JobFilters(
            urgency=urgency,
            poster_location=location.strip(),
            exclude_posted_by=exclude_user_id,
        )
        filters.validate()
        order_by = resolve_sort(sort_by, sort_order, SORTABLE_FIELDS)
        paging = self._paging(page, limit)

        self.sweep_expired_listings()
        result = self._query_page(filters, order_by, paging)
        result["location"] = location.strip()
        result["urgency"] = urgency
        return result

    def sweep_expired_listings(self, now: datetime | None = None) -> int:
        """Deactivate active open jobs whose scheduled moment has passed.

        Jobs stay ``open``; they just drop out of the feeds.

        Returns:
            Number of jobs deactivated
        """
        now = now or self.clock()
        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_ACTIVE_OPEN_JOB_SCHEDULES, (now.date(),))
                expired_ids = [
                    job_id for job_id, day, at in cur.fetchall() if is_expired(day, at, now)
                ]
                if not expired_ids:
                    return 0
                cur.execute(DEACTIVATE_EXPIRED_JOBS, (expired_ids,))
                deactivated = cur.rowcount
        except psycopg2.Error as e:
            logger.error(f"Error sweeping expired listings: {e}", exc_info=True)
            raise PersistenceError("sweep expired jobs", e) from e

        logger.info(f"Deactivated {deactivated} expired listing(s)")
        return deactivated

    def expire_old_jobs(self, now: datetime | None = None) -> dict[str, int]:
        """Cancel every open job whose scheduled moment has passed.

        Unlike the feed sweep this covers inactive jobs too, and it moves the
        jobs to ``cancelled``. Running it again right away updates nothing.

        Returns:
            Dictionary with ``checked`` (open jobs), ``matched`` (open jobs
            past their scheduled moment) and ``updated`` counts
        """
        now = now or self.clock()
        try:
            with self.db.get_cursor() as cur:
                cur.execute(COUNT_OPEN_JOBS)
                checked = cur.fetchone()[0]
                cur.execute(GET_OPEN_JOB_SCHEDULES, (now.date(),))
                schedules = cur.fetchall()
                expired_ids = [job_id for job_id, day, at in schedules if is_expired(day, at, now)]
                updated = 0
                if expired_ids:
                    cur.execute(CANCEL_EXPIRED_JOBS, (expired_ids,))
                    updated = cur.rowcount
        except psycopg2.Error as e:
            logger.error(f"Error expiring old jobs: {e}", exc_info=True)
            raise PersistenceError("expire old jobs", e) from e

        result = {"checked": checked, "matched": len(expired_ids), "updated": updated}
        logger.info(
            f"Expired job sweep: checked={result['checked']} "
            f"matched={result['matched']} updated={result['updated']}"
        )
        return result

    def _query_page(self, filters: JobFilters, order_by: str, paging) -> dict[str, Any]:
        where, params = build_job_filters(filters)
        list_query = (
            f"{JOB_SELECT} {where} ORDER BY {order_by}, j.job_id DESC LIMIT %s OFFSET %s"
        )
        count_query = f"{COUNT_JOBS} {where}"
        try:
            with self.db.get_cursor() as cur:
                cur.execute(list_query, (*params, paging.limit, paging.offset))
                jobs = [shape_job(record) for record in rows_to_dicts(cur)]
                cur.execute(count_query, tuple(params))
                total = cur.fetchone()[0]
        except psycopg2.Error as e:
            logger.error(f"Error fetching jobs: {e}", exc_info=True)
            raise PersistenceError("fetch jobs", e) from e

        logger.debug(f"Retrieved {len(jobs)} of {total} job(s)")
        return {"jobs": jobs, "pagination": build_pagination(paging, total)}
