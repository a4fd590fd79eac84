"""Service for creating and managing job postings."""

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import psycopg2
from psycopg2.extras import Json
from shared.database import Database
from shared.dispatcher import TaskDispatcher
from shared.errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError

from .job_payload import JOB_STATUSES, validate_job_patch, validate_new_job
from .job_records import row_to_dict, shape_job
from .queries import (
    DEACTIVATE_JOB,
    GET_JOB_BY_ID,
    INSERT_JOB,
    INSERT_JOB_INTEREST,
    UPDATE_JOB_STATUS,
    UPDATE_JOB_TEMPLATE,
)

logger = logging.getLogger(__name__)


class JobService:
    """Service for the job lifecycle: create, edit, close and interest."""

    def __init__(
        self,
        database: Database,
        notification_fanout=None,
        dispatcher: TaskDispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize the job service.

        Args:
            database: Database connection interface
            notification_fanout: JobNotificationFanout used after creation and
                interest (optional; no notifications when omitted)
            dispatcher: Runs the fan-out in the background
            clock: Returns the current local time (defaults to datetime.now)
        """
        if not database:
            raise ValueError("Database is required")
        self.db = database
        self.notification_fanout = notification_fanout
        self.dispatcher = dispatcher
        self.clock = clock or datetime.now

    def create_job(self, owner_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        """Create a job posting and notify nearby users in the background.

        Args:
            owner_id: ID of the posting user
            payload: Job fields (see job_payload.REQUIRED_FIELDS)

        Returns:
            The created job

        Raises:
            ValidationError: If the payload is incomplete or invalid
            PersistenceError: If the insert fails
        """
        fields = validate_new_job(payload, today=self.clock().date())
        try:
            with self.db.get_cursor() as cur:
                cur.execute(
                    INSERT_JOB,
                    (
                        fields["title"],
                        fields["description"],
                        fields["cost"],
                        fields["job_type"],
                        Json(fields["location"].to_dict()),
                        fields["urgency"],
                        fields["scheduled_date"],
                        fields["scheduled_time"],
                        fields["response_preference"],
                        fields["attachments"],
                        owner_id,
                    ),
                )
                job_id = cur.fetchone()[0]
        except psycopg2.Error as e:
            logger.error(f"Error creating job for user {owner_id}: {e}", exc_info=True)
            raise PersistenceError("create job", e) from e

        logger.info(f"Created job {job_id} ({fields['job_type']}) for user {owner_id}")
        job = self._fetch_job(job_id)
        if job is None:
            raise NotFoundError("Job not found")

        if self.notification_fanout is not None:
            self._dispatch(self.notification_fanout.notify_job_created, job)
        return job

    def get_job(self, job_id: int) -> dict[str, Any]:
        """Get an active job with its poster summary.

        Raises:
            NotFoundError: If the job does not exist or was deactivated
        """
        job = self._fetch_job(job_id)
        if not job or not job["is_active"]:
            raise NotFoundError("Job not found")
        return job

    def update_job(self, job_id: int, owner_id: int, patch: dict[str, Any]) -> dict[str, Any]:
        """Edit a job; any successful edit re-publishes it as open and active.

        Args:
            job_id: Job to edit
            owner_id: Requesting user; must own the job
            patch: Fields to change

        Returns:
            The updated job

        Raises:
            NotFoundError: If the job does not exist
            AuthorizationError: If the user does not own the job
            ValidationError: If a field is invalid or no updatable field is given
        """
        job = self._require_owned_job(job_id, owner_id, "update")
        changes = validate_job_patch(job, patch, today=self.clock().date())

        columns = list(changes)
        values = [
            Json(changes[column].to_dict()) if column == "location" else changes[column]
            for column in columns
        ]
        query = UPDATE_JOB_TEMPLATE.format(
            assignments=", ".join(f"{column} = %s" for column in columns)
        )
        try:
            with self.db.get_cursor() as cur:
                cur.execute(query, (*values, job_id, owner_id))
                if not cur.fetchone():
                    raise NotFoundError("Job not found")
        except psycopg2.Error as e:
            logger.error(f"Error updating job {job_id}: {e}", exc_info=True)
            raise PersistenceError("update job", e) from e

        logger.info(f"Updated job {job_id} fields {', '.join(columns)}; job re-opened")
        return self._fetch_job(job_id)

    def delete_job(self, job_id: int, owner_id: int) -> None:
        """Soft-delete a job by deactivating it.

        Raises:
            NotFoundError: If the job does not exist
            AuthorizationError: If the user does not own the job
        """
        self._require_owned_job(job_id, owner_id, "delete")
        try:
            with self.db.get_cursor() as cur:
                cur.execute(DEACTIVATE_JOB, (job_id, owner_id))
        except psycopg2.Error as e:
            logger.error(f"Error deleting job {job_id}: {e}", exc_info=True)
            raise PersistenceError("delete job", e) from e
        logger.info(f"Deactivated job {job_id}")

    def update_status(self, job_id: int, owner_id: int, status: str) -> dict[str, Any]:
        """Move a job to open, completed or cancelled.

        Returns:
            Dictionary with ``job_id``, ``status`` and ``completed_at``

        Raises:
            ValidationError: If the status is not recognized
            NotFoundError: If the job does not exist
            AuthorizationError: If the user does not own the job
        """
        if status not in JOB_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(JOB_STATUSES)}")
        self._require_owned_job(job_id, owner_id, "update the status of")
        try:
            with self.db.get_cursor() as cur:
                cur.execute(UPDATE_JOB_STATUS, (status, status, job_id, owner_id))
                result = row_to_dict(cur)
        except psycopg2.Error as e:
            logger.error(f"Error updating status of job {job_id}: {e}", exc_info=True)
            raise PersistenceError("update job status", e) from e

        if not result:
            raise NotFoundError("Job not found")
        logger.info(f"Job {job_id} status set to {status}")
        return result

    def record_interest(self, job_id: int, user_id: int) -> dict[str, Any]:
        """Add a user to a job's interest list and notify the owner.

        Recording the same interest twice is accepted; the second call
        reports ``already_recorded`` and sends nothing.

        Returns:
            Dictionary with ``job_id``, ``already_recorded`` and ``noted_at``

        Raises:
            NotFoundError: If the job does not exist
            ValidationError: If the job is closed, inactive, does not collect
                interest, or belongs to the user
        """
        job = self._fetch_job(job_id)
        if not job:
            raise NotFoundError("Job not found")
        if not job["is_active"] or job["status"] != "open":
            raise ValidationError("This job is no longer accepting interest")
        if job["response_preference"] != "show_interest":
            raise ValidationError(
                "This job does not collect interest; contact the poster directly"
            )
        if job["posted_by"] == user_id:
            raise ValidationError("You cannot express interest in your own job")

        try:
            with self.db.get_cursor() as cur:
                cur.execute(INSERT_JOB_INTEREST, (job_id, user_id))
                row = cur.fetchone()
        except psycopg2.Error as e:
            logger.error(f"Error recording interest in job {job_id}: {e}", exc_info=True)
            raise PersistenceError("record interest", e) from e

        if not row:
            logger.info(f"Interest of user {user_id} in job {job_id} already recorded")
            return {"job_id": job_id, "already_recorded": True, "noted_at": None}

        logger.info(f"Recorded interest of user {user_id} in job {job_id}")
        if self.notification_fanout is not None:
            self._dispatch(self.notification_fanout.notify_interest, job, user_id)
        return {"job_id": job_id, "already_recorded": False, "noted_at": row[0]}

    def _fetch_job(self, job_id: int) -> dict[str, Any] | None:
        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_JOB_BY_ID, (job_id,))
                record = row_to_dict(cur)
        except psycopg2.Error as e:
            logger.error(f"Error fetching job {job_id}: {e}", exc_info=True)
            raise PersistenceError("fetch job", e) from e
        return shape_job(record) if record else None

    def _require_owned_job(self, job_id: int, owner_id: int, action: str) -> dict[str, Any]:
        job = self._fetch_job(job_id)
        if not job:
            raise NotFoundError("Job not found")
        if job["posted_by"] != owner_id:
            raise AuthorizationError(f"Not authorized to {action} this job")
        return job

    def _dispatch(self, task, *args) -> None:
        """Hand notification work to the dispatcher; never fails the caller."""
        if self.dispatcher is None:
            logger.warning("No task dispatcher configured; skipping notifications")
            return
        try:
            self.dispatcher.submit(task, *args)
        except Exception as e:
            logger.error(f"Could not schedule notification task: {e}", exc_info=True)
