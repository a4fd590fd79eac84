"""In-app notification inbox: storage, listing and read state."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import psycopg2
from shared.database import Database
from shared.errors import AuthorizationError, NotFoundError, PersistenceError, ValidationError
from shared.pagination import build_pagination, normalize_paging, resolve_sort

from .queries import (
    COUNT_NOTIFICATIONS,
    COUNT_UNREAD_NOTIFICATIONS,
    DELETE_NOTIFICATION,
    GET_NOTIFICATION_BY_ID,
    INSERT_NOTIFICATIONS_TEMPLATE,
    MARK_ALL_NOTIFICATIONS_READ,
    MARK_NOTIFICATION_READ,
    NOTIFICATION_SELECT,
    NOTIFICATION_VALUES_ROW,
)

logger = logging.getLogger(__name__)

NOTIFICATION_TYPES = ("job_created", "job_interest")
TITLE_MAX_LENGTH = 200
MESSAGE_MAX_LENGTH = 500
INSERT_BATCH_SIZE = 500
DEFAULT_PAGE_SIZE = 20

SORTABLE_FIELDS = {
    "created_at": "n.created_at",
    "read_at": "n.read_at",
    "type": "n.type",
}


def _truncate(text: str, limit: int) -> str:
    text = text.strip()
    return text if len(text) <= limit else text[: limit - 1].rstrip() + "…"


@dataclass(frozen=True)
class NewNotification:
    """A notification about to be written."""

    recipient_id: int
    type: str
    title: str
    message: str
    related_job_id: int

    def as_row(self) -> tuple:
        if self.type not in NOTIFICATION_TYPES:
            raise ValidationError(
                f"Notification type must be one of: {', '.join(NOTIFICATION_TYPES)}"
            )
        return (
            self.recipient_id,
            self.type,
            _truncate(self.title, TITLE_MAX_LENGTH),
            _truncate(self.message, MESSAGE_MAX_LENGTH),
            "Job",
            self.related_job_id,
            f"jobs/{self.related_job_id}",
        )


def _shape_notification(record: dict[str, Any]) -> dict[str, Any]:
    notification = {
        key: value for key, value in record.items() if not key.startswith("related_job_")
    }
    if record.get("related_job_title") is not None:
        notification["related_job"] = {
            "job_id": record["related_entity_id"],
            "title": record["related_job_title"],
            "description": record["related_job_description"],
        }
    else:
        notification["related_job"] = None
    return notification


class NotificationService:
    """Service for writing and reading user notifications."""

    def __init__(self, database: Database):
        """Initialize the notification service.

        Args:
            database: Database connection interface
        """
        if not database:
            raise ValueError("Database is required")
        self.db = database

    def create_notifications(self, notifications: list[NewNotification]) -> int:
        """Bulk-insert notifications.

        Args:
            notifications: Notifications to write

        Returns:
            Number of notifications written
        """
        if not notifications:
            return 0
        rows = [notification.as_row() for notification in notifications]
        written = 0
        with self.db.get_cursor() as cur:
            for start in range(0, len(rows), INSERT_BATCH_SIZE):
                batch = rows[start : start + INSERT_BATCH_SIZE]
                query = INSERT_NOTIFICATIONS_TEMPLATE.format(
                    values=", ".join([NOTIFICATION_VALUES_ROW] * len(batch))
                )
                cur.execute(query, tuple(value for row in batch for value in row))
                written += len(batch)
        logger.debug(f"Wrote {written} notification(s)")
        return written

    def list_notifications(
        self,
        recipient_id: int,
        is_read: bool | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
        page: Any = None,
        limit: Any = None,
    ) -> dict[str, Any]:
        """List a user's notifications, newest first by default.

        Args:
            recipient_id: Owner of the inbox
            is_read: Only read (True) or unread (False) notifications; None for all

        Returns:
            Dictionary with ``notifications``, ``unread_count`` and ``pagination``
        """
        order_by = resolve_sort(sort_by, sort_order, SORTABLE_FIELDS)
        paging = normalize_paging(page, limit, default_limit=DEFAULT_PAGE_SIZE)

        where = "WHERE n.recipient_id = %s"
        params: list[Any] = [recipient_id]
        if is_read is not None:
            where += " AND n.is_read = %s"
            params.append(is_read)

        try:
            with self.db.get_cursor() as cur:
                cur.execute(
                    f"{NOTIFICATION_SELECT} {where} "
                    f"ORDER BY {order_by}, n.notification_id DESC LIMIT %s OFFSET %s",
                    (*params, paging.limit, paging.offset),
                )
                columns = [desc[0] for desc in cur.description]
                notifications = [
                    _shape_notification(dict(zip(columns, row))) for row in cur.fetchall()
                ]
                cur.execute(f"{COUNT_NOTIFICATIONS} {where}", tuple(params))
                total = cur.fetchone()[0]
                cur.execute(COUNT_UNREAD_NOTIFICATIONS, (recipient_id,))
                unread_count = cur.fetchone()[0]
        except psycopg2.Error as e:
            logger.error(f"Error fetching notifications for user {recipient_id}: {e}", exc_info=True)
            raise PersistenceError("fetch notifications", e) from e

        return {
            "notifications": notifications,
            "unread_count": unread_count,
            "pagination": build_pagination(paging, total, total_key="total_notifications"),
        }

    def get_unread_count(self, recipient_id: int) -> int:
        """Count a user's unread notifications."""
        try:
            with self.db.get_cursor() as cur:
                cur.execute(COUNT_UNREAD_NOTIFICATIONS, (recipient_id,))
                return cur.fetchone()[0]
        except psycopg2.Error as e:
            logger.error(f"Error counting notifications for user {recipient_id}: {e}", exc_info=True)
            raise PersistenceError("fetch unread count", e) from e

    def mark_as_read(self, notification_id: int, recipient_id: int) -> dict[str, Any]:
        """Mark one notification as read (no-op if it already is).

        Raises:
            NotFoundError: If the notification does not exist
            AuthorizationError: If it belongs to another user
        """
        self._require_owned(notification_id, recipient_id, "update")
        try:
            with self.db.get_cursor() as cur:
                cur.execute(MARK_NOTIFICATION_READ, (notification_id, recipient_id))
        except psycopg2.Error as e:
            logger.error(f"Error marking notification {notification_id} read: {e}", exc_info=True)
            raise PersistenceError("mark notification as read", e) from e
        return self._fetch(notification_id)

    def mark_all_as_read(self, recipient_id: int) -> int:
        """Mark every unread notification of a user as read.

        Returns:
            Number of notifications updated
        """
        try:
            with self.db.get_cursor() as cur:
                cur.execute(MARK_ALL_NOTIFICATIONS_READ, (recipient_id,))
                updated = cur.rowcount
        except psycopg2.Error as e:
            logger.error(f"Error marking notifications read for user {recipient_id}: {e}", exc_info=True)
            raise PersistenceError("mark all notifications as read", e) from e
        logger.info(f"Marked {updated} notification(s) read for user {recipient_id}")
        return updated

    def delete_notification(self, notification_id: int, recipient_id: int) -> None:
        """Delete one of the user's notifications.

        Raises:
            NotFoundError: If the notification does not exist
            AuthorizationError: If it belongs to another user
        """
        self._require_owned(notification_id, recipient_id, "delete")
        try:
            with self.db.get_cursor() as cur:
                cur.execute(DELETE_NOTIFICATION, (notification_id, recipient_id))
        except psycopg2.Error as e:
            logger.error(f"Error deleting notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError("delete notification", e) from e

    def _fetch(self, notification_id: int) -> dict[str, Any] | None:
        try:
            with self.db.get_cursor() as cur:
                cur.execute(GET_NOTIFICATION_BY_ID, (notification_id,))
                columns = [desc[0] for desc in cur.description]
                row = cur.fetchone()
        except psycopg2.Error as e:
            logger.error(f"Error fetching notification {notification_id}: {e}", exc_info=True)
            raise PersistenceError("fetch notification", e) from e
        if not row:
            return None
        return _shape_notification(dict(zip(columns, row)))

    def _require_owned(self, notification_id: int, recipient_id: int, action: str) -> dict:
        notification = self._fetch(notification_id)
        if not notification:
            raise NotFoundError("Notification not found")
        if notification["recipient_id"] != recipient_id:
            raise AuthorizationError(f"Not authorized to {action} this notification")
        return notification
