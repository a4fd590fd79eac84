"""
Job Notification Fan-out

Background work triggered by job activity: alerting nearby users when a job
is posted, and alerting the poster when someone expresses interest.
Runs on the TaskDispatcher, so nothing here is allowed to reach the request.
"""

from __future__ import annotations

from typing import Any

from jobs.job_location import parse_job_location
from shared.errors import ValidationError
from shared.structured_logging import get_structured_logger

from .notification_service import NewNotification, NotificationService


def extract_address_tokens(job_type: str, location: Any) -> list[str]:
    """
    Collect the address strings used to find users near a job.

    OnSite jobs contribute their address name and full address; Pickup jobs
    contribute both for source and destination. Blank values are dropped and
    duplicates are removed case-insensitively, keeping first-seen order.

    Args:
        job_type: "OnSite" or "Pickup"
        location: Stored job location (object or JSON string)

    Returns:
        List of distinct tokens (empty if the location cannot be parsed)
    """
    try:
        parsed = parse_job_location(job_type, location)
    except ValidationError:
        return []

    tokens: list[str] = []
    seen: set[str] = set()
    for address in parsed.addresses():
        for value in (address.name, address.full_address):
            token = (value or "").strip()
            if token and token.lower() not in seen:
                seen.add(token.lower())
                tokens.append(token)
    return tokens


class JobNotificationFanout:
    """
    Turns job events into in-app notifications.

    Audience lookup goes through the user directory; writes go through the
    notification sink.
    """

    def __init__(self, user_service, notification_service: NotificationService):
        """
        Initialize the fan-out.

        Args:
            user_service: UserService (provides get_user_by_id and
                find_notification_audience)
            notification_service: NotificationService used to store notifications
        """
        if not user_service:
            raise ValueError("UserService is required")
        if not notification_service:
            raise ValueError("NotificationService is required")
        self.user_service = user_service
        self.notification_service = notification_service

    def notify_job_created(self, job: dict[str, Any]) -> int:
        """
        Notify users whose profile location matches the new job's addresses.

        Args:
            job: Created job (as returned by JobService)

        Returns:
            Number of notifications written
        """
        logger = get_structured_logger(__name__, job_id=job["job_id"], task="job_created")
        tokens = extract_address_tokens(job["job_type"], job["location"])
        if not tokens:
            logger.warning("No address tokens on job; nobody to notify")
            return 0

        audience = self.user_service.find_notification_audience(
            tokens, exclude_user_id=job["posted_by"]
        )
        if not audience:
            logger.info(f"No users near {len(tokens)} address token(s)")
            return 0

        title = f"New {job['urgency'].lower()} job near you"
        message = f"{job['title']} at {job.get('display_address') or tokens[0]}"
        written = self.notification_service.create_notifications(
            [
                NewNotification(
                    recipient_id=user["user_id"],
                    type="job_created",
                    title=title,
                    message=message,
                    related_job_id=job["job_id"],
                )
                for user in audience
            ]
        )
        logger.info(f"Notified {written} nearby user(s)")
        return written

    def notify_interest(self, job: dict[str, Any], interested_user_id: int) -> int:
        """
        Tell the job owner that a user is interested.

        Args:
            job: Job the interest was recorded on
            interested_user_id: User who expressed interest

        Returns:
            Number of notifications written (0 or 1)
        """
        logger = get_structured_logger(
            __name__,
            job_id=job["job_id"],
            task="job_interest",
            interested_user_id=interested_user_id,
        )
        user = self.user_service.get_user_by_id(interested_user_id)
        if not user:
            logger.warning("Interested user no longer exists; skipping notification")
            return 0

        name = user.get("full_name") or user.get("phone_number") or "Someone"
        written = self.notification_service.create_notifications(
            [
                NewNotification(
                    recipient_id=job["posted_by"],
                    type="job_interest",
                    title="Someone is interested in your job",
                    message=f"{name} is interested in \"{job['title']}\"",
                    related_job_id=job["job_id"],
                )
            ]
        )
        logger.info("Notified job owner")
        return written
