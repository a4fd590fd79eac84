"""
Notifier

In-app notification inbox plus the background fan-out that fills it when
jobs are posted or receive interest.
"""

from .job_notification_fanout import JobNotificationFanout, extract_address_tokens
from .notification_service import NewNotification, NotificationService

__all__ = [
    "JobNotificationFanout",
    "NewNotification",
    "NotificationService",
    "extract_address_tokens",
]
