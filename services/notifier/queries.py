"""SQL queries for notifier services.

This module contains all SQL queries used by the notification services,
such as NotificationService and JobNotificationFanout.
"""

# Multi-row insert; {values} repeats NOTIFICATION_VALUES_ROW once per notification
INSERT_NOTIFICATIONS_TEMPLATE = """
    INSERT INTO marketplace.notifications (
        recipient_id,
        type,
        title,
        message,
        related_entity_type,
        related_entity_id,
        navigation_identifier,
        is_read,
        created_at,
        updated_at
    )
    VALUES {values}
"""
NOTIFICATION_VALUES_ROW = "(%s, %s, %s, %s, %s, %s, %s, false, NOW(), NOW())"

NOTIFICATION_SELECT = """
    SELECT
        n.notification_id,
        n.recipient_id,
        n.type,
        n.title,
        n.message,
        n.related_entity_type,
        n.related_entity_id,
        n.navigation_identifier,
        n.is_read,
        n.read_at,
        n.created_at,
        n.updated_at,
        j.title AS related_job_title,
        j.description AS related_job_description
    FROM marketplace.notifications n
    LEFT JOIN marketplace.jobs j
        ON n.related_entity_type = 'Job' AND j.job_id = n.related_entity_id
"""

COUNT_NOTIFICATIONS = """
    SELECT COUNT(*)
    FROM marketplace.notifications n
"""

COUNT_UNREAD_NOTIFICATIONS = """
    SELECT COUNT(*)
    FROM marketplace.notifications
    WHERE recipient_id = %s AND is_read = false
"""

GET_NOTIFICATION_BY_ID = NOTIFICATION_SELECT + " WHERE n.notification_id = %s"

MARK_NOTIFICATION_READ = """
    UPDATE marketplace.notifications
    SET is_read = true, read_at = NOW(), updated_at = NOW()
    WHERE notification_id = %s AND recipient_id = %s AND is_read = false
"""

MARK_ALL_NOTIFICATIONS_READ = """
    UPDATE marketplace.notifications
    SET is_read = true, read_at = NOW(), updated_at = NOW()
    WHERE recipient_id = %s AND is_read = false
"""

DELETE_NOTIFICATION = """
    DELETE FROM marketplace.notifications
    WHERE notification_id = %s AND recipient_id = %s
"""
