import logging

from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from utils.decorators import current_user_id
from utils.errors import error_response, success_response
from utils.services import get_notification_service

logger = logging.getLogger(__name__)
notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _is_read_filter() -> bool | None:
    value = request.args.get("is_read")
    if value is None or value == "":
        return None
    return value.lower() in ("true", "1", "yes")


@notifications_bp.route("", methods=["GET"])
@jwt_required()
def api_list_notifications():
    """The caller's notifications with unread count and pagination."""
    try:
        result = get_notification_service().list_notifications(
            current_user_id(),
            is_read=_is_read_filter(),
            sort_by=request.args.get("sort_by"),
            sort_order=request.args.get("sort_order"),
            page=request.args.get("page"),
            limit=request.args.get("limit"),
        )
        return success_response(**result)
    except Exception as e:
        return error_response(e, "fetching notifications")


@notifications_bp.route("/unread-count", methods=["GET"])
@jwt_required()
def api_unread_count():
    try:
        count = get_notification_service().get_unread_count(current_user_id())
        return success_response(unread_count=count)
    except Exception as e:
        return error_response(e, "fetching unread count")


@notifications_bp.route("/read-all", methods=["PUT"])
@jwt_required()
def api_mark_all_read():
    try:
        updated = get_notification_service().mark_all_as_read(current_user_id())
        return success_response("All notifications marked as read", updated_count=updated)
    except Exception as e:
        return error_response(e, "marking all notifications as read")


@notifications_bp.route("/<int:notification_id>/read", methods=["PUT"])
@jwt_required()
def api_mark_read(notification_id: int):
    try:
        notification = get_notification_service().mark_as_read(
            notification_id, current_user_id()
        )
        return success_response("Notification marked as read", notification=notification)
    except Exception as e:
        return error_response(e, f"marking notification {notification_id} as read")


@notifications_bp.route("/<int:notification_id>", methods=["DELETE"])
@jwt_required()
def api_delete_notification(notification_id: int):
    try:
        get_notification_service().delete_notification(notification_id, current_user_id())
        return success_response("Notification deleted successfully")
    except Exception as e:
        return error_response(e, f"deleting notification {notification_id}")
