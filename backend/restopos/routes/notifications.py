# Overview: Flask API routes for notifications; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..services import notification_service
from ..validation import ValidationError, NotFoundError, coerce_int
from ..decorators import require_auth, require_role


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
@require_auth
def list_notifications_route():
    """The caller's notifications plus broadcast ones, newest first (max 50)."""
    items = notification_service.list_notifications(user_id=g.current_user.id)
    unread = sum(1 for n in items if not n.is_read)
    return jsonify({"items": [n.to_dict() for n in items], "unread": unread}), 200


@notifications_bp.post("")
@require_auth
@require_role("admin", "manager")
def create_notification_route():
    """Body: {title, message?, type?, user_id?}. No user_id broadcasts to everyone."""
    data = request.get_json(silent=True) or {}
    try:
        user_id = data.get("user_id")
        notification = notification_service.create_notification(
            title=data.get("title"),
            message=data.get("message"),
            notification_type=data.get("type") or "info",
            user_id=coerce_int("user_id", user_id) if user_id is not None else None,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"notification": notification.to_dict()}), 201


@notifications_bp.post("/<int:notification_id>/read")
@require_auth
def mark_read_route(notification_id: int):
    try:
        notification = notification_service.mark_notification_read(notification_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"notification": notification.to_dict()}), 200
