from __future__ import annotations

from sqlalchemy import or_

from ..extensions import db
from ..models import Notification, User
from ..validation import NotFoundError, ValidationError
from restopos.time_utils import utcnow


NOTIFICATION_LIST_LIMIT = 50
NOTIFICATION_TYPES = ("info", "warning", "error", "success")


def list_notifications(user_id: int | None = None) -> list[Notification]:
    """
    Newest first, at most NOTIFICATION_LIST_LIMIT.

    With user_id: that user's notifications plus broadcast ones (user_id NULL).
    """
    query = db.session.query(Notification)
    if user_id is not None:
        query = query.filter(or_(Notification.user_id == user_id, Notification.user_id.is_(None)))
    return (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(NOTIFICATION_LIST_LIMIT)
        .all()
    )


def create_notification(
    *,
    title: str,
    message: str | None = None,
    notification_type: str = "info",
    user_id: int | None = None,
) -> Notification:
    title = (title or "").strip()
    if not title:
        raise ValidationError("title is required")
    if notification_type not in NOTIFICATION_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(NOTIFICATION_TYPES)}")
    if user_id is not None and db.session.get(User, user_id) is None:
        raise ValidationError("User not found")

    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        is_read=False,
        created_at=utcnow(),
    )
    db.session.add(notification)
    db.session.commit()
    return notification


def mark_notification_read(notification_id: int) -> Notification:
    notification = db.session.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification not found")
    notification.is_read = True
    db.session.commit()
    return notification
