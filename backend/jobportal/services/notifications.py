"""Notification store and reader."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from jobportal.core.authorization import ANY_ROLE, authorize
from jobportal.core.errors import NotFound
from jobportal.core.security import Principal
from jobportal.db.base import utcnow
from jobportal.models import Job, Notification

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    message: str,
    type: str,
    job_id: Optional[int] = None,
) -> Notification:
    """
    Stage a notification in the caller's transaction.

    Nothing is committed here so producers can write the notification
    together with the change that caused it.
    """
    notification = Notification(
        user_id=user_id,
        job_id=job_id,
        message=message,
        type=type,
        is_read=False,
        created_at=utcnow(),
    )
    db.add(notification)
    return notification


def list_for_user(db: Session, user_id: int) -> list[tuple[Notification, Optional[str]]]:
    """Return the user's notifications, newest first, with the related job title."""
    rows = (
        db.query(Notification, Job.title)
        .outerjoin(Job, Notification.job_id == Job.id)
        .filter(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .all()
    )
    logger.info(f"GetMyNotifications: {len(rows)} notifications for user {user_id}")
    return [(notification, job_title) for notification, job_title in rows]


def mark_read(db: Session, notification_id: int, principal: Principal) -> Notification:
    """
    Mark one of the caller's notifications as read.

    Only the recipient may do this; there is no Admin bypass.

    Raises:
        NotFound: If the notification does not exist
        Forbidden: If the caller is not the recipient
    """
    notification = db.get(Notification, notification_id)
    if notification is None:
        raise NotFound("Notification not found.")

    authorize(
        principal,
        ANY_ROLE,
        owner_id=notification.user_id,
        admin_bypass=False,
        message="You are not authorized to modify this notification.",
    )

    if notification.is_read:
        logger.info(
            f"MarkAsRead: notification {notification_id} already read by user {principal.user_id}"
        )
        return notification

    notification.is_read = True
    db.commit()
    db.refresh(notification)

    logger.info(
        f"MarkAsRead: notification {notification_id} marked read for user {principal.user_id}"
    )
    return notification
