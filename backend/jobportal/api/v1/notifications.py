"""
Notification API endpoints.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from jobportal.api.deps import get_current_principal, get_db
from jobportal.core.security import Principal
from jobportal.services import notifications as notification_store

router = APIRouter()


# ============== Pydantic Schemas ==============


class NotificationResponse(BaseModel):
    id: int
    message: str
    type: str
    is_read: bool
    created_at: datetime
    job_id: Optional[int] = None
    job_title: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


# ============== API Endpoints ==============


@router.get("/mine", response_model=list[NotificationResponse])
def my_notifications(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """The caller's notifications, newest first."""
    return [
        NotificationResponse(
            id=notification.id,
            message=notification.message,
            type=notification.type,
            is_read=notification.is_read,
            created_at=notification.created_at,
            job_id=notification.job_id,
            job_title=job_title,
        )
        for notification, job_title in notification_store.list_for_user(db, principal.user_id)
    ]


@router.put("/{notification_id}/read", response_model=MessageResponse)
def mark_as_read(
    notification_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Mark one of the caller's notifications as read. Admins get no bypass here."""
    notification_store.mark_read(db, notification_id, principal)
    return MessageResponse(message="Notification marked as read.")
