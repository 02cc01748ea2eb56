from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....models import User
from ....schemas.notification import (
    MarkAllReadResult,
    MarkReadResult,
    NotificationResponse,
    NotificationType,
    UnreadCount,
)
from ....schemas.swap import DeleteResult
from ....services.notification_service import NotificationService
from .users import get_current_user

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/", response_model=List[NotificationResponse])
def get_notifications(
    is_read: Optional[bool] = None,
    type: Optional[NotificationType] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Get all notifications for the current user with optional filtering.
    """
    return NotificationService(db).list_for_user(
        current_user.id, is_read=is_read, type=type, skip=skip, limit=limit
    )


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"unread": NotificationService(db).unread_count(current_user.id)}


@router.patch("/read-all", response_model=MarkAllReadResult)
def mark_all_notifications_read(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Mark all of the current user's notifications as read. Safe to repeat."""
    return {"updated": NotificationService(db).mark_all_read(current_user.id)}


@router.patch("/{notification_id}/read", response_model=MarkReadResult)
def mark_notification_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Mark a notification as read.

    Marking an already-read notification succeeds again. A notification that
    does not exist or belongs to someone else yields ``updated: false``.
    """
    return {"updated": NotificationService(db).mark_read(notification_id, current_user.id)}


@router.delete("/{notification_id}", response_model=DeleteResult)
def delete_notification(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Delete one of the current user's notifications.

    A notification that is already gone or belongs to someone else yields
    ``deleted: false``.
    """
    return {"deleted": NotificationService(db).delete(notification_id, current_user.id)}
