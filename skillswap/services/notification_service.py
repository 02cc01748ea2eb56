import logging
from typing import List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from ..core.database import transaction
from ..models import Notification
from ..schemas.notification import NotificationType

logger = logging.getLogger(__name__)

WELCOME_TITLE = "Welcome to SkillSwap!"
WELCOME_CONTENT = (
    "Add the skills you can teach and the skills you want to learn, "
    "then browse the community to send your first swap request."
)


class NotificationService:
    """
    Creates notification records in reaction to lifecycle events and lets
    their owners read, mark and delete them.

    ``emit`` only stages the row on the session. The caller's transaction
    decides when it is committed, so a notification never outlives the
    event that produced it.
    """

    def __init__(self, db: Session):
        self.db = db

    def emit(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        content: str,
        related_id: Optional[str] = None,
    ) -> Notification:
        notification = Notification(
            user_id=user_id,
            type=NotificationType(type).value,
            title=title,
            content=content,
            related_id=related_id,
            is_read=False,
        )
        self.db.add(notification)
        logger.debug(f"Queued {notification.type} notification for user {user_id}")
        return notification

    def send_welcome(self, user_id: str) -> Notification:
        return self.emit(user_id, NotificationType.SYSTEM, WELCOME_TITLE, WELCOME_CONTENT)

    def list_for_user(
        self,
        user_id: str,
        is_read: Optional[bool] = None,
        type: Optional[NotificationType] = None,
        skip: int = 0,
        limit: int = 50,
    ) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if is_read is not None:
            query = query.where(Notification.is_read == is_read)
        if type:
            query = query.where(Notification.type == NotificationType(type).value)
        query = query.order_by(Notification.created_at.desc()).offset(skip).limit(limit)
        return list(self.db.scalars(query))

    def unread_count(self, user_id: str) -> int:
        return self.db.scalar(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False),
            )
        )

    def mark_read(self, notification_id: str, user_id: str) -> bool:
        """
        Mark one notification as read.

        Returns:
            True if the notification exists and belongs to ``user_id``
            (already-read notifications count), False otherwise.
        """
        with transaction(self.db):
            result = self.db.execute(
                update(Notification)
                .where(Notification.id == notification_id, Notification.user_id == user_id)
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount > 0

    def mark_all_read(self, user_id: str) -> int:
        """Mark every unread notification of a user as read and return how many changed."""
        with transaction(self.db):
            result = self.db.execute(
                update(Notification)
                .where(Notification.user_id == user_id, Notification.is_read.is_(False))
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount

    def delete(self, notification_id: str, user_id: str) -> bool:
        with transaction(self.db):
            result = self.db.execute(
                delete(Notification)
                .where(Notification.id == notification_id, Notification.user_id == user_id)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount > 0
