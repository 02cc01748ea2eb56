import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from ..core.database import transaction
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import AdminAction, ReportedContent, SystemMessage, User
from ..models.common import utcnow
from ..schemas.admin import ReportContentType, ReportStatus, SystemMessageType
from ..schemas.notification import NotificationType
from .notification_service import NotificationService

logger = logging.getLogger(__name__)


class AdminService:
    """Moderation: bans, content reports and broadcast system messages."""

    def __init__(self, db: Session, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def _record(self, admin_id: str, action: str, target_id: str = None, target_type: str = None,
                reason: str = None, details: dict = None) -> AdminAction:
        entry = AdminAction(
            admin_id=admin_id,
            action=action,
            target_id=target_id,
            target_type=target_type,
            reason=reason,
            details=details,
        )
        self.db.add(entry)
        return entry

    def _load_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def ban_user(self, admin_id: str, user_id: str, reason: str) -> User:
        if admin_id == user_id:
            raise ValidationError("You cannot ban yourself")
        if not reason or not reason.strip():
            raise ValidationError("A ban reason is required")

        with transaction(self.db):
            user = self._load_user(user_id)
            if user.is_admin:
                raise AuthorizationError("Admins cannot be banned")
            user.is_banned = True
            user.ban_reason = reason.strip()
            user.banned_at = utcnow()
            self._record(admin_id, "ban_user", user_id, "user", reason=user.ban_reason)
            self.notifications.emit(
                user_id,
                NotificationType.SYSTEM,
                "Account Suspended",
                f"Your account has been suspended: {user.ban_reason}",
            )

        logger.info(f"Admin {admin_id} banned user {user_id}")
        return user

    def unban_user(self, admin_id: str, user_id: str) -> User:
        with transaction(self.db):
            user = self._load_user(user_id)
            user.is_banned = False
            user.ban_reason = None
            user.banned_at = None
            self._record(admin_id, "unban_user", user_id, "user")
            self.notifications.emit(
                user_id,
                NotificationType.SYSTEM,
                "Account Restored",
                "Your account has been restored. Welcome back!",
            )

        logger.info(f"Admin {admin_id} unbanned user {user_id}")
        return user

    def list_users(self) -> List[User]:
        return list(self.db.scalars(
            select(User)
            .options(selectinload(User.skills_offered), selectinload(User.skills_wanted))
            .order_by(User.created_at.desc())
        ))

    def list_actions(self, limit: int = 100) -> List[AdminAction]:
        return list(self.db.scalars(select(AdminAction).order_by(AdminAction.created_at.desc()).limit(limit)))

    def report_content(self, reporter_id: str, content_type: ReportContentType, content_id: str,
                       reason: str, description: Optional[str] = None) -> ReportedContent:
        if not reason or not reason.strip():
            raise ValidationError("A report reason is required")
        with transaction(self.db):
            report = ReportedContent(
                reporter_id=reporter_id,
                content_type=ReportContentType(content_type).value,
                content_id=content_id,
                reason=reason.strip(),
                description=description,
                status=ReportStatus.PENDING.value,
            )
            self.db.add(report)
        logger.info(f"User {reporter_id} reported {report.content_type} {content_id}")
        return report

    def list_reports(self, status: Optional[ReportStatus] = None) -> List[ReportedContent]:
        query = select(ReportedContent)
        if status:
            query = query.where(ReportedContent.status == ReportStatus(status).value)
        return list(self.db.scalars(query.order_by(ReportedContent.created_at.desc())))

    def review_report(self, admin_id: str, report_id: str, status: ReportStatus) -> ReportedContent:
        status = ReportStatus(status)
        if status == ReportStatus.PENDING:
            raise ValidationError("A reviewed report cannot be set back to pending")

        with transaction(self.db):
            report = self.db.get(ReportedContent, report_id)
            if report is None:
                raise NotFoundError("Report not found")
            report.status = status.value
            report.reviewed_by = admin_id
            report.reviewed_at = utcnow()
            self._record(admin_id, "review_report", report_id, "report", details={"status": status.value})

        return report

    def create_system_message(self, admin_id: str, title: str, message: str,
                              type: SystemMessageType = SystemMessageType.ANNOUNCEMENT,
                              expires_at: Optional[datetime] = None) -> SystemMessage:
        """Persist a system message and notify every user who is not banned."""
        with transaction(self.db):
            system_message = SystemMessage(
                admin_id=admin_id,
                title=title,
                message=message,
                type=SystemMessageType(type).value,
                expires_at=expires_at,
            )
            self.db.add(system_message)
            self.db.flush()

            recipients = list(self.db.scalars(select(User.id).where(User.is_banned.is_(False))))
            for user_id in recipients:
                self.notifications.emit(
                    user_id, NotificationType.SYSTEM, title, message, related_id=system_message.id
                )
            self._record(admin_id, "send_message", system_message.id, "system",
                         details={"recipients": len(recipients)})

        logger.info(f"Admin {admin_id} broadcast system message {system_message.id} to {len(recipients)} users")
        return system_message

    def list_active_system_messages(self) -> List[SystemMessage]:
        now = utcnow()
        return list(self.db.scalars(
            select(SystemMessage)
            .where(
                SystemMessage.is_active.is_(True),
                or_(SystemMessage.expires_at.is_(None), SystemMessage.expires_at > now),
            )
            .order_by(SystemMessage.created_at.desc())
        ))
