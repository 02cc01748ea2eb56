from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, String, Text

from ..core.database import Base
from .common import generate_id, utcnow


class AdminAction(Base):
    __tablename__ = "admin_actions"

    id = Column(String(36), primary_key=True, default=generate_id)
    admin_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    action = Column(String(50), nullable=False)  # ban_user, unban_user, review_report, send_message
    target_id = Column(String(36), nullable=True)
    target_type = Column(String(20), nullable=True)  # user, report, system
    reason = Column(Text, nullable=True)
    details = Column("metadata", JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class SystemMessage(Base):
    __tablename__ = "system_messages"

    id = Column(String(36), primary_key=True, default=generate_id)
    admin_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)  # announcement, maintenance, update
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at = Column(DateTime(timezone=True), nullable=True)


class ReportedContent(Base):
    __tablename__ = "reported_content"

    id = Column(String(36), primary_key=True, default=generate_id)
    reporter_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content_type = Column(String(20), nullable=False)  # user, skill, swap_request
    content_id = Column(String(36), nullable=False)
    reason = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default="pending")  # pending, reviewed, resolved, dismissed
    reviewed_by = Column(String(36), ForeignKey("users.id"), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
