from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Text

from ..core.database import Base
from .common import generate_id, utcnow


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(20), nullable=False)  # message, swap_request, rating, system
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    related_id = Column(String(36), nullable=True)  # loose reference, no FK
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
