from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, text
from sqlalchemy.orm import relationship

from ..core.database import Base
from .common import generate_id, utcnow


class SwapRequest(Base):
    __tablename__ = "swap_requests"
    __table_args__ = (
        # At most one pending request per ordered (requester, target) pair
        Index(
            "uq_swap_requests_pending_pair",
            "requester_id",
            "target_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    requester_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    target_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Free-text skill names captured when the request was made
    sender_skill = Column(Text, nullable=False)
    receiver_skill = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    message = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    requester = relationship("User", foreign_keys=[requester_id])
    target = relationship("User", foreign_keys=[target_id])

    def involves(self, user_id: str) -> bool:
        return user_id in (self.requester_id, self.target_id)

    def other_party(self, user_id: str) -> str:
        return self.target_id if user_id == self.requester_id else self.requester_id
