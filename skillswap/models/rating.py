from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint

from ..core.database import Base
from .common import generate_id, utcnow


class SwapRating(Base):
    __tablename__ = "swap_ratings"
    __table_args__ = (
        UniqueConstraint("swap_request_id", "rater_id", "rating_type", name="uq_swap_ratings_phase"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    swap_request_id = Column(String(36), ForeignKey("swap_requests.id", ondelete="CASCADE"), nullable=False, index=True)
    rater_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    rated_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)  # 1-5 stars
    feedback = Column(Text, nullable=True)
    rating_type = Column(String(20), nullable=False)  # post_request, post_completion
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
