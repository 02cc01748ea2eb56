from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import relationship

from ..core.database import Base
from .common import generate_id, utcnow
from .skill import user_skills_offered, user_skills_wanted


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=True)
    location = Column(String(200), nullable=True)
    profile_photo = Column(String(500), nullable=True)
    availability = Column(JSON, nullable=True, default=dict)  # {"dates": [...], "times": [...]}
    is_public = Column(Boolean, nullable=False, default=True)

    # Denormalised from swap_ratings; rewritten on every new rating
    rating = Column(Float, nullable=False, default=0.0)
    review_count = Column(Integer, nullable=False, default=0)

    role = Column(String(20), nullable=False, default="user")  # user, admin
    is_banned = Column(Boolean, nullable=False, default=False)
    ban_reason = Column(Text, nullable=True)
    banned_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    skills_offered = relationship("Skill", secondary=user_skills_offered, order_by="Skill.name")
    skills_wanted = relationship("Skill", secondary=user_skills_wanted, order_by="Skill.name")

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
