from sqlalchemy import Column, ForeignKey, Integer, String, Table

from ..core.database import Base

# Composite primary keys keep a (user, skill) pair from appearing twice.
user_skills_offered = Table(
    "user_skills_offered",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)

user_skills_wanted = Table(
    "user_skills_wanted",
    Base.metadata,
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("skill_id", Integer, ForeignKey("skills.id", ondelete="CASCADE"), primary_key=True),
)


class Skill(Base):
    __tablename__ = "skills"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)   # e.g. "Python"
    category = Column(String(100), nullable=False, index=True)  # e.g. "Programming"
