import logging
from collections import defaultdict
from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..core.database import transaction
from ..models import Skill

logger = logging.getLogger(__name__)

DEFAULT_SKILLS = [
    {"name": "Python", "category": "Programming"},
    {"name": "JavaScript", "category": "Programming"},
    {"name": "SQL", "category": "Programming"},
    {"name": "Web Development", "category": "Programming"},
    {"name": "Graphic Design", "category": "Design"},
    {"name": "UI/UX Design", "category": "Design"},
    {"name": "Photoshop", "category": "Design"},
    {"name": "Excel", "category": "Business"},
    {"name": "Public Speaking", "category": "Business"},
    {"name": "Digital Marketing", "category": "Marketing"},
    {"name": "SEO", "category": "Marketing"},
    {"name": "Spanish", "category": "Languages"},
    {"name": "French", "category": "Languages"},
    {"name": "Japanese", "category": "Languages"},
    {"name": "Guitar", "category": "Music"},
    {"name": "Piano", "category": "Music"},
    {"name": "Photography", "category": "Creative"},
    {"name": "Video Editing", "category": "Creative"},
    {"name": "Cooking", "category": "Lifestyle"},
    {"name": "Yoga", "category": "Lifestyle"},
]


class SkillService:
    def __init__(self, db: Session):
        self.db = db

    def list_all(self) -> List[Skill]:
        return list(self.db.scalars(select(Skill).order_by(Skill.category, Skill.name)))

    def list_by_category(self) -> Dict[str, List[Skill]]:
        grouped = defaultdict(list)
        for skill in self.list_all():
            grouped[skill.category].append(skill)
        return dict(grouped)

    def seed_defaults(self) -> int:
        """Insert the default catalogue into an empty skills table. Returns how many were added."""
        if self.db.scalar(select(Skill.id).limit(1)) is not None:
            return 0
        with transaction(self.db):
            for skill in DEFAULT_SKILLS:
                self.db.add(Skill(**skill))
        logger.info(f"Seeded {len(DEFAULT_SKILLS)} default skills")
        return len(DEFAULT_SKILLS)
