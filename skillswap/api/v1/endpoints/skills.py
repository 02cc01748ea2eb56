from typing import Dict, List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....schemas.skill import SkillResponse
from ....services.skill_service import SkillService

router = APIRouter(prefix="/skills", tags=["skills"])


@router.get("/", response_model=List[SkillResponse])
def get_skills(db: Session = Depends(get_db)):
    return SkillService(db).list_all()


@router.get("/by-category", response_model=Dict[str, List[SkillResponse]])
def get_skills_by_category(db: Session = Depends(get_db)):
    """The skill catalogue grouped by category."""
    return SkillService(db).list_by_category()
