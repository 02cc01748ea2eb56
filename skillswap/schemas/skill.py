from pydantic import BaseModel, ConfigDict, Field
from typing import List

class SkillResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    category: str

class UserSkillsUpdate(BaseModel):
    skills_offered: List[int] = Field(default_factory=list, description="Skill ids the user can teach")
    skills_wanted: List[int] = Field(default_factory=list, description="Skill ids the user wants to learn")
