from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Optional, List
from datetime import datetime
from enum import Enum

from .skill import SkillResponse

class AvailabilityDate(str, Enum):
    WEEKENDS = "weekends"
    WEEKDAYS = "weekdays"
    EVERYDAY = "everyday"

class AvailabilityTime(str, Enum):
    MORNING = "morning"
    EVENING = "evening"
    NIGHT = "night"

class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"

class Availability(BaseModel):
    dates: List[AvailabilityDate] = []
    times: List[AvailabilityTime] = []

class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    location: Optional[str] = Field(None, max_length=200)

class UserUpdate(BaseModel):
    """Every field a user may change on their own profile."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    profile_photo: Optional[str] = Field(None, max_length=500)
    availability: Optional[Availability] = None
    is_public: Optional[bool] = None

class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    profile_photo: Optional[str] = None

class UserResponse(UserSummary):
    location: Optional[str] = None
    availability: Optional[Availability] = None
    is_public: bool = True
    rating: float = 0.0
    review_count: int = 0
    created_at: Optional[datetime] = None

class UserWithSkills(UserResponse):
    skills_offered: List[SkillResponse] = []
    skills_wanted: List[SkillResponse] = []

class UserProfile(UserWithSkills):
    """The authenticated user's own view of their account."""
    email: EmailStr
    role: UserRole = UserRole.USER
    is_banned: bool = False

class PaginatedUsers(BaseModel):
    data: List[UserWithSkills]
    total_count: int
    total_pages: int
    current_page: int
    has_next_page: bool
    has_previous_page: bool

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
