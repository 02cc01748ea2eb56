from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from enum import Enum

class RatingType(str, Enum):
    POST_REQUEST = "post_request"
    POST_COMPLETION = "post_completion"

class RatingCreate(BaseModel):
    rated_id: str
    rating: int = Field(..., ge=1, le=5)
    feedback: Optional[str] = Field(None, max_length=1000)
    rating_type: RatingType

class RatingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    swap_request_id: str
    rater_id: str
    rated_id: str
    rating: int
    feedback: Optional[str] = None
    rating_type: RatingType
    created_at: datetime

class CanRateResponse(BaseModel):
    can_rate: bool
