from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .user import UserSummary

class SwapStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class SwapRequestCreate(BaseModel):
    # Defaults to the authenticated user; anything else is refused
    requester_id: Optional[str] = None
    target_id: str
    sender_skill: str = Field(..., max_length=500)
    receiver_skill: str = Field(..., max_length=500)
    message: Optional[str] = Field(None, max_length=1000)

class SwapRequestUpdate(BaseModel):
    """Fields the requester may edit while a request is still pending."""
    sender_skill: Optional[str] = Field(None, max_length=500)
    receiver_skill: Optional[str] = Field(None, max_length=500)
    message: Optional[str] = Field(None, max_length=1000)

class SwapStatusUpdate(BaseModel):
    status: SwapStatus

class SwapRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    requester_id: str
    target_id: str
    sender_skill: str
    receiver_skill: str
    status: SwapStatus
    message: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class SwapRequestWithUsers(SwapRequestResponse):
    requester: UserSummary
    target: UserSummary

class DeleteResult(BaseModel):
    deleted: bool
