from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from enum import Enum

class NotificationType(str, Enum):
    MESSAGE = "message"
    SWAP_REQUEST = "swap_request"
    RATING = "rating"
    SYSTEM = "system"

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    type: NotificationType
    title: str
    content: str
    related_id: Optional[str] = None
    is_read: bool = False
    created_at: datetime

class MarkReadResult(BaseModel):
    updated: bool

class MarkAllReadResult(BaseModel):
    updated: int

class UnreadCount(BaseModel):
    unread: int
