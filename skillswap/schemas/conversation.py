from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime

from .user import UserSummary

class MessageCreate(BaseModel):
    content: str = Field(..., max_length=5000)

class MessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    conversation_id: str
    sender_id: str
    content: str
    message_type: str = "text"
    is_read: bool = False
    created_at: datetime

class ConversationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    participant1_id: str
    participant2_id: str
    swap_request_id: Optional[str] = None
    last_message_at: datetime
    created_at: datetime

class ConversationWithUsers(ConversationResponse):
    participant1: UserSummary
    participant2: UserSummary
    last_message: Optional[MessageResponse] = None
    unread_count: int = 0
