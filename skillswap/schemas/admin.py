from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum

class ReportContentType(str, Enum):
    USER = "user"
    SKILL = "skill"
    SWAP_REQUEST = "swap_request"

class ReportStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"

class SystemMessageType(str, Enum):
    ANNOUNCEMENT = "announcement"
    MAINTENANCE = "maintenance"
    UPDATE = "update"

class BanRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)

class ReportCreate(BaseModel):
    content_type: ReportContentType
    content_id: str
    reason: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)

class ReportReview(BaseModel):
    status: ReportStatus

class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    reporter_id: str
    content_type: ReportContentType
    content_id: str
    reason: str
    description: Optional[str] = None
    status: ReportStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    created_at: datetime

class SystemMessageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=2000)
    type: SystemMessageType = SystemMessageType.ANNOUNCEMENT
    expires_at: Optional[datetime] = None

class SystemMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: str
    title: str
    message: str
    type: SystemMessageType
    is_active: bool
    created_at: datetime
    expires_at: Optional[datetime] = None

class AdminActionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    admin_id: str
    action: str
    target_id: Optional[str] = None
    target_type: Optional[str] = None
    reason: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    created_at: datetime
