from .skill import Skill, user_skills_offered, user_skills_wanted
from .user import User
from .swap import SwapRequest
from .rating import SwapRating
from .notification import Notification
from .conversation import Conversation, Message
from .admin import AdminAction, ReportedContent, SystemMessage

__all__ = [
    "Skill", "user_skills_offered", "user_skills_wanted",
    "User",
    "SwapRequest",
    "SwapRating",
    "Notification",
    "Conversation", "Message",
    "AdminAction", "ReportedContent", "SystemMessage",
]
