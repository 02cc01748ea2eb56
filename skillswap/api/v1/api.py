from fastapi import APIRouter
from ...core.config import get_settings
from .endpoints import users, skills, swaps, ratings, notifications, conversations, reports, admin

router = APIRouter(prefix=get_settings().api_v1_prefix)

# Include all endpoint routers
router.include_router(users.router)
router.include_router(skills.router)
router.include_router(swaps.router)
router.include_router(ratings.router)
router.include_router(notifications.router)
router.include_router(conversations.router)
router.include_router(reports.router)
router.include_router(admin.router)
router.include_router(admin.system_messages_router)
