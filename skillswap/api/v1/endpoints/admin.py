from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....models import User
from ....schemas.admin import (
    AdminActionResponse,
    BanRequest,
    ReportResponse,
    ReportReview,
    ReportStatus,
    SystemMessageCreate,
    SystemMessageResponse,
)
from ....schemas.swap import SwapRequestWithUsers
from ....schemas.user import UserProfile
from ....services.admin_service import AdminService
from ....services.swap_service import SwapRequestService
from .users import get_current_admin

router = APIRouter(prefix="/admin", tags=["admin"])

# Readable by anyone, so it lives outside the admin prefix
system_messages_router = APIRouter(prefix="/system-messages", tags=["system messages"])


@router.get("/users", response_model=List[UserProfile])
def admin_list_users(admin: User = Depends(get_current_admin), db: Session = Depends(get_db)):
    return AdminService(db).list_users()


@router.post("/users/{user_id}/ban", response_model=UserProfile)
def ban_user(
    user_id: str,
    ban: BanRequest,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Suspend a user. The user is notified and the action is logged."""
    return AdminService(db).ban_user(admin.id, user_id, ban.reason)


@router.post("/users/{user_id}/unban", response_model=UserProfile)
def unban_user(user_id: str, admin: User = Depends(get_current_admin), db: Session = Depends(get_db)):
    return AdminService(db).unban_user(admin.id, user_id)


@router.get("/swap-requests", response_model=List[SwapRequestWithUsers])
def admin_list_swap_requests(admin: User = Depends(get_current_admin), db: Session = Depends(get_db)):
    return SwapRequestService(db).list_all()


@router.get("/actions", response_model=List[AdminActionResponse])
def admin_list_actions(
    limit: int = Query(100, ge=1, le=500),
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Most recent moderation actions first."""
    return AdminService(db).list_actions(limit=limit)


@router.get("/reports", response_model=List[ReportResponse])
def admin_list_reports(
    status: Optional[ReportStatus] = None,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return AdminService(db).list_reports(status=status)


@router.patch("/reports/{report_id}", response_model=ReportResponse)
def review_report(
    report_id: str,
    review: ReportReview,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    return AdminService(db).review_report(admin.id, report_id, review.status)


@router.post("/system-messages", response_model=SystemMessageResponse, status_code=status.HTTP_201_CREATED)
def create_system_message(
    system_message: SystemMessageCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db)
):
    """Publish a system message and notify every user who is not banned."""
    return AdminService(db).create_system_message(
        admin.id,
        title=system_message.title,
        message=system_message.message,
        type=system_message.type,
        expires_at=system_message.expires_at,
    )


@system_messages_router.get("/", response_model=List[SystemMessageResponse])
def get_active_system_messages(db: Session = Depends(get_db)):
    return AdminService(db).list_active_system_messages()
