from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....models import User
from ....schemas.admin import ReportCreate, ReportResponse
from ....services.admin_service import AdminService
from .users import get_current_user

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("/", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
def report_content(
    report: ReportCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Flag a user, skill or swap request for moderator review."""
    return AdminService(db).report_content(
        current_user.id,
        content_type=report.content_type,
        content_id=report.content_id,
        reason=report.reason,
        description=report.description,
    )
