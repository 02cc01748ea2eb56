from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....core.exceptions import AuthorizationError
from ....models import User
from ....schemas.swap import (
    DeleteResult,
    SwapRequestCreate,
    SwapRequestResponse,
    SwapRequestUpdate,
    SwapRequestWithUsers,
    SwapStatusUpdate,
)
from ....services.swap_service import SwapRequestService
from .users import get_current_user

router = APIRouter(prefix="/swap-requests", tags=["swap requests"])


@router.post("/", response_model=SwapRequestResponse, status_code=status.HTTP_201_CREATED)
def create_swap_request(
    swap: SwapRequestCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Create a new swap request.

    Any request still pending from the current user to the same target is
    replaced by this one.
    """
    if swap.requester_id is not None and swap.requester_id != current_user.id:
        raise AuthorizationError("You can only send swap requests as yourself")

    return SwapRequestService(db).create(
        requester_id=current_user.id,
        target_id=swap.target_id,
        sender_skill=swap.sender_skill,
        receiver_skill=swap.receiver_skill,
        message=swap.message,
    )


@router.get("/", response_model=List[SwapRequestWithUsers])
def get_swap_requests(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Get every swap request the current user sent or received."""
    return SwapRequestService(db).list_for_user(current_user.id)


@router.get("/{request_id}", response_model=SwapRequestWithUsers)
def get_swap_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return SwapRequestService(db).get(request_id, current_user.id)


@router.patch("/{request_id}", response_model=SwapRequestResponse)
def update_swap_request(
    request_id: str,
    swap_update: SwapRequestUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit the skills or message of a pending request. Requester only."""
    return SwapRequestService(db).update_details(request_id, current_user.id, swap_update)


@router.patch("/{request_id}/status", response_model=SwapRequestResponse)
def update_swap_request_status(
    request_id: str,
    status_update: SwapStatusUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Move a swap request to a new status.

    The recipient accepts or rejects, either party completes an accepted
    swap, and the requester cancels.
    """
    return SwapRequestService(db).update_status(request_id, status_update.status, current_user.id)


@router.delete("/{request_id}", response_model=DeleteResult)
def delete_swap_request(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a swap request. ``deleted`` is false when there was nothing to delete."""
    return {"deleted": SwapRequestService(db).delete(request_id, current_user.id)}
