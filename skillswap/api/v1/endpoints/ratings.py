from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....models import User
from ....schemas.rating import RatingCreate, RatingResponse
from ....services.rating_service import RatingService
from .users import get_current_user

router = APIRouter(prefix="/swap-requests", tags=["ratings"])


@router.post("/{request_id}/rating", response_model=RatingResponse, status_code=status.HTTP_201_CREATED)
def create_rating(
    request_id: str,
    rating: RatingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Rate the other party of a swap request.

    ``post_request`` ratings open once the request is accepted and
    ``post_completion`` ratings once it is completed. Each user may submit
    one rating of each type per request.
    """
    return RatingService(db).submit(
        swap_request_id=request_id,
        rater_id=current_user.id,
        rated_id=rating.rated_id,
        rating=rating.rating,
        rating_type=rating.rating_type,
        feedback=rating.feedback,
    )


@router.get("/{request_id}/ratings", response_model=List[RatingResponse])
def get_swap_ratings(
    request_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the ratings left on a swap request. Parties only."""
    return RatingService(db).list_for_swap(request_id, current_user.id)
