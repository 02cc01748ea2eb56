import logging
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session

from ..core.database import transaction
from ..core.exceptions import (
    AuthorizationError,
    DuplicateRatingError,
    NotFoundError,
    RatingNotAllowedError,
    ValidationError,
)
from ..models import SwapRating, SwapRequest, User
from ..schemas.notification import NotificationType
from ..schemas.rating import RatingType
from ..schemas.swap import SwapStatus
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5

# Request statuses that unlock each kind of rating
RATEABLE_STATUSES = {
    RatingType.POST_REQUEST: {SwapStatus.ACCEPTED.value, SwapStatus.COMPLETED.value},
    RatingType.POST_COMPLETION: {SwapStatus.COMPLETED.value},
}


def rating_aggregate(db: Session, user_id: str) -> Tuple[float, int]:
    """Mean and count of every rating a user has received."""
    average, count = db.execute(
        select(func.avg(SwapRating.rating), func.count(SwapRating.id)).where(SwapRating.rated_id == user_id)
    ).one()
    return (float(average) if average is not None else 0.0), count


class RatingService:
    def __init__(self, db: Session, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def can_rate(self, current_user_id: str, target_user_id: str) -> bool:
        """True once the two users share at least one accepted (or since completed) swap."""
        if current_user_id == target_user_id:
            return False
        pair = or_(
            and_(SwapRequest.requester_id == current_user_id, SwapRequest.target_id == target_user_id),
            and_(SwapRequest.requester_id == target_user_id, SwapRequest.target_id == current_user_id),
        )
        found = self.db.scalar(
            select(SwapRequest.id)
            .where(pair, SwapRequest.status.in_([SwapStatus.ACCEPTED.value, SwapStatus.COMPLETED.value]))
            .limit(1)
        )
        return found is not None

    def has_rated(self, swap_request_id: str, rater_id: str, rating_type: RatingType) -> bool:
        found = self.db.scalar(
            select(SwapRating.id).where(
                SwapRating.swap_request_id == swap_request_id,
                SwapRating.rater_id == rater_id,
                SwapRating.rating_type == RatingType(rating_type).value,
            )
        )
        return found is not None

    def submit(
        self,
        swap_request_id: str,
        rater_id: str,
        rated_id: str,
        rating: int,
        rating_type: RatingType,
        feedback: Optional[str] = None,
    ) -> SwapRating:
        """
        Record a rating and refresh the rated user's aggregate in one transaction.

        Raises:
            ValidationError: Rating outside 1-5, or the rated user is not the other party
            NotFoundError: The swap request does not exist
            AuthorizationError: The rater is not a party to the request
            RatingNotAllowedError: The request has not reached a rateable status
            DuplicateRatingError: The rater already rated this request in this phase
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not MIN_RATING <= rating <= MAX_RATING:
            raise ValidationError(f"Rating must be an integer between {MIN_RATING} and {MAX_RATING}")
        rating_type = RatingType(rating_type)

        with transaction(self.db, conflict_detail=str(DuplicateRatingError(rating_type.value))):
            swap = self.db.get(SwapRequest, swap_request_id)
            if swap is None:
                raise NotFoundError("Swap request not found")
            if not swap.involves(rater_id):
                raise AuthorizationError("You don't have permission to rate this swap")
            if rated_id != swap.other_party(rater_id):
                raise ValidationError("You can only rate the other party of this swap")
            if swap.status not in RATEABLE_STATUSES[rating_type]:
                raise RatingNotAllowedError(
                    f"A {rating_type.value} rating is not available while the swap is {swap.status}"
                )
            if self.has_rated(swap_request_id, rater_id, rating_type):
                raise DuplicateRatingError(rating_type.value)

            # Lock the rated user so concurrent ratings recompute one after another
            rated = self.db.get(User, rated_id, with_for_update=True)
            rater = self.db.get(User, rater_id)

            record = SwapRating(
                swap_request_id=swap_request_id,
                rater_id=rater_id,
                rated_id=rated_id,
                rating=rating,
                feedback=feedback,
                rating_type=rating_type.value,
            )
            self.db.add(record)
            self.db.flush()

            average, count = rating_aggregate(self.db, rated_id)
            rated.rating = average
            rated.review_count = count

            self.notifications.emit(
                rated_id,
                NotificationType.RATING,
                "New Rating Received",
                f"{rater.name} rated you {rating} out of {MAX_RATING}",
                related_id=record.id,
            )

        logger.info(f"User {rater_id} rated {rated_id} {rating}/{MAX_RATING} ({rating_type.value}) for swap {swap_request_id}")
        return record

    def recompute_aggregate(self, user_id: str) -> User:
        """Rebuild a user's rating and review count from the raw rating rows."""
        with transaction(self.db):
            user = self.db.get(User, user_id, with_for_update=True)
            if user is None:
                raise NotFoundError("User not found")
            user.rating, user.review_count = rating_aggregate(self.db, user_id)
        return user

    def list_for_user(self, user_id: str, skip: int = 0, limit: int = 10) -> List[SwapRating]:
        return list(self.db.scalars(
            select(SwapRating)
            .where(SwapRating.rated_id == user_id)
            .order_by(SwapRating.created_at.desc())
            .offset(skip)
            .limit(limit)
        ))

    def list_for_swap(self, swap_request_id: str, acting_user_id: str) -> List[SwapRating]:
        swap = self.db.get(SwapRequest, swap_request_id)
        if swap is None:
            raise NotFoundError("Swap request not found")
        if not swap.involves(acting_user_id):
            raise AuthorizationError("You don't have permission to view ratings for this swap")
        return list(self.db.scalars(
            select(SwapRating)
            .where(SwapRating.swap_request_id == swap_request_id)
            .order_by(SwapRating.created_at.desc())
        ))
