import logging
from typing import Dict, List, Optional, Set

from sqlalchemy import delete, or_, select, update
from sqlalchemy.orm import Session, selectinload

from ..core.database import transaction
from ..core.exceptions import (
    AuthorizationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from ..models import Conversation, SwapRating, SwapRequest, User
from ..models.common import utcnow
from ..schemas.notification import NotificationType
from ..schemas.swap import SwapRequestUpdate, SwapStatus
from .conversation_service import ConversationService
from .notification_service import NotificationService
from .rating_service import rating_aggregate

logger = logging.getLogger(__name__)

# Statuses a request may move to from each status. Anything missing is terminal.
TRANSITIONS: Dict[SwapStatus, Set[SwapStatus]] = {
    SwapStatus.PENDING: {SwapStatus.ACCEPTED, SwapStatus.REJECTED, SwapStatus.CANCELLED},
    SwapStatus.ACCEPTED: {SwapStatus.COMPLETED, SwapStatus.CANCELLED},
}

STATUS_TITLES = {
    SwapStatus.ACCEPTED: "Swap Request Accepted",
    SwapStatus.REJECTED: "Swap Request Declined",
    SwapStatus.COMPLETED: "Swap Completed",
    SwapStatus.CANCELLED: "Swap Request Cancelled",
}


def _clean_skill(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value.strip()


class SwapRequestService:
    """Creates swap requests and drives them through their status lifecycle."""

    def __init__(
        self,
        db: Session,
        notifications: Optional[NotificationService] = None,
        conversations: Optional[ConversationService] = None,
    ):
        self.db = db
        self.notifications = notifications or NotificationService(db)
        self.conversations = conversations or ConversationService(db, self.notifications)

    def _load(self, request_id: str, lock: bool = False) -> SwapRequest:
        swap = self.db.get(SwapRequest, request_id, with_for_update=lock or None)
        if swap is None:
            raise NotFoundError("Swap request not found")
        return swap

    def _load_user(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def create(
        self,
        requester_id: str,
        target_id: str,
        sender_skill: str,
        receiver_skill: str,
        message: Optional[str] = None,
    ) -> SwapRequest:
        """
        Create a pending swap request from ``requester_id`` to ``target_id``.

        Any request still pending for the same ordered pair is removed first,
        so the newest request always wins.

        Raises:
            ValidationError: Blank skills or a request to oneself
            NotFoundError: Either user does not exist
        """
        sender_skill = _clean_skill(sender_skill, "sender_skill")
        receiver_skill = _clean_skill(receiver_skill, "receiver_skill")
        if requester_id == target_id:
            raise ValidationError("You cannot send a swap request to yourself")

        requester = self._load_user(requester_id)
        self._load_user(target_id)

        with transaction(self.db, conflict_detail="Another request to this user was created at the same time"):
            pending_pair = (
                SwapRequest.requester_id == requester_id,
                SwapRequest.target_id == target_id,
                SwapRequest.status == SwapStatus.PENDING.value,
            )
            superseded = list(
                self.db.scalars(select(SwapRequest.id).where(*pending_pair).with_for_update())
            )
            if superseded:
                self.db.execute(
                    delete(SwapRequest)
                    .where(*pending_pair)
                    .execution_options(synchronize_session=False)
                )
                logger.info(f"Superseded pending swap requests {superseded} from {requester_id} to {target_id}")

            now = utcnow()
            swap = SwapRequest(
                requester_id=requester_id,
                target_id=target_id,
                sender_skill=sender_skill,
                receiver_skill=receiver_skill,
                message=message,
                status=SwapStatus.PENDING.value,
                created_at=now,
                updated_at=now,
            )
            self.db.add(swap)
            self.db.flush()

            self.notifications.emit(
                target_id,
                NotificationType.SWAP_REQUEST,
                "New Swap Request",
                f"{requester.name} wants to swap {sender_skill} for {receiver_skill}",
                related_id=swap.id,
            )

        logger.info(f"Created swap request {swap.id} from {requester_id} to {target_id}")
        return swap

    def update_status(self, request_id: str, new_status: SwapStatus, acting_user_id: str) -> SwapRequest:
        """
        Move a request to ``new_status`` on behalf of ``acting_user_id``.

        Allowed moves:
            pending  -> accepted, rejected  (target only)
            accepted -> completed           (either party)
            pending, accepted -> cancelled  (requester only)

        Raises:
            NotFoundError: The request does not exist
            AuthorizationError: The user is not a party, or not the party allowed to make this move
            InvalidTransitionError: The move is not defined from the current status
        """
        new_status = SwapStatus(new_status)

        with transaction(self.db):
            swap = self._load(request_id, lock=True)
            if not swap.involves(acting_user_id):
                raise AuthorizationError("You don't have permission to update this swap request")

            current_status = SwapStatus(swap.status)
            if new_status not in TRANSITIONS.get(current_status, set()):
                raise InvalidTransitionError(current_status.value, new_status.value)

            if new_status in (SwapStatus.ACCEPTED, SwapStatus.REJECTED) and acting_user_id != swap.target_id:
                raise AuthorizationError("Only the recipient can accept or reject a swap request")
            if new_status == SwapStatus.CANCELLED and acting_user_id != swap.requester_id:
                raise AuthorizationError("Only the requester can cancel a swap request")

            swap.status = new_status.value
            swap.updated_at = utcnow()

            actor = self._load_user(acting_user_id)
            self.notifications.emit(
                swap.other_party(acting_user_id),
                NotificationType.SWAP_REQUEST,
                STATUS_TITLES[new_status],
                f"{actor.name} marked your swap of {swap.sender_skill} for {swap.receiver_skill} as {new_status.value}",
                related_id=swap.id,
            )

            if new_status == SwapStatus.ACCEPTED:
                self.conversations.open_for_swap(swap)

        logger.info(f"Swap request {request_id}: {current_status.value} -> {new_status.value} by {acting_user_id}")
        return swap

    def update_details(self, request_id: str, acting_user_id: str, patch: SwapRequestUpdate) -> SwapRequest:
        """Let the requester edit the skills or message of a request that is still pending."""
        changes = patch.model_dump(exclude_unset=True)

        with transaction(self.db):
            swap = self._load(request_id, lock=True)
            if acting_user_id != swap.requester_id:
                raise AuthorizationError("Only the requester can edit a swap request")
            if swap.status != SwapStatus.PENDING.value:
                raise InvalidTransitionError(
                    swap.status, swap.status, detail="Only pending swap requests can be edited"
                )

            if "sender_skill" in changes:
                swap.sender_skill = _clean_skill(changes["sender_skill"], "sender_skill")
            if "receiver_skill" in changes:
                swap.receiver_skill = _clean_skill(changes["receiver_skill"], "receiver_skill")
            if "message" in changes:
                swap.message = changes["message"]
            swap.updated_at = utcnow()

        return swap

    def delete(self, request_id: str, acting_user_id: str) -> bool:
        """
        Delete a request.

        The requester may delete in any status; the target only while pending.
        Ratings left on the request go with it and the rated users' aggregates
        are recomputed in the same transaction.

        Returns:
            False when there was nothing to delete.
        """
        with transaction(self.db):
            swap = self.db.get(SwapRequest, request_id, with_for_update=True)
            if swap is None:
                return False
            if not swap.involves(acting_user_id):
                raise AuthorizationError("You don't have permission to delete this swap request")
            if acting_user_id != swap.requester_id and swap.status != SwapStatus.PENDING.value:
                raise AuthorizationError("Recipients can only remove requests that are still pending")

            affected = set(self.db.scalars(
                select(SwapRating.rated_id).where(SwapRating.swap_request_id == request_id).distinct()
            ))
            self.db.execute(
                delete(SwapRating)
                .where(SwapRating.swap_request_id == request_id)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                update(Conversation)
                .where(Conversation.swap_request_id == request_id)
                .values(swap_request_id=None)
                .execution_options(synchronize_session=False)
            )

            result = self.db.execute(
                delete(SwapRequest)
                .where(
                    SwapRequest.id == request_id,
                    or_(
                        SwapRequest.requester_id == acting_user_id,
                        (SwapRequest.target_id == acting_user_id)
                        & (SwapRequest.status == SwapStatus.PENDING.value),
                    ),
                )
                .execution_options(synchronize_session=False)
            )

            for rated_id in affected:
                average, count = rating_aggregate(self.db, rated_id)
                self.db.execute(
                    update(User)
                    .where(User.id == rated_id)
                    .values(rating=average, review_count=count)
                    .execution_options(synchronize_session=False)
                )

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Swap request {request_id} deleted by {acting_user_id}")
        return deleted

    def get(self, request_id: str, acting_user_id: str) -> SwapRequest:
        swap = self._load(request_id)
        if not swap.involves(acting_user_id):
            raise AuthorizationError("You don't have permission to view this swap request")
        return swap

    def list_for_user(self, user_id: str) -> List[SwapRequest]:
        """Every request the user sent or received, newest first, with both parties loaded."""
        query = (
            select(SwapRequest)
            .options(selectinload(SwapRequest.requester), selectinload(SwapRequest.target))
            .where(or_(SwapRequest.requester_id == user_id, SwapRequest.target_id == user_id))
            .order_by(SwapRequest.created_at.desc())
        )
        return list(self.db.scalars(query))

    def list_all(self) -> List[SwapRequest]:
        query = (
            select(SwapRequest)
            .options(selectinload(SwapRequest.requester), selectinload(SwapRequest.target))
            .order_by(SwapRequest.created_at.desc())
        )
        return list(self.db.scalars(query))
