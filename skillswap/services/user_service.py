import logging
from typing import List, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from ..core.database import transaction
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.security import get_password_hash, verify_password
from ..models import (
    Conversation,
    Message,
    Notification,
    ReportedContent,
    Skill,
    SwapRating,
    SwapRequest,
    User,
    user_skills_offered,
    user_skills_wanted,
)
from ..schemas.user import UserCreate, UserUpdate
from .notification_service import NotificationService
from .rating_service import rating_aggregate

logger = logging.getLogger(__name__)


class UserService:
    def __init__(self, db: Session, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def create_user(self, user: UserCreate, role: str = "user") -> User:
        """Register a new account and greet it with a welcome notification."""
        email = user.email.lower()
        if self.get_by_email(email) is not None:
            raise ConflictError("Email already registered")

        with transaction(self.db, conflict_detail="Email already registered"):
            new_user = User(
                name=user.name.strip(),
                email=email,
                hashed_password=get_password_hash(user.password),
                location=user.location,
                availability={"dates": [], "times": []},
                role=role,
            )
            self.db.add(new_user)
            self.db.flush()
            self.notifications.send_welcome(new_user.id)

        logger.info(f"Registered user {new_user.id}")
        return new_user

    def authenticate(self, email: str, password: str) -> Optional[User]:
        user = self.get_by_email(email.lower())
        if user is None or not user.hashed_password:
            return None
        if not verify_password(password, user.hashed_password):
            return None
        return user

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.scalar(select(User).where(func.lower(User.email) == email.lower()))

    def get_user_by_id(self, user_id: str) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_profile(self, user_id: str, viewer_id: Optional[str] = None) -> User:
        """A user's public profile. Private profiles are only visible to their owner."""
        user = self.get_user_by_id(user_id)
        if (not user.is_public or user.is_banned) and viewer_id != user.id:
            raise NotFoundError("User not found")
        return user

    def update_user(self, user_id: str, user_update: UserUpdate) -> User:
        update_data = user_update.model_dump(exclude_unset=True, mode="json")
        with transaction(self.db):
            user = self.get_user_by_id(user_id)
            if "name" in update_data:
                if update_data["name"] is None or not update_data["name"].strip():
                    raise ValidationError("name must not be empty")
                user.name = update_data["name"].strip()
            if "location" in update_data:
                user.location = update_data["location"]
            if "profile_photo" in update_data:
                user.profile_photo = update_data["profile_photo"]
            if "availability" in update_data:
                user.availability = update_data["availability"] or {"dates": [], "times": []}
            if "is_public" in update_data and update_data["is_public"] is not None:
                user.is_public = update_data["is_public"]
        return user

    def set_skills(self, user_id: str, offered_ids: List[int], wanted_ids: List[int]) -> User:
        """
        Replace both skill sets of a user in one transaction.

        Duplicate ids collapse to one link. Unknown ids abort the whole change.
        """
        offered_ids = list(dict.fromkeys(offered_ids))
        wanted_ids = list(dict.fromkeys(wanted_ids))

        with transaction(self.db):
            user = self.get_user_by_id(user_id)
            requested = set(offered_ids) | set(wanted_ids)
            skills = {}
            if requested:
                skills = {
                    skill.id: skill
                    for skill in self.db.scalars(select(Skill).where(Skill.id.in_(requested)))
                }
            missing = sorted(requested - skills.keys())
            if missing:
                raise ValidationError(f"Unknown skill id(s): {', '.join(str(i) for i in missing)}")

            user.skills_offered = [skills[i] for i in offered_ids]
            user.skills_wanted = [skills[i] for i in wanted_ids]

        logger.info(f"User {user_id} now offers {len(offered_ids)} and wants {len(wanted_ids)} skills")
        return user

    def delete_account(self, user_id: str) -> None:
        """
        Remove a user and everything that hangs off the account.

        Runs as one transaction; a failure part-way leaves the account intact.
        """
        with transaction(self.db):
            user = self.get_user_by_id(user_id)
            if user.is_admin:
                admins = self.db.scalar(select(func.count(User.id)).where(User.role == "admin"))
                if admins <= 1:
                    raise AuthorizationError("The last admin account cannot be deleted")

            swap_ids = select(SwapRequest.id).where(
                or_(SwapRequest.requester_id == user_id, SwapRequest.target_id == user_id)
            )
            conversation_ids = select(Conversation.id).where(
                or_(Conversation.participant1_id == user_id, Conversation.participant2_id == user_id)
            )
            doomed_ratings = or_(
                SwapRating.rater_id == user_id,
                SwapRating.rated_id == user_id,
                SwapRating.swap_request_id.in_(swap_ids),
            )
            # Other users whose aggregate includes a rating that is about to disappear
            affected = set(self.db.scalars(
                select(SwapRating.rated_id).where(doomed_ratings, SwapRating.rated_id != user_id).distinct()
            ))

            statements = [
                update(ReportedContent).where(ReportedContent.reviewed_by == user_id).values(reviewed_by=None),
                delete(user_skills_offered).where(user_skills_offered.c.user_id == user_id),
                delete(user_skills_wanted).where(user_skills_wanted.c.user_id == user_id),
                delete(SwapRating).where(doomed_ratings),
                delete(Message).where(
                    or_(Message.sender_id == user_id, Message.conversation_id.in_(conversation_ids))
                ),
                delete(Conversation).where(Conversation.id.in_(conversation_ids)),
                delete(SwapRequest).where(SwapRequest.id.in_(swap_ids)),
                delete(Notification).where(Notification.user_id == user_id),
                delete(ReportedContent).where(ReportedContent.reporter_id == user_id),
                delete(User).where(User.id == user_id),
            ]
            for statement in statements:
                self.db.execute(statement.execution_options(synchronize_session=False))

            for rated_id in affected:
                average, count = rating_aggregate(self.db, rated_id)
                self.db.execute(
                    update(User)
                    .where(User.id == rated_id)
                    .values(rating=average, review_count=count)
                    .execution_options(synchronize_session=False)
                )

        self.db.expunge_all()
        logger.info(f"Deleted account {user_id}")
