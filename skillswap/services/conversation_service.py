import logging
from typing import List, Optional

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.orm import Session, selectinload

from ..core.database import transaction
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..models import Conversation, Message, SwapRequest, User
from ..models.common import utcnow
from ..schemas.notification import NotificationType
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

PREVIEW_LENGTH = 80


class ConversationService:
    def __init__(self, db: Session, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService(db)

    def _between(self, user_a: str, user_b: str) -> Optional[Conversation]:
        return self.db.scalar(
            select(Conversation).where(
                or_(
                    and_(Conversation.participant1_id == user_a, Conversation.participant2_id == user_b),
                    and_(Conversation.participant1_id == user_b, Conversation.participant2_id == user_a),
                )
            )
        )

    def _load_for(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = self.db.get(Conversation, conversation_id)
        if conversation is None:
            raise NotFoundError("Conversation not found")
        if not conversation.involves(user_id):
            raise AuthorizationError("You are not a participant in this conversation")
        return conversation

    def open_for_swap(self, swap: SwapRequest) -> Conversation:
        """
        Return the conversation between the two parties of ``swap``, creating
        it if they have never talked. Runs inside the caller's transaction.
        """
        conversation = self._between(swap.requester_id, swap.target_id)
        if conversation is not None:
            if conversation.swap_request_id is None:
                conversation.swap_request_id = swap.id
            return conversation

        conversation = Conversation(
            participant1_id=swap.requester_id,
            participant2_id=swap.target_id,
            swap_request_id=swap.id,
        )
        self.db.add(conversation)
        self.db.flush()
        logger.info(f"Opened conversation {conversation.id} for swap request {swap.id}")
        return conversation

    def send_message(self, conversation_id: str, sender_id: str, content: str) -> Message:
        if content is None or not content.strip():
            raise ValidationError("Message content must not be empty")

        with transaction(self.db):
            conversation = self._load_for(conversation_id, sender_id)
            sender = self.db.get(User, sender_id)

            message = Message(conversation_id=conversation.id, sender_id=sender_id, content=content.strip())
            self.db.add(message)
            conversation.last_message_at = utcnow()
            self.db.flush()

            preview = message.content[:PREVIEW_LENGTH]
            self.notifications.emit(
                conversation.other_participant(sender_id),
                NotificationType.MESSAGE,
                f"New message from {sender.name}",
                preview,
                related_id=conversation.id,
            )

        return message

    def list_for_user(self, user_id: str) -> List[dict]:
        """
        Conversations the user takes part in, most recent activity first,
        each with its last message and the number of unread messages
        addressed to the user.
        """
        conversations = self.db.scalars(
            select(Conversation)
            .options(selectinload(Conversation.participant1), selectinload(Conversation.participant2))
            .where(or_(Conversation.participant1_id == user_id, Conversation.participant2_id == user_id))
            .order_by(Conversation.last_message_at.desc())
        )

        results = []
        for conversation in conversations:
            last_message = self.db.scalar(
                select(Message)
                .where(Message.conversation_id == conversation.id)
                .order_by(Message.created_at.desc())
                .limit(1)
            )
            unread_count = self.db.scalar(
                select(func.count(Message.id)).where(
                    Message.conversation_id == conversation.id,
                    Message.sender_id != user_id,
                    Message.is_read.is_(False),
                )
            )
            results.append({
                "id": conversation.id,
                "participant1_id": conversation.participant1_id,
                "participant2_id": conversation.participant2_id,
                "swap_request_id": conversation.swap_request_id,
                "last_message_at": conversation.last_message_at,
                "created_at": conversation.created_at,
                "participant1": conversation.participant1,
                "participant2": conversation.participant2,
                "last_message": last_message,
                "unread_count": unread_count,
            })
        return results

    def list_messages(self, conversation_id: str, user_id: str) -> List[Message]:
        self._load_for(conversation_id, user_id)
        return list(self.db.scalars(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at.asc())
        ))

    def mark_read(self, conversation_id: str, user_id: str) -> int:
        """Mark the other participant's messages as read. Safe to repeat."""
        with transaction(self.db):
            self._load_for(conversation_id, user_id)
            result = self.db.execute(
                update(Message)
                .where(
                    Message.conversation_id == conversation_id,
                    Message.sender_id != user_id,
                    Message.is_read.is_(False),
                )
                .values(is_read=True)
                .execution_options(synchronize_session=False)
            )
        return result.rowcount
