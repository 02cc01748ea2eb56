from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....models import User
from ....schemas.conversation import ConversationWithUsers, MessageCreate, MessageResponse
from ....schemas.notification import MarkAllReadResult
from ....services.conversation_service import ConversationService
from .users import get_current_user

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("/", response_model=List[ConversationWithUsers])
def get_conversations(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Conversations of the current user, most recent activity first."""
    return ConversationService(db).list_for_user(current_user.id)


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
def get_messages(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ConversationService(db).list_messages(conversation_id, current_user.id)


@router.post("/{conversation_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def send_message(
    conversation_id: str,
    message: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return ConversationService(db).send_message(conversation_id, current_user.id, message.content)


@router.patch("/{conversation_id}/read", response_model=MarkAllReadResult)
def mark_conversation_read(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Mark the other participant's messages as read."""
    return {"updated": ConversationService(db).mark_read(conversation_id, current_user.id)}
