"""Chat endpoint routes.

Provides:
- POST /chat/messages - Send one message and get the assistant reply
- GET /chat/conversations - List the caller's conversations, most recent first
- GET /chat/conversations/{id} - Get one conversation with its messages
- GET /chat/prompts - Suggested starter questions
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from haircare.config import settings
from haircare.core.deps import get_current_profile, get_current_user, get_db
from haircare.models.profile import Profile
from haircare.rules import get_prompts
from haircare.services.chat_service import ChatService
from haircare.services.conversation_store import ConversationStore

router = APIRouter(prefix="/chat", tags=["chat"])

# Global chat service instance (stateless, no session stored)
chat_service = ChatService()


class ChatRequest(BaseModel):
    """Request model for sending a chat message."""
    conversation_id: Optional[int] = None
    message: str = Field(max_length=4000)


class MessageResponse(BaseModel):
    """Response model for a single message."""
    id: int
    role: str
    content: str
    created_at: datetime


class ChatResponse(BaseModel):
    """Response model for one processed turn."""
    conversation_id: int
    title: str
    created_conversation: bool
    user_message: MessageResponse
    assistant_message: MessageResponse


class ConversationSummary(BaseModel):
    """Response model for the conversation list."""
    id: int
    title: str
    created_at: datetime
    updated_at: datetime


class ConversationDetail(ConversationSummary):
    """Response model for a conversation with messages."""
    messages: list[MessageResponse]


def _message_response(msg) -> MessageResponse:
    return MessageResponse(id=msg.id, role=msg.role, content=msg.content, created_at=msg.created_at)


@router.post("/messages", response_model=ChatResponse)
def send_chat_message(
    request: ChatRequest,
    profile: Profile = Depends(get_current_profile),
    session: Session = Depends(get_db),
) -> ChatResponse:
    """
    Send a message to the assistant.

    Flow:
    1. Get or create conversation
    2. Store user message
    3. Select canned reply for the caller's profile
    4. Store assistant reply
    5. Return both messages

    Errors (via app exception handlers):
    - 400 if the message is empty
    - 404 if conversation_id is unknown or not owned
    - 503 if the database write fails
    """
    turn = chat_service.send_message(session, profile, request.conversation_id, request.message)

    return ChatResponse(
        conversation_id=turn.conversation.id,
        title=turn.conversation.title,
        created_conversation=turn.created_conversation,
        user_message=_message_response(turn.user_message),
        assistant_message=_message_response(turn.assistant_message),
    )


@router.get("/conversations", response_model=list[ConversationSummary])
def list_conversations(
    limit: Optional[int] = Query(default=None, ge=1),
    user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> list[ConversationSummary]:
    """List the caller's conversations, capped at CONVERSATION_LIST_LIMIT."""
    cap = min(limit or settings.CONVERSATION_LIST_LIMIT, settings.CONVERSATION_LIST_LIMIT)
    conversations = ConversationStore(session).list_conversations(user_id, limit=cap)

    return [
        ConversationSummary(
            id=conv.id,
            title=conv.title,
            created_at=conv.created_at,
            updated_at=conv.updated_at,
        )
        for conv in conversations
    ]


@router.get("/conversations/{conversation_id}", response_model=ConversationDetail)
def get_conversation(
    conversation_id: int,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ConversationDetail:
    """Get a conversation owned by the caller, with messages in order (404 otherwise)."""
    store = ConversationStore(session)
    conversation = store.get_conversation(conversation_id, owner_id=user_id)
    messages = store.list_messages(conversation.id)

    return ConversationDetail(
        id=conversation.id,
        title=conversation.title,
        created_at=conversation.created_at,
        updated_at=conversation.updated_at,
        messages=[_message_response(msg) for msg in messages],
    )


@router.get("/prompts", response_model=list[str])
def list_prompts() -> list[str]:
    """Suggested questions for starting a conversation."""
    return list(get_prompts())
