"""Chat service layer: one user turn end to end.

Handles:
- Conversation creation on the first message of a thread
- User message storage
- Reply selection from the rule table
- Assistant message storage
"""
from dataclasses import dataclass
from typing import Optional
import logging

from sqlmodel import Session

from haircare.errors import ValidationError
from haircare.models.conversation import Conversation, Message, MessageRole
from haircare.models.profile import Profile
from haircare.rules import RuleTable
from haircare.services.conversation_store import Clock, ConversationStore
from haircare.services.response_matcher import ProfileFilterView, select_reply

logger = logging.getLogger(__name__)


@dataclass
class ChatTurn:
    """Result of one processed user message."""
    conversation: Conversation
    user_message: Message
    assistant_message: Message
    created_conversation: bool = False


class ChatService:
    """Service layer for chat operations."""

    def __init__(self, rules: Optional[RuleTable] = None, clock: Optional[Clock] = None):
        """Initialize chat service. ``rules`` overrides the process-wide table."""
        self.rules = rules
        self.clock = clock

    def store(self, session: Session) -> ConversationStore:
        return ConversationStore(session, clock=self.clock)

    def send_message(
        self,
        session: Session,
        profile: Profile,
        conversation_id: Optional[int],
        message_text: str,
    ) -> ChatTurn:
        """
        Process one user message.

        Flow:
        1. Get (owned) or create conversation
        2. Store user message
        3. Select reply for the caller's profile
        4. Store assistant reply

        Each step waits for the previous write. A failure leaves whatever
        was already committed in place and nothing is retried.

        Args:
            session: Database session
            profile: Authenticated caller's profile
            conversation_id: Existing conversation or None for a new thread
            message_text: User message content

        Returns:
            ChatTurn with both stored messages

        Raises:
            ValidationError: If the message is empty
            NotFoundError: If conversation_id is unknown or not owned by the caller
            PersistenceError: If any write fails
        """
        text = (message_text or "").strip()
        if not text:
            raise ValidationError("Message cannot be empty")

        store = self.store(session)

        if conversation_id is None:
            conversation = store.create_conversation(profile.id, text)
            created = True
        else:
            conversation = store.get_conversation(conversation_id, owner_id=profile.id)
            created = False

        user_msg = store.append_message(conversation.id, MessageRole.USER.value, text)

        reply = select_reply(ProfileFilterView.from_profile(profile), text, rules=self.rules)

        assistant_msg = store.append_message(conversation.id, MessageRole.ASSISTANT.value, reply)

        logger.info(
            f"Chat message processed: user={profile.id}, conversation={conversation.id}, "
            f"message_id={user_msg.id}, response_id={assistant_msg.id}"
        )

        session.refresh(conversation)
        return ChatTurn(
            conversation=conversation,
            user_message=user_msg,
            assistant_message=assistant_msg,
            created_conversation=created,
        )
