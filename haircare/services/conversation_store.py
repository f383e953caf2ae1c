"""Conversation store: persistence of conversations and their message log.

Handles:
- Conversation creation with a title derived from the first message
- Append-only message log, bumping the conversation's updated_at
- Ordered listing of messages and of a user's conversations

Every SQLAlchemy failure rolls the session back and is raised as
PersistenceError. Nothing here retries.
"""
import logging
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from haircare.errors import NotFoundError, PersistenceError, ValidationError
from haircare.models.conversation import Conversation, Message, MessageRole, derive_title

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class ConversationStore:
    """Store operations bound to one database session."""

    def __init__(self, session: Session, clock: Optional[Clock] = None):
        self.session = session
        self.clock = clock or datetime.utcnow

    def create_conversation(self, owner_id: str, first_message_text: str) -> Conversation:
        """
        Create a new conversation for ``owner_id``.

        Args:
            owner_id: Profile id of the authenticated owner
            first_message_text: First user message, used for the title

        Returns:
            Persisted Conversation

        Raises:
            ValidationError: If the first message is empty
            PersistenceError: If the insert fails (e.g. unknown owner)
        """
        if not first_message_text or not first_message_text.strip():
            raise ValidationError("First message cannot be empty")

        now = self.clock()
        conversation = Conversation(
            user_id=owner_id,
            title=derive_title(first_message_text),
            created_at=now,
            updated_at=now,
        )
        self._commit(conversation, f"create conversation for user {owner_id}")

        logger.info(f"Conversation created: user={owner_id}, conversation={conversation.id}")
        return conversation

    def get_conversation(self, conversation_id: int, owner_id: Optional[str] = None) -> Conversation:
        """
        Fetch a conversation, optionally requiring ownership.

        Raises:
            NotFoundError: If absent or not owned by ``owner_id``
            PersistenceError: If the lookup fails
        """
        statement = select(Conversation).where(Conversation.id == conversation_id)
        if owner_id is not None:
            statement = statement.where(Conversation.user_id == owner_id)

        try:
            conversation = self.session.exec(statement).first()
        except SQLAlchemyError as e:
            raise self._persistence_error(f"load conversation {conversation_id}", e) from e

        if conversation is None:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def append_message(self, conversation_id: int, role: str, content: str) -> Message:
        """
        Append a message and bump the parent's updated_at in one transaction.

        Raises:
            ValidationError: If content is empty or role is unknown
            NotFoundError: If the conversation does not exist
            PersistenceError: If the write fails
        """
        if not content or not content.strip():
            raise ValidationError("Message content cannot be empty")
        try:
            role = MessageRole(role).value
        except ValueError:
            raise ValidationError(f"Unknown message role: {role!r}") from None

        conversation = self.get_conversation(conversation_id)

        now = self.clock()
        message = Message(
            conversation_id=conversation.id,
            role=role,
            content=content,
            created_at=now,
        )
        conversation.updated_at = now
        self.session.add(conversation)
        self._commit(message, f"append {role} message to conversation {conversation_id}")
        return message

    def list_messages(self, conversation_id: int) -> list[Message]:
        """Messages of a conversation in append order (empty if none or unknown)."""
        statement = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at, Message.id)
        )
        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise self._persistence_error(f"list messages of conversation {conversation_id}", e) from e

    def list_conversations(self, owner_id: str, limit: Optional[int] = None) -> list[Conversation]:
        """Conversations of ``owner_id``, most recently active first."""
        statement = (
            select(Conversation)
            .where(Conversation.user_id == owner_id)
            .order_by(Conversation.updated_at.desc(), Conversation.id.desc())
        )
        if limit is not None:
            statement = statement.limit(limit)

        try:
            return list(self.session.exec(statement).all())
        except SQLAlchemyError as e:
            raise self._persistence_error(f"list conversations of user {owner_id}", e) from e

    def _commit(self, instance, action: str) -> None:
        try:
            self.session.add(instance)
            self.session.commit()
            self.session.refresh(instance)
        except SQLAlchemyError as e:
            raise self._persistence_error(action, e) from e

    def _persistence_error(self, action: str, error: SQLAlchemyError) -> PersistenceError:
        self.session.rollback()
        logger.error(f"Persistence failure during {action}: {error}")
        return PersistenceError(f"Could not {action}")
