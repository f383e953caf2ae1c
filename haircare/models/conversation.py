"""Conversation and Message SQLModel definitions.

Models:
- Conversation: chat thread owned by exactly one profile
- Message: append-only turn inside a conversation
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, Relationship, SQLModel

TITLE_MAX_LENGTH = 50
TITLE_ELLIPSIS = "..."


class MessageRole(str, Enum):
    """Message author."""
    USER = "user"
    ASSISTANT = "assistant"


def derive_title(first_message: str) -> str:
    """Title from the first user message: at most 50 characters plus an ellipsis."""
    if len(first_message) > TITLE_MAX_LENGTH:
        return first_message[:TITLE_MAX_LENGTH] + TITLE_ELLIPSIS
    return first_message


class Conversation(SQLModel, table=True):
    """
    Conversation entity.

    Ownership: user_id is fixed at creation. updated_at moves forward on
    every appended message and drives list ordering.
    """
    __tablename__ = "conversation"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="profile.id", index=True, nullable=False)
    title: str = Field(max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    messages: list["Message"] = Relationship(
        back_populates="conversation",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "lazy": "select"},
    )


class Message(SQLModel, table=True):
    """
    Message entity. Never updated after insert.

    Role: "user" or "assistant"
    """
    __tablename__ = "message"

    id: Optional[int] = Field(default=None, primary_key=True)
    conversation_id: int = Field(foreign_key="conversation.id", index=True, nullable=False)
    role: str = Field(max_length=20)
    content: str = Field(sa_column=Column(Text, nullable=False))
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    conversation: Optional[Conversation] = Relationship(back_populates="messages")
