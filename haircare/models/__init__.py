"""SQLModel table definitions."""
from haircare.models.auth_session import AuthSession
from haircare.models.conversation import Conversation, Message, MessageRole
from haircare.models.profile import HairType, Profile, ScalpCondition, UserRole

__all__ = [
    "AuthSession",
    "Conversation",
    "HairType",
    "Message",
    "MessageRole",
    "Profile",
    "ScalpCondition",
    "UserRole",
]
