"""Bearer-token sessions issued at sign-in."""
from datetime import datetime

from sqlmodel import Field, SQLModel


class AuthSession(SQLModel, table=True):
    """One signed-in client. Deleted on sign-out."""
    __tablename__ = "auth_session"

    token: str = Field(primary_key=True, max_length=128)
    user_id: str = Field(foreign_key="profile.id", index=True, nullable=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime = Field(nullable=False)
