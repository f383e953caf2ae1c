"""Profile SQLModel definition and its closed vocabularies.

The profile mirrors the identity record: it is created the first time a
user authenticates and is afterwards edited only by its owner.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class HairType(str, Enum):
    STRAIGHT = "straight"
    WAVY = "wavy"
    CURLY = "curly"
    COILY = "coily"


class ScalpCondition(str, Enum):
    NORMAL = "normal"
    DRY = "dry"
    OILY = "oily"
    SENSITIVE = "sensitive"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class Profile(SQLModel, table=True):
    """
    Profile entity.

    Values of hair_type / scalp_condition / role are validated against the
    enums above by the service layer before they reach the table.
    The role column is never written by the profile-editing path.
    """
    __tablename__ = "profile"

    id: str = Field(primary_key=True, max_length=64)
    email: str = Field(index=True, unique=True, max_length=255)
    full_name: Optional[str] = Field(default=None, max_length=255)
    hair_type: Optional[str] = Field(default=None, max_length=20)
    scalp_condition: Optional[str] = Field(default=None, max_length=20)
    hair_concerns: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    role: str = Field(default=UserRole.USER.value, max_length=20)  # "user" or "admin"
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
