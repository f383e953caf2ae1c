"""Profile service: implicit creation, owner edits and role lookup."""
import logging
import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from haircare.config import settings
from haircare.errors import GateLookupError, NotFoundError, PersistenceError
from haircare.models.profile import HairType, Profile, ScalpCondition, UserRole

logger = logging.getLogger(__name__)


class ProfileUpdate(BaseModel):
    """
    Fields a user may change on their own profile.

    Has no role field; unknown fields are rejected.
    """

    model_config = ConfigDict(extra="forbid")

    full_name: Optional[str] = Field(default=None, max_length=255)
    hair_type: Optional[HairType] = None
    scalp_condition: Optional[ScalpCondition] = None
    hair_concerns: list[str] = Field(default_factory=list)


def normalize_concerns(concerns: list[str]) -> list[str]:
    """Strip blanks and drop duplicates, keeping first occurrence."""
    cleaned = (c.strip() for c in concerns)
    return list(dict.fromkeys(c for c in cleaned if c))


def get_profile(session: Session, user_id: str) -> Profile:
    """
    Load a profile.

    Raises:
        NotFoundError: If no profile exists for user_id
    """
    try:
        profile = session.get(Profile, user_id)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Profile lookup failed for user {user_id}: {e}")
        raise PersistenceError(f"Could not load profile {user_id}") from e

    if profile is None:
        raise NotFoundError(f"Profile {user_id} not found")
    return profile


def ensure_profile(session: Session, email: str, full_name: Optional[str] = None) -> Profile:
    """
    Return the profile for ``email``, creating it on first authentication.

    New profiles get the admin role only if the email is listed in
    ADMIN_EMAILS; otherwise they are plain users.
    """
    email = email.strip().lower()
    try:
        profile = session.exec(select(Profile).where(Profile.email == email)).first()
        if profile is not None:
            return profile

        is_admin = email in {e.lower() for e in settings.ADMIN_EMAILS}
        profile = Profile(
            id=str(uuid.uuid4()),
            email=email,
            full_name=full_name,
            role=UserRole.ADMIN.value if is_admin else UserRole.USER.value,
        )
        session.add(profile)
        session.commit()
        session.refresh(profile)
    except IntegrityError as e:
        # Another sign-in created the same email first
        session.rollback()
        try:
            existing = session.exec(select(Profile).where(Profile.email == email)).first()
        except SQLAlchemyError:
            session.rollback()
            existing = None
        if existing is None:
            logger.error(f"Could not ensure profile for {email}: {e}")
            raise PersistenceError("Could not create profile") from e
        logger.info(f"Profile for {email} already created, reusing user={existing.id}")
        return existing
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Could not ensure profile for {email}: {e}")
        raise PersistenceError("Could not create profile") from e

    logger.info(f"Profile created: user={profile.id}, role={profile.role}")
    return profile


def update_profile(session: Session, user_id: str, update: ProfileUpdate) -> Profile:
    """
    Apply an owner edit. The role column is left untouched.

    Raises:
        NotFoundError: If the profile does not exist
        PersistenceError: If the write fails
    """
    profile = get_profile(session, user_id)

    profile.full_name = update.full_name
    profile.hair_type = update.hair_type.value if update.hair_type else None
    profile.scalp_condition = update.scalp_condition.value if update.scalp_condition else None
    profile.hair_concerns = normalize_concerns(update.hair_concerns)
    profile.updated_at = datetime.utcnow()

    try:
        session.add(profile)
        session.commit()
        session.refresh(profile)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Profile update failed for user {user_id}: {e}")
        raise PersistenceError(f"Could not update profile {user_id}") from e

    return profile


def lookup_role(session: Session, user_id: str) -> Optional[str]:
    """
    Role of ``user_id`` for access decisions; None if no profile exists.

    Raises:
        GateLookupError: If the backend lookup fails
    """
    try:
        return session.exec(select(Profile.role).where(Profile.id == user_id)).first()
    except SQLAlchemyError as e:
        session.rollback()
        raise GateLookupError(f"Role lookup failed for user {user_id}") from e
