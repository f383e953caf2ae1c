"""Bearer-token sessions.

Sign-in here trusts the caller's email: credential checks belong to the
identity provider in front of this service.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from haircare.config import settings
from haircare.errors import PersistenceError
from haircare.models.auth_session import AuthSession
from haircare.models.profile import Profile
from haircare.services.profile_service import ensure_profile

logger = logging.getLogger(__name__)


def issue_session(
    session: Session,
    email: str,
    full_name: Optional[str] = None,
) -> tuple[AuthSession, Profile]:
    """Create a session token, creating the profile on first sign-in."""
    profile = ensure_profile(session, email, full_name)

    now = datetime.utcnow()
    auth = AuthSession(
        token=secrets.token_urlsafe(32),
        user_id=profile.id,
        created_at=now,
        expires_at=now + timedelta(hours=settings.SESSION_TTL_HOURS),
    )
    try:
        session.add(auth)
        session.commit()
        session.refresh(auth)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Could not issue session for user {profile.id}: {e}")
        raise PersistenceError("Could not sign in") from e

    logger.info(f"Session issued: user={profile.id}")
    return auth, profile


def resolve_session(session: Session, token: Optional[str]) -> Optional[str]:
    """User id behind ``token``, or None if missing, unknown or expired."""
    if not token:
        return None

    try:
        auth = session.get(AuthSession, token)
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Session lookup failed: {e}")
        raise PersistenceError("Could not resolve session") from e

    if auth is None or auth.expires_at <= datetime.utcnow():
        return None
    return auth.user_id


def revoke_session(session: Session, token: str) -> bool:
    """Delete a session token. Returns False if it did not exist."""
    try:
        auth = session.get(AuthSession, token)
        if auth is None:
            return False
        user_id = auth.user_id
        session.delete(auth)
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Could not revoke session: {e}")
        raise PersistenceError("Could not sign out") from e

    logger.info(f"Session revoked: user={user_id}")
    return True
