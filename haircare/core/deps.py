"""FastAPI dependencies: database session and authenticated caller."""
from typing import Iterator, Optional

from fastapi import Depends, HTTPException, status
from sqlmodel import Session
from starlette.requests import HTTPConnection

from haircare.database import open_session
from haircare.errors import NotFoundError
from haircare.models.profile import Profile
from haircare.realtime.live_sync import LiveSyncChannel
from haircare.services import auth_service, profile_service

SESSION_COOKIE = "session"


def get_live_sync(conn: HTTPConnection) -> LiveSyncChannel:
    return conn.app.state.live_sync


def get_db(conn: HTTPConnection) -> Iterator[Session]:
    """One session per request, publishing conversation writes to live sync."""
    session = open_session(conn.app.state.engine, conn.app.state.live_sync)
    try:
        yield session
    finally:
        session.close()


def extract_token(conn: HTTPConnection) -> Optional[str]:
    """
    Bearer token from the Authorization header or the session cookie.

    WebSocket handshakes may also pass it as ?token=; plain HTTP requests
    may not.
    """
    header = conn.headers.get("authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    token = conn.cookies.get(SESSION_COOKIE)
    if token is None and conn.scope["type"] == "websocket":
        token = conn.query_params.get("token")
    return token


def get_current_user(conn: HTTPConnection, session: Session = Depends(get_db)) -> str:
    """
    Authenticated user id.

    Reuses the id resolved by the session gate middleware when present.

    Raises:
        HTTPException: 401 if the token is missing, unknown or expired
    """
    user_id = getattr(conn.state, "user_id", None)
    if user_id is None:
        user_id = auth_service.resolve_session(session, extract_token(conn))

    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id


def get_current_profile(
    user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> Profile:
    """Profile of the authenticated caller (401 if it vanished)."""
    try:
        return profile_service.get_profile(session, user_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
        )
