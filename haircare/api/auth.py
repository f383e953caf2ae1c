"""Sign-in / sign-out routes.

Provides:
- POST /auth/session - Sign in, creating the profile on first use
- DELETE /auth/session - Sign out
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field
from sqlmodel import Session

from haircare.config import settings
from haircare.core.deps import SESSION_COOKIE, extract_token, get_db
from haircare.services import auth_service

router = APIRouter(prefix="/auth", tags=["auth"])


class SignInRequest(BaseModel):
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    full_name: Optional[str] = Field(default=None, max_length=255)


class SignInResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    role: str


@router.post("/session", response_model=SignInResponse, status_code=status.HTTP_201_CREATED)
def sign_in(
    request: SignInRequest,
    response: Response,
    session: Session = Depends(get_db),
) -> SignInResponse:
    """Issue a bearer token (also set as the session cookie)."""
    auth, profile = auth_service.issue_session(session, request.email, request.full_name)

    response.set_cookie(
        SESSION_COOKIE,
        auth.token,
        max_age=settings.SESSION_TTL_HOURS * 3600,
        httponly=True,
        samesite="lax",
    )
    return SignInResponse(access_token=auth.token, user_id=profile.id, role=profile.role)


@router.delete("/session", status_code=status.HTTP_204_NO_CONTENT)
def sign_out(request: Request, session: Session = Depends(get_db)) -> Response:
    """Revoke the caller's token."""
    token = extract_token(request)
    if not token or not auth_service.revoke_session(session, token):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(SESSION_COOKIE)
    return response
