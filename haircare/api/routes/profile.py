"""Profile endpoint routes.

Provides:
- GET /profile - The caller's profile
- PUT /profile - Replace the caller's editable profile fields
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from haircare.core.deps import get_current_user, get_db
from haircare.models.profile import Profile
from haircare.services import profile_service
from haircare.services.profile_service import ProfileUpdate

router = APIRouter(prefix="/profile", tags=["profile"])


class ProfileResponse(BaseModel):
    id: str
    email: str
    full_name: Optional[str]
    hair_type: Optional[str]
    scalp_condition: Optional[str]
    hair_concerns: list[str]
    role: str
    created_at: datetime
    updated_at: datetime


def _profile_response(profile: Profile) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        hair_type=profile.hair_type,
        scalp_condition=profile.scalp_condition,
        hair_concerns=list(profile.hair_concerns or []),
        role=profile.role,
        created_at=profile.created_at,
        updated_at=profile.updated_at,
    )


@router.get("", response_model=ProfileResponse)
def read_profile(
    user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ProfileResponse:
    return _profile_response(profile_service.get_profile(session, user_id))


@router.put("", response_model=ProfileResponse)
def update_profile(
    update: ProfileUpdate,
    user_id: str = Depends(get_current_user),
    session: Session = Depends(get_db),
) -> ProfileResponse:
    """
    Update hair profile fields.

    The role cannot be changed here: a body containing "role" is rejected
    with 422.
    """
    profile = profile_service.update_profile(session, user_id, update)
    return _profile_response(profile)
