# src/convo_stage/api/v1/endpoints/users.py
"""User profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from convo_stage.api.v1.dependencies import RevalidatorDep, SessionDep, TokenSubjectDep
from convo_stage.schemas.convo import ConvosTab
from convo_stage.schemas.user import UserProfileUpdate, UserResponse
from convo_stage.services import convo_service, user_service
from convo_stage.services.errors import UserNotFoundError, ValidationFailedError

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/", response_model=UserResponse)
async def upsert_profile(
    profile: UserProfileUpdate,
    subject: TokenSubjectDep,
    db: SessionDep,
    revalidator: RevalidatorDep,
) -> UserResponse:
    """Create or update the caller's profile and complete onboarding."""
    try:
        user = user_service.upsert_user(db, subject, profile, revalidator=revalidator)
    except ValidationFailedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: str, db: SessionDep) -> UserResponse:
    """Get a user profile by ID."""
    user = user_service.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return UserResponse.model_validate(user)


@router.get("/{user_id}/convos", response_model=ConvosTab)
async def get_user_convos(user_id: str, db: SessionDep) -> ConvosTab:
    """List the convos a user has posted, newest first."""
    try:
        user = convo_service.fetch_user_posts(db, user_id)
    except UserNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        ) from exc
    return ConvosTab.model_validate(user)
