# src/convo_stage/api/v1/endpoints/communities.py
"""Community-related endpoints for the Convo Stage API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from convo_stage.api.v1.dependencies import CurrentUserDep, SessionDep
from convo_stage.schemas.community import CommunityCreate, CommunityResponse
from convo_stage.schemas.convo import ConvosTab
from convo_stage.services import convo_service, user_service
from convo_stage.services.errors import CommunityNotFoundError, ValidationFailedError

router = APIRouter(prefix="/communities", tags=["communities"])


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommunityResponse:
    """Create a new community owned by the caller."""
    try:
        community = user_service.create_community(db, community_data, current_user.id)
    except ValidationFailedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    return CommunityResponse.model_validate(community)


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(community_id: str, db: SessionDep) -> CommunityResponse:
    """Get a specific community by ID."""
    community = user_service.get_community(db, community_id)
    if community is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found"
        )
    return CommunityResponse.model_validate(community)


@router.get("/{community_id}/convos", response_model=ConvosTab)
async def get_community_convos(community_id: str, db: SessionDep) -> ConvosTab:
    """List convos posted under a community, newest first."""
    try:
        community = convo_service.fetch_community_posts(db, community_id)
    except CommunityNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found",
        ) from exc
    return ConvosTab.model_validate(community)
