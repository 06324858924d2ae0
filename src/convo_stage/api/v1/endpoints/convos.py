# src/convo_stage/api/v1/endpoints/convos.py
"""Convo-related endpoints for the Convo Stage API."""

from fastapi import APIRouter, HTTPException, Query, status

from convo_stage.api.v1.dependencies import (
    CurrentUserDep,
    OnboardedUserDep,
    RevalidatorDep,
    SessionDep,
)
from convo_stage.core.settings import settings
from convo_stage.repositories.convo_repo import ConvoRepository
from convo_stage.schemas.convo import (
    ChildrenRebuildResponse,
    CommentCreate,
    ConvoCard,
    ConvoCreate,
    ConvoDetail,
    ConvoPage,
    DeleteConvoResponse,
)
from convo_stage.services import convo_service
from convo_stage.services.errors import (
    ConvoDeletionError,
    ConvoNotFoundError,
    UserNotFoundError,
    ValidationFailedError,
)

router = APIRouter(prefix="/convos", tags=["convos"])


@router.get("/", response_model=ConvoPage)
async def list_convos(
    db: SessionDep,
    page: int = Query(1, ge=1, description="1-based page number"),
    page_size: int = Query(
        settings.default_page_size,
        ge=1,
        le=settings.max_page_size,
        description="Number of convos per page",
    ),
) -> ConvoPage:
    """List top-level convos, newest first.

    Args:
        db: Database session
        page: 1-based page number
        page_size: Number of convos per page

    Returns:
        The requested page and whether another page follows
    """
    result = convo_service.fetch_posts(db, page, page_size)
    return ConvoPage(
        posts=[ConvoCard.model_validate(post) for post in result.posts],
        is_next=result.is_next,
    )


@router.post("/", response_model=ConvoCard, status_code=status.HTTP_201_CREATED)
async def create_convo(
    convo_data: ConvoCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    revalidator: RevalidatorDep,
) -> ConvoCard:
    """Create a top-level convo authored by the caller.

    Raises:
        HTTPException: If the text is blank or too long
    """
    try:
        convo = convo_service.create_convo(
            db,
            text=convo_data.text,
            author_id=current_user.id,
            community_id=convo_data.community_id,
            path=convo_data.path,
            revalidator=revalidator,
        )
    except ValidationFailedError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    populated = ConvoRepository(db).get_populated(convo.id)
    return ConvoCard.model_validate(populated)


@router.get("/{convo_id}", response_model=ConvoDetail)
async def get_convo(
    convo_id: str,
    _current_user: OnboardedUserDep,
    db: SessionDep,
) -> ConvoDetail:
    """Get a convo with its replies and their replies.

    Raises:
        HTTPException: If the convo does not exist
    """
    try:
        convo = convo_service.fetch_convo_by_id(db, convo_id)
    except ConvoNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Convo not found",
        ) from exc
    return ConvoDetail.model_validate(convo)


@router.post(
    "/{convo_id}/comments",
    response_model=ConvoCard,
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    convo_id: str,
    comment_data: CommentCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    revalidator: RevalidatorDep,
) -> ConvoCard:
    """Reply to a convo.

    Raises:
        HTTPException: If the parent convo does not exist or the text is invalid
    """
    try:
        comment = convo_service.add_comment_to_convo(
            db,
            convo_id,
            text=comment_data.text,
            user_id=current_user.id,
            path=comment_data.path,
            revalidator=revalidator,
        )
    except ConvoNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Convo not found",
        ) from exc
    except (UserNotFoundError, ValidationFailedError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    populated = ConvoRepository(db).get_populated(comment.id)
    return ConvoCard.model_validate(populated)


@router.delete("/{convo_id}", response_model=DeleteConvoResponse)
async def delete_convo(
    convo_id: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    revalidator: RevalidatorDep,
    path: str | None = Query(None, description="Page to revalidate after deleting"),
) -> DeleteConvoResponse:
    """Delete a convo together with every reply beneath it.

    Only the author may delete a convo.

    Raises:
        HTTPException: If the convo does not exist, the caller is not the author,
                      or the store fails partway through
    """
    convo = ConvoRepository(db).get_by_id(convo_id)
    if convo is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Convo not found")
    if convo.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the author can delete this convo",
        )

    try:
        result = convo_service.delete_convo(db, convo_id, path, revalidator=revalidator)
    except ConvoNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Convo not found",
        ) from exc
    except ConvoDeletionError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete convo",
        ) from exc

    return DeleteConvoResponse(
        deleted_ids=sorted(result.deleted_ids),
        redirect_to="/" if result.was_top_level else None,
    )


@router.post("/{convo_id}/children/rebuild", response_model=ChildrenRebuildResponse)
async def rebuild_convo_children(
    convo_id: str,
    _current_user: CurrentUserDep,
    db: SessionDep,
) -> ChildrenRebuildResponse:
    """Recompute a convo's reply list from the replies that point at it.

    Raises:
        HTTPException: If the convo does not exist
    """
    try:
        children = convo_service.rebuild_children(db, convo_id)
    except ConvoNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Convo not found",
        ) from exc
    return ChildrenRebuildResponse(convo_id=convo_id, children=children)
