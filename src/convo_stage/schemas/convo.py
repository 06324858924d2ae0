"""Convo-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .community import CommunitySummary
from .user import AuthorSummary


class ConvoCreate(BaseModel):
    """Schema for creating a new top-level convo."""

    text: str = Field(..., min_length=1, description="Body of the convo")
    community_id: str | None = Field(None, description="Community to post under")
    path: str | None = Field(None, description="Page to revalidate after posting")


class CommentCreate(BaseModel):
    """Schema for replying to a convo."""

    text: str = Field(..., min_length=1, description="Body of the reply")
    path: str | None = Field(None, description="Page to revalidate after replying")


class ReplySummary(BaseModel):
    """Minimal reply shape used for the avatars under a convo card."""

    id: str
    parent_id: str | None
    author: AuthorSummary | None

    model_config = ConfigDict(from_attributes=True)


class ConvoCard(BaseModel):
    """A convo as rendered in feeds and profile tabs."""

    id: str
    text: str
    parent_id: str | None
    author: AuthorSummary | None
    community: CommunitySummary | None
    created_at: datetime
    children: list[ReplySummary]

    model_config = ConfigDict(from_attributes=True)


class ConvoDetail(ConvoCard):
    """A convo page: the convo plus its replies rendered as cards."""

    children: list[ConvoCard]  # type: ignore[assignment]


class ConvoPage(BaseModel):
    """One page of top-level convos."""

    posts: list[ConvoCard]
    is_next: bool


class ConvosTab(BaseModel):
    """Convos listed on a user or community profile."""

    id: str
    name: str
    username: str
    image: str | None = None
    convos: list[ConvoCard]

    model_config = ConfigDict(from_attributes=True)


class DeleteConvoResponse(BaseModel):
    """Result of a cascading delete."""

    deleted_ids: list[str]
    redirect_to: str | None = Field(
        None,
        description="Where the client should navigate; '/' after deleting a post",
    )


class ChildrenRebuildResponse(BaseModel):
    """Rebuilt reply list for a convo."""

    convo_id: str
    children: list[str]
