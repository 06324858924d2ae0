# src/convo_stage/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .community import CommunityCreate, CommunityResponse, CommunitySummary
from .convo import (
    ChildrenRebuildResponse,
    CommentCreate,
    ConvoCard,
    ConvoCreate,
    ConvoDetail,
    ConvoPage,
    ConvosTab,
    DeleteConvoResponse,
    ReplySummary,
)
from .user import AuthorSummary, UserProfileUpdate, UserResponse

__all__ = [
    "AuthorSummary",
    "ChildrenRebuildResponse",
    "CommentCreate",
    "CommunityCreate", "CommunityResponse", "CommunitySummary",
    "ConvoCard", "ConvoCreate", "ConvoDetail", "ConvoPage", "ConvosTab",
    "DeleteConvoResponse",
    "ReplySummary",
    "UserProfileUpdate", "UserResponse",
]
