# src/convo_stage/services/__init__.py
"""Business logic services for the Convo Stage application."""

from .convo_service import (
    DeletionResult,
    PostsPage,
    add_comment_to_convo,
    create_convo,
    delete_convo,
    fetch_community_posts,
    fetch_convo_by_id,
    fetch_posts,
    fetch_user_posts,
    rebuild_children,
)
from .revalidation import PathRevalidator, get_revalidator

__all__ = [
    "DeletionResult",
    "PostsPage",
    "PathRevalidator",
    "add_comment_to_convo",
    "create_convo",
    "delete_convo",
    "fetch_community_posts",
    "fetch_convo_by_id",
    "fetch_posts",
    "fetch_user_posts",
    "get_revalidator",
    "rebuild_children",
]
