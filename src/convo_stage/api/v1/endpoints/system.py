"""System and transparency endpoints for the Convo Stage API."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import func, select

from convo_stage.api.v1.dependencies import SessionDep
from convo_stage.core.settings import settings
from convo_stage.models import Community, Convo, User

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config() -> dict[str, object]:
    """Return a sanitized snapshot of public runtime configuration.

    Excludes secrets and connection strings.
    """
    return {
        "app_name": settings.app_name,
        "app_version": settings.app_version,
        "default_page_size": settings.default_page_size,
        "max_page_size": settings.max_page_size,
        "convo_max_text_length": settings.convo_max_text_length,
    }


@router.get("/stats")
async def get_stats(db: SessionDep) -> dict[str, int]:
    """Return document counts per collection."""
    return {
        "users": db.scalar(select(func.count()).select_from(User)) or 0,
        "communities": db.scalar(select(func.count()).select_from(Community)) or 0,
        "convos": db.scalar(select(func.count()).select_from(Convo)) or 0,
        "top_level_convos": db.scalar(
            select(func.count()).select_from(Convo).where(Convo.parent_id.is_(None))
        ) or 0,
    }
