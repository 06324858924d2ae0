# src/convo_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    communities_router,
    convos_router,
    system_router,
    users_router,
)

__all__ = [
    "communities_router",
    "convos_router",
    "system_router",
    "users_router",
]
