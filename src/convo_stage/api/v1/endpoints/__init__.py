# src/convo_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .communities import router as communities_router
from .convos import router as convos_router
from .system import router as system_router
from .users import router as users_router

__all__ = [
    "communities_router",
    "convos_router",
    "system_router",
    "users_router",
]
