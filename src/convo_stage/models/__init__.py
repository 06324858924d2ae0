# src/convo_stage/models/__init__.py
"""SQLAlchemy models for the Convo Stage application."""

from .community import Community, CommunityConvo
from .convo import Convo, ConvoChild
from .user import User, UserConvo

__all__ = [
    "Community", "CommunityConvo",
    "Convo", "ConvoChild",
    "User", "UserConvo",
]
