# src/convo_stage/models/convo.py
"""SQLAlchemy models for convos and their ordered reply lists."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from convo_stage.db.defaults import new_object_id, utcnow
from convo_stage.db.session import Base

if TYPE_CHECKING:
    from .community import Community
    from .user import User


class Convo(Base):
    """A post or a reply.

    Top-level posts have ``parent_id = NULL``. ``parent_id`` is the source of
    truth for the reply tree; ``children`` is an ordered, denormalized list kept
    in ``convo_child`` for rendering.
    """

    __tablename__ = "convo"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    author_id: Mapped[str | None] = mapped_column(
        String(24),
        ForeignKey("app_user.id"),
        nullable=True,
        index=True,
    )
    community_id: Mapped[str | None] = mapped_column(
        String(24),
        ForeignKey("community.id"),
        nullable=True,
        index=True,
    )
    # Parent chain for replies; deletion discovers descendants through this column.
    parent_id: Mapped[str | None] = mapped_column(
        String(24),
        ForeignKey("convo.id"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )

    author: Mapped[User | None] = relationship("User", foreign_keys=[author_id])
    community: Mapped[Community | None] = relationship("Community", foreign_keys=[community_id])
    children: Mapped[list[Convo]] = relationship(
        "Convo",
        secondary="convo_child",
        primaryjoin="Convo.id == ConvoChild.parent_id",
        secondaryjoin="Convo.id == ConvoChild.child_id",
        order_by="ConvoChild.position",
        viewonly=True,
    )

    @property
    def is_top_level(self) -> bool:
        """Return True when the convo is a post rather than a reply."""
        return self.parent_id is None


class ConvoChild(Base):
    """Ordered link from a convo to one of its direct replies."""

    __tablename__ = "convo_child"

    parent_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("convo.id"),
        primary_key=True,
    )
    child_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("convo.id"),
        primary_key=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
