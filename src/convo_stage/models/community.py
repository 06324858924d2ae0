"""SQLAlchemy models for communities and the convos posted under them."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from convo_stage.db.defaults import new_object_id
from convo_stage.db.session import Base

if TYPE_CHECKING:
    from .convo import Convo


class Community(Base):
    """Community metadata used for grouping posts."""

    __tablename__ = "community"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    # Public handle, unique like a username.
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_id: Mapped[str | None] = mapped_column(
        String(24),
        ForeignKey("app_user.id"),
        nullable=True,
    )

    convos: Mapped[list[Convo]] = relationship(
        "Convo",
        secondary="community_convo",
        order_by="Convo.created_at.desc()",
        viewonly=True,
    )


class CommunityConvo(Base):
    """Back-reference from a community to a convo posted under it."""

    __tablename__ = "community_convo"

    community_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("community.id", ondelete="CASCADE"),
        primary_key=True,
    )
    convo_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("convo.id"),
        primary_key=True,
    )
