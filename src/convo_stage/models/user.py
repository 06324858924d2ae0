# src/convo_stage/models/user.py
"""SQLAlchemy models for convo authors."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from convo_stage.db.defaults import new_object_id
from convo_stage.db.session import Base

if TYPE_CHECKING:
    from .convo import Convo


class User(Base):
    """Author profile; ``convos`` lists the top-level posts they wrote."""

    __tablename__ = "app_user"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_object_id)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    image: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    onboarded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    convos: Mapped[list[Convo]] = relationship(
        "Convo",
        secondary="user_convo",
        order_by="Convo.created_at.desc()",
        viewonly=True,
    )


class UserConvo(Base):
    """Back-reference from a user to a convo they authored."""

    __tablename__ = "user_convo"

    user_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("app_user.id", ondelete="CASCADE"),
        primary_key=True,
    )
    convo_id: Mapped[str] = mapped_column(
        String(24),
        ForeignKey("convo.id"),
        primary_key=True,
    )
