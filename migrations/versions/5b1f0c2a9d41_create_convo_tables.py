"""create convo tables

Revision ID: 5b1f0c2a9d41
Revises:
Create Date: 2026-10-17 09:12:44.318205

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "5b1f0c2a9d41"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users, communities, convos and their reference tables."""
    op.create_table(
        "app_user",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("onboarded", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "community",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("image", sa.Text(), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("created_by_id", sa.String(length=24), nullable=True),
        sa.ForeignKeyConstraint(["created_by_id"], ["app_user.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "convo",
        sa.Column("id", sa.String(length=24), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("author_id", sa.String(length=24), nullable=True),
        sa.Column("community_id", sa.String(length=24), nullable=True),
        sa.Column("parent_id", sa.String(length=24), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["author_id"], ["app_user.id"]),
        sa.ForeignKeyConstraint(["community_id"], ["community.id"]),
        sa.ForeignKeyConstraint(["parent_id"], ["convo.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_convo_author_id", "convo", ["author_id"])
    op.create_index("ix_convo_community_id", "convo", ["community_id"])
    op.create_index("ix_convo_parent_id", "convo", ["parent_id"])
    op.create_index("ix_convo_created_at", "convo", ["created_at"])
    op.create_table(
        "convo_child",
        sa.Column("parent_id", sa.String(length=24), nullable=False),
        sa.Column("child_id", sa.String(length=24), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["parent_id"], ["convo.id"]),
        sa.ForeignKeyConstraint(["child_id"], ["convo.id"]),
        sa.PrimaryKeyConstraint("parent_id", "child_id"),
    )
    op.create_table(
        "user_convo",
        sa.Column("user_id", sa.String(length=24), nullable=False),
        sa.Column("convo_id", sa.String(length=24), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["app_user.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["convo_id"], ["convo.id"]),
        sa.PrimaryKeyConstraint("user_id", "convo_id"),
    )
    op.create_table(
        "community_convo",
        sa.Column("community_id", sa.String(length=24), nullable=False),
        sa.Column("convo_id", sa.String(length=24), nullable=False),
        sa.ForeignKeyConstraint(["community_id"], ["community.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["convo_id"], ["convo.id"]),
        sa.PrimaryKeyConstraint("community_id", "convo_id"),
    )


def downgrade() -> None:
    """Drop every convo table."""
    op.drop_table("community_convo")
    op.drop_table("user_convo")
    op.drop_table("convo_child")
    op.drop_index("ix_convo_created_at", table_name="convo")
    op.drop_index("ix_convo_parent_id", table_name="convo")
    op.drop_index("ix_convo_community_id", table_name="convo")
    op.drop_index("ix_convo_author_id", table_name="convo")
    op.drop_table("convo")
    op.drop_table("community")
    op.drop_table("app_user")
