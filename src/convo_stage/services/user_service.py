"""CRUD-style helpers for managing authors and communities."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from convo_stage.models import Community, User
from convo_stage.schemas.community import CommunityCreate
from convo_stage.schemas.user import UserProfileUpdate
from convo_stage.services.errors import ValidationFailedError
from convo_stage.services.revalidation import PathRevalidator, get_revalidator

__all__ = [
    "get_user",
    "upsert_user",
    "get_community",
    "create_community",
]

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> User | None:
    """Return a single user by primary key."""
    return db.get(User, user_id)


def upsert_user(
    db: Session,
    user_id: str,
    profile: UserProfileUpdate,
    *,
    revalidator: PathRevalidator | None = None,
) -> User:
    """Create or update a user's profile and mark them as onboarded.

    Raises:
        ValidationFailedError: If the username belongs to someone else.
    """
    taken = db.execute(
        select(User.id).where(User.username == profile.username, User.id != user_id)
    ).first()
    if taken is not None:
        raise ValidationFailedError(f"Username already taken: {profile.username}")

    db_user = db.get(User, user_id)
    if db_user is None:
        db_user = User(id=user_id, username=profile.username, name=profile.name)
        db.add(db_user)

    update_dict = profile.model_dump(exclude={"path"})
    for key, value in update_dict.items():
        setattr(db_user, key, value)
    db_user.onboarded = True

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationFailedError(f"Username already taken: {profile.username}") from exc
    db.refresh(db_user)
    (revalidator or get_revalidator()).revalidate(profile.path)
    return db_user


def get_community(db: Session, community_id: str) -> Community | None:
    """Return a single community by primary key."""
    return db.get(Community, community_id)


def create_community(db: Session, data: CommunityCreate, created_by_id: str) -> Community:
    """Persist a new community owned by ``created_by_id``.

    Raises:
        ValidationFailedError: If the handle is already in use.
    """
    community = Community(
        username=data.username,
        name=data.name,
        image=data.image,
        bio=data.bio,
        created_by_id=created_by_id,
    )
    db.add(community)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationFailedError(f"Community handle already exists: {data.username}") from exc
    db.refresh(community)
    logger.info("Created community %s (%s)", community.id, community.username)
    return community
