"""Service-level operations on convos.

Every mutating function here owns its transaction: it commits on success and
rolls back before raising. Callers pass an opaque ``path`` naming the page to
re-render; it is forwarded to the revalidator untouched.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from convo_stage.core.settings import settings
from convo_stage.models import Community, Convo, User
from convo_stage.repositories.convo_repo import ConvoRef, ConvoRepository
from convo_stage.services.errors import (
    CommunityNotFoundError,
    ConvoDeletionError,
    ConvoNotFoundError,
    UserNotFoundError,
    ValidationFailedError,
)
from convo_stage.services.revalidation import PathRevalidator, get_revalidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeletionResult:
    """Summary of a completed cascading delete."""

    convo_id: str
    deleted_ids: frozenset[str]
    user_ids: frozenset[str]
    community_ids: frozenset[str]
    was_top_level: bool


@dataclass(frozen=True)
class PostsPage:
    """One page of the top-level feed."""

    posts: list[Convo]
    is_next: bool


def _clean_text(text: str | None) -> str:
    cleaned = (text or "").strip()
    if not cleaned:
        raise ValidationFailedError("Convo text is required")
    if len(cleaned) > settings.convo_max_text_length:
        raise ValidationFailedError(
            f"Convo text exceeds {settings.convo_max_text_length} characters"
        )
    return cleaned


def create_convo(
    db: Session,
    *,
    text: str,
    author_id: str,
    community_id: str | None = None,
    path: str | None = None,
    revalidator: PathRevalidator | None = None,
) -> Convo:
    """Create a top-level convo and register it with its author and community.

    An unknown ``community_id`` posts to the author's personal feed instead of
    failing.

    Raises:
        ValidationFailedError: If the text is empty or too long.
        UserNotFoundError: If the author does not exist.
    """
    body = _clean_text(text)
    repo = ConvoRepository(db)
    if repo.get_user(author_id) is None:
        raise UserNotFoundError(author_id)

    community: Community | None = None
    if community_id:
        community = repo.get_community(community_id)

    try:
        convo = repo.create(
            text=body,
            author_id=author_id,
            community_id=community.id if community else None,
        )
        repo.push_to_user(author_id, convo.id)
        if community is not None:
            repo.push_to_community(community.id, convo.id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Failed to create convo for user %s", author_id, exc_info=True)
        raise

    db.refresh(convo)
    (revalidator or get_revalidator()).revalidate(path)
    return convo


def add_comment_to_convo(
    db: Session,
    convo_id: str,
    *,
    text: str,
    user_id: str,
    path: str | None = None,
    revalidator: PathRevalidator | None = None,
) -> Convo:
    """Create a reply under ``convo_id`` and append it to the parent's children.

    The insert and the append happen in one transaction so ``children`` never
    misses a committed reply.

    Raises:
        ValidationFailedError: If the text is empty or too long.
        ConvoNotFoundError: If the parent convo does not exist.
        UserNotFoundError: If the author does not exist.
    """
    body = _clean_text(text)
    repo = ConvoRepository(db)
    parent = repo.get_by_id(convo_id)
    if parent is None:
        raise ConvoNotFoundError(convo_id)
    if repo.get_user(user_id) is None:
        raise UserNotFoundError(user_id)

    try:
        comment = repo.create(text=body, author_id=user_id, parent_id=parent.id)
        repo.append_child(parent.id, comment.id)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Failed to add comment to convo %s", convo_id, exc_info=True)
        raise

    db.refresh(comment)
    (revalidator or get_revalidator()).revalidate(path)
    return comment


def collect_descendants(repo: ConvoRepository, convo_id: str) -> list[ConvoRef]:
    """Return refs of every transitive reply beneath ``convo_id``.

    Walks ``parent_id`` with an explicit worklist, one query per visited convo.
    Each descendant is returned exactly once; ids already seen are skipped so
    corrupted cyclic data cannot loop forever.
    """
    descendants: list[ConvoRef] = []
    seen = {convo_id}
    pending = [convo_id]
    while pending:
        current = pending.pop()
        for child in repo.find_child_refs(current):
            if child.id in seen:
                continue
            seen.add(child.id)
            descendants.append(child)
            pending.append(child.id)
    return descendants


def delete_convo(
    db: Session,
    convo_id: str,
    path: str | None = None,
    *,
    revalidator: PathRevalidator | None = None,
) -> DeletionResult:
    """Delete a convo, all of its replies, and every reference to them.

    Users and communities lose the deleted ids from their ``convos`` sets and
    the surviving parent (if any) loses the deleted reply from ``children``.
    The cleanup and the delete commit together.

    Raises:
        ConvoNotFoundError: If ``convo_id`` does not exist. Nothing is modified.
        ConvoDeletionError: If a store operation fails. The transaction has been
            rolled back; retrying is safe.
    """
    repo = ConvoRepository(db)
    stage = "load"
    try:
        target = repo.get_by_id(convo_id)
        if target is None:
            raise ConvoNotFoundError(convo_id)
        was_top_level = target.is_top_level
        root = ConvoRef(target.id, target.author_id, target.community_id)

        stage = "discover"
        closure = [root, *collect_descendants(repo, convo_id)]
        closure_ids = frozenset(ref.id for ref in closure)
        user_ids = frozenset(ref.author_id for ref in closure if ref.author_id)
        community_ids = frozenset(ref.community_id for ref in closure if ref.community_id)

        # Link rows reference convo ids, so they go before the convos themselves.
        stage = "repair_users"
        repo.pull_from_users(user_ids, closure_ids)
        stage = "repair_communities"
        repo.pull_from_communities(community_ids, closure_ids)
        stage = "repair_children"
        repo.pull_from_children(closure_ids)
        stage = "delete"
        deleted = repo.delete_many(closure_ids)
        stage = "commit"
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Deletion of convo %s failed during %s", convo_id, stage, exc_info=True)
        raise ConvoDeletionError(convo_id, stage, exc) from exc

    db.expire_all()
    logger.info(
        "Deleted convo %s with %d descendants (%d rows removed)",
        convo_id,
        len(closure_ids) - 1,
        deleted,
    )
    (revalidator or get_revalidator()).revalidate(path)
    return DeletionResult(
        convo_id=convo_id,
        deleted_ids=closure_ids,
        user_ids=user_ids,
        community_ids=community_ids,
        was_top_level=was_top_level,
    )


def fetch_convo_by_id(db: Session, convo_id: str) -> Convo:
    """Return a convo with author, community and two levels of replies loaded.

    Raises:
        ConvoNotFoundError: If the convo does not exist.
    """
    convo = ConvoRepository(db).get_populated(convo_id)
    if convo is None:
        raise ConvoNotFoundError(convo_id)
    return convo


def fetch_posts(db: Session, page_number: int = 1, page_size: int | None = None) -> PostsPage:
    """Return one page of top-level convos, newest first."""
    page_size = settings.default_page_size if page_size is None else page_size
    if page_number < 1 or page_size < 1:
        raise ValidationFailedError("Page number and page size must be positive")
    page_size = min(page_size, settings.max_page_size)

    repo = ConvoRepository(db)
    skip = (page_number - 1) * page_size
    posts = repo.list_top_level(skip=skip, limit=page_size)
    total = repo.count_top_level()
    return PostsPage(posts=posts, is_next=total > skip + len(posts))


def fetch_user_posts(db: Session, user_id: str) -> User:
    """Return a user with their convos populated for the profile tab."""
    user = ConvoRepository(db).get_user_with_convos(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def fetch_community_posts(db: Session, community_id: str) -> Community:
    """Return a community with its convos populated for the community tab."""
    community = ConvoRepository(db).get_community_with_convos(community_id)
    if community is None:
        raise CommunityNotFoundError(community_id)
    return community


def rebuild_children(db: Session, convo_id: str) -> list[str]:
    """Recompute a convo's ``children`` list from ``parent_id``.

    Returns:
        The rebuilt list of child ids, oldest first.
    """
    repo = ConvoRepository(db)
    if repo.get_by_id(convo_id) is None:
        raise ConvoNotFoundError(convo_id)
    child_ids = repo.child_ids_by_parent(convo_id)
    try:
        repo.replace_children(convo_id, child_ids)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.error("Failed to rebuild children of convo %s", convo_id, exc_info=True)
        raise
    logger.info("Rebuilt children of convo %s (%d replies)", convo_id, len(child_ids))
    return child_ids
