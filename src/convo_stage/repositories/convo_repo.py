"""Data access helpers for working with convos."""
from __future__ import annotations

from collections.abc import Collection
from typing import NamedTuple

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.orm.interfaces import LoaderOption

from convo_stage.models import Community, CommunityConvo, Convo, ConvoChild, User, UserConvo

__all__ = ["ConvoRef", "ConvoRepository", "FEED_LOAD_OPTIONS", "DETAIL_LOAD_OPTIONS"]

# Feed cards show the author, the community and the avatars of repliers.
FEED_LOAD_OPTIONS: tuple[LoaderOption, ...] = (
    selectinload(Convo.author),
    selectinload(Convo.community),
    selectinload(Convo.children).selectinload(Convo.author),
)

# The convo page renders two levels of replies.
DETAIL_LOAD_OPTIONS: tuple[LoaderOption, ...] = (
    selectinload(Convo.author),
    selectinload(Convo.community),
    selectinload(Convo.children).selectinload(Convo.author),
    selectinload(Convo.children).selectinload(Convo.community),
    selectinload(Convo.children).selectinload(Convo.children).selectinload(Convo.author),
)


class ConvoRef(NamedTuple):
    """Identifiers needed to clean up after a convo."""

    id: str
    author_id: str | None
    community_id: str | None


class ConvoRepository:
    """Thin wrapper around database access for convo entities.

    Mutating helpers only flush; committing is left to the service layer so a
    multi-step operation can run in one transaction.
    """

    def __init__(self, session: Session) -> None:
        """Initialize the repository with a SQLAlchemy session."""
        self.session = session

    def get_by_id(self, convo_id: str) -> Convo | None:
        """Return a convo by identifier."""
        return self.session.get(Convo, convo_id)

    def get_populated(
        self,
        convo_id: str,
        options: Collection[LoaderOption] = DETAIL_LOAD_OPTIONS,
    ) -> Convo | None:
        """Return a convo with related documents eagerly loaded."""
        result = self.session.execute(
            select(Convo).where(Convo.id == convo_id).options(*options)
        )
        return result.scalars().first()

    def find_child_refs(self, parent_id: str) -> list[ConvoRef]:
        """Return refs of every convo whose ``parent_id`` is ``parent_id``."""
        rows = self.session.execute(
            select(Convo.id, Convo.author_id, Convo.community_id).where(
                Convo.parent_id == parent_id
            )
        )
        return [ConvoRef(*row) for row in rows]

    def list_top_level(self, *, skip: int, limit: int) -> list[Convo]:
        """Return top-level convos newest first."""
        result = self.session.execute(
            select(Convo)
            .where(Convo.parent_id.is_(None))
            .order_by(Convo.created_at.desc(), Convo.id.desc())
            .offset(skip)
            .limit(limit)
            .options(*FEED_LOAD_OPTIONS)
        )
        return list(result.scalars())

    def count_top_level(self) -> int:
        """Return the number of top-level convos."""
        return int(
            self.session.scalar(
                select(func.count()).select_from(Convo).where(Convo.parent_id.is_(None))
            )
            or 0
        )

    def create(
        self,
        *,
        text: str,
        author_id: str,
        community_id: str | None = None,
        parent_id: str | None = None,
    ) -> Convo:
        """Insert a new leaf convo and return the persisted ORM instance."""
        convo = Convo(
            text=text,
            author_id=author_id,
            community_id=community_id,
            parent_id=parent_id,
        )
        self.session.add(convo)
        self.session.flush()
        return convo

    def push_to_user(self, user_id: str, convo_id: str) -> None:
        """Add ``convo_id`` to the user's ``convos`` set."""
        self.session.add(UserConvo(user_id=user_id, convo_id=convo_id))
        self.session.flush()

    def push_to_community(self, community_id: str, convo_id: str) -> None:
        """Add ``convo_id`` to the community's ``convos`` set."""
        self.session.add(CommunityConvo(community_id=community_id, convo_id=convo_id))
        self.session.flush()

    def append_child(self, parent_id: str, child_id: str) -> None:
        """Append ``child_id`` at the end of the parent's ``children`` list."""
        last = self.session.scalar(
            select(func.max(ConvoChild.position)).where(ConvoChild.parent_id == parent_id)
        )
        position = 0 if last is None else last + 1
        self.session.add(ConvoChild(parent_id=parent_id, child_id=child_id, position=position))
        self.session.flush()

    def replace_children(self, parent_id: str, child_ids: list[str]) -> None:
        """Overwrite the parent's ``children`` list with ``child_ids`` in order."""
        self.session.execute(
            delete(ConvoChild)
            .where(ConvoChild.parent_id == parent_id)
            .execution_options(synchronize_session=False)
        )
        if child_ids:
            self.session.execute(
                insert(ConvoChild),
                [
                    {"parent_id": parent_id, "child_id": child_id, "position": index}
                    for index, child_id in enumerate(child_ids)
                ],
            )

    def child_ids_by_parent(self, parent_id: str) -> list[str]:
        """Return ids of direct replies ordered by creation time."""
        rows = self.session.execute(
            select(Convo.id)
            .where(Convo.parent_id == parent_id)
            .order_by(Convo.created_at, Convo.id)
        )
        return list(rows.scalars())

    def delete_many(self, convo_ids: Collection[str]) -> int:
        """Delete every convo whose id is in ``convo_ids``."""
        result = self.session.execute(
            delete(Convo)
            .where(Convo.id.in_(list(convo_ids)))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def pull_from_users(self, user_ids: Collection[str], convo_ids: Collection[str]) -> int:
        """Remove ``convo_ids`` from the ``convos`` set of each user in ``user_ids``."""
        if not user_ids:
            return 0
        result = self.session.execute(
            delete(UserConvo)
            .where(
                UserConvo.user_id.in_(list(user_ids)),
                UserConvo.convo_id.in_(list(convo_ids)),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def pull_from_communities(
        self,
        community_ids: Collection[str],
        convo_ids: Collection[str],
    ) -> int:
        """Remove ``convo_ids`` from the ``convos`` set of each listed community."""
        if not community_ids:
            return 0
        result = self.session.execute(
            delete(CommunityConvo)
            .where(
                CommunityConvo.community_id.in_(list(community_ids)),
                CommunityConvo.convo_id.in_(list(convo_ids)),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def pull_from_children(self, convo_ids: Collection[str]) -> int:
        """Drop every ``children`` entry that points at or belongs to ``convo_ids``."""
        result = self.session.execute(
            delete(ConvoChild)
            .where(
                ConvoChild.child_id.in_(list(convo_ids))
                | ConvoChild.parent_id.in_(list(convo_ids))
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    def get_user(self, user_id: str) -> User | None:
        """Return a user by identifier."""
        return self.session.get(User, user_id)

    def get_community(self, community_id: str) -> Community | None:
        """Return a community by identifier."""
        return self.session.get(Community, community_id)

    def get_user_with_convos(self, user_id: str) -> User | None:
        """Return a user with their convos populated for the profile tab."""
        result = self.session.execute(
            select(User)
            .where(User.id == user_id)
            .options(selectinload(User.convos).options(*FEED_LOAD_OPTIONS))
        )
        return result.scalars().first()

    def get_community_with_convos(self, community_id: str) -> Community | None:
        """Return a community with its convos populated for the community tab."""
        result = self.session.execute(
            select(Community)
            .where(Community.id == community_id)
            .options(selectinload(Community.convos).options(*FEED_LOAD_OPTIONS))
        )
        return result.scalars().first()
