"""Tests for the cascading convo delete."""

from __future__ import annotations

import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError

from convo_stage.models import CommunityConvo, Convo, ConvoChild, UserConvo
from convo_stage.repositories.convo_repo import ConvoRepository
from convo_stage.services import convo_service
from convo_stage.services.errors import ConvoDeletionError, ConvoNotFoundError


def _convo_ids(session) -> set[str]:
    return set(session.scalars(select(Convo.id)))


def _user_convos(session, user_id: str) -> set[str]:
    return set(session.scalars(select(UserConvo.convo_id).where(UserConvo.user_id == user_id)))


def _community_convos(session, community_id: str) -> set[str]:
    return set(
        session.scalars(
            select(CommunityConvo.convo_id).where(CommunityConvo.community_id == community_id)
        )
    )


def _children(session, parent_id: str) -> list[str]:
    return list(
        session.scalars(
            select(ConvoChild.child_id)
            .where(ConvoChild.parent_id == parent_id)
            .order_by(ConvoChild.position)
        )
    )


@pytest.fixture()
def chain(make_user, make_post, make_reply):
    """Root -> child -> grandchild -> great-grandchild, each by a different author."""
    authors = [make_user() for _ in range(4)]
    root = make_post(authors[0], "root")
    child = make_reply(root, authors[1], "child")
    grandchild = make_reply(child, authors[2], "grandchild")
    great = make_reply(grandchild, authors[3], "great-grandchild")
    return {
        "authors": [a.id for a in authors],
        "ids": [root.id, child.id, grandchild.id, great.id],
    }


def test_delete_root_removes_entire_chain(db_session, chain, revalidator) -> None:
    root_id = chain["ids"][0]
    result = convo_service.delete_convo(db_session, root_id, "/", revalidator=revalidator)

    assert result.deleted_ids == frozenset(chain["ids"])
    assert result.was_top_level is True
    assert _convo_ids(db_session) == set()
    assert _user_convos(db_session, chain["authors"][0]) == set()
    assert db_session.scalars(select(ConvoChild)).all() == []


def test_delete_middle_removes_subtree_and_parent_link(db_session, chain, revalidator) -> None:
    root_id, child_id, grandchild_id, great_id = chain["ids"]

    result = convo_service.delete_convo(db_session, child_id, "/convo/x", revalidator=revalidator)

    assert result.deleted_ids == {child_id, grandchild_id, great_id}
    assert result.was_top_level is False
    assert _convo_ids(db_session) == {root_id}
    assert _children(db_session, root_id) == []
    assert _user_convos(db_session, chain["authors"][0]) == {root_id}


def test_scenario_reply_with_sibling(db_session, reply_tree, make_post, revalidator) -> None:
    """R has replies A and B; A has A1. Deleting A leaves R and B alone."""
    tree = reply_tree
    community_id = tree["community"].id
    ids = {name: tree[name].id for name in ("root", "a", "a1", "b")}
    users = {name: tree[name].id for name in ("alice", "bob", "carol", "dave")}
    unrelated = make_post(tree["alice"], "unrelated post", tree["community"]).id

    # Older data also tagged replies with the community and registered them
    # with their authors and community.
    db_session.execute(
        update(Convo)
        .where(Convo.id.in_([ids["a"], ids["b"]]))
        .values(community_id=community_id)
    )
    db_session.add_all([
        UserConvo(user_id=users["bob"], convo_id=ids["a"]),
        UserConvo(user_id=users["carol"], convo_id=ids["a1"]),
        UserConvo(user_id=users["dave"], convo_id=ids["b"]),
        CommunityConvo(community_id=community_id, convo_id=ids["a"]),
        CommunityConvo(community_id=community_id, convo_id=ids["b"]),
    ])
    db_session.commit()

    result = convo_service.delete_convo(
        db_session, ids["a"], "/convo/" + ids["root"], revalidator=revalidator
    )

    assert result.deleted_ids == {ids["a"], ids["a1"]}
    assert result.user_ids == {users["bob"], users["carol"]}
    assert result.community_ids == {community_id}
    assert _convo_ids(db_session) == {ids["root"], ids["b"], unrelated}
    assert _children(db_session, ids["root"]) == [ids["b"]]
    assert _user_convos(db_session, users["alice"]) == {ids["root"], unrelated}
    assert _user_convos(db_session, users["bob"]) == set()
    assert _user_convos(db_session, users["carol"]) == set()
    assert _user_convos(db_session, users["dave"]) == {ids["b"]}
    assert _community_convos(db_session, community_id) == {ids["root"], ids["b"], unrelated}


def test_delete_twice_reports_not_found(db_session, reply_tree, row_counts, revalidator) -> None:
    root_id = reply_tree["root"].id
    convo_service.delete_convo(db_session, root_id, "/", revalidator=revalidator)
    before = row_counts()

    with pytest.raises(ConvoNotFoundError):
        convo_service.delete_convo(db_session, root_id, "/", revalidator=revalidator)

    assert row_counts() == before
    assert revalidator.history == ["/"]


def test_delete_nonexistent_changes_nothing(db_session, reply_tree, row_counts, revalidator) -> None:
    before = row_counts()

    with pytest.raises(ConvoNotFoundError) as excinfo:
        convo_service.delete_convo(db_session, "nonexistent-id", "/", revalidator=revalidator)

    assert excinfo.value.entity_id == "nonexistent-id"
    assert row_counts() == before
    assert revalidator.history == []


def test_descendant_without_author_or_community_is_skipped(
    db_session, reply_tree, revalidator
) -> None:
    a1_id = reply_tree["a1"].id
    root_id = reply_tree["root"].id
    db_session.execute(update(Convo).where(Convo.id == a1_id).values(author_id=None))
    db_session.commit()

    result = convo_service.delete_convo(db_session, root_id, None, revalidator=revalidator)

    assert a1_id in result.deleted_ids
    assert None not in result.user_ids
    assert result.community_ids == {reply_tree["community"].id}
    assert _convo_ids(db_session) == set()


def test_sibling_subtree_is_untouched(db_session, reply_tree, make_reply, revalidator) -> None:
    b1 = make_reply(reply_tree["b"], reply_tree["carol"], "B1")
    b_id, b1_id = reply_tree["b"].id, b1.id

    convo_service.delete_convo(db_session, reply_tree["a"].id, None, revalidator=revalidator)

    remaining = _convo_ids(db_session)
    assert {b_id, b1_id} <= remaining
    assert _children(db_session, b_id) == [b1_id]


def test_every_branch_is_explored(db_session, make_user, make_post, make_reply) -> None:
    author = make_user()
    root = make_post(author)
    expected = {root.id}
    for _ in range(3):
        child = make_reply(root, author)
        expected.add(child.id)
        for _ in range(2):
            expected.add(make_reply(child, author).id)

    descendants = convo_service.collect_descendants(ConvoRepository(db_session), root.id)

    assert len(descendants) == len(expected) - 1
    assert {ref.id for ref in descendants} == expected - {root.id}


def test_descendant_walk_terminates_on_cycle(db_session, chain) -> None:
    root_id, _, _, great_id = chain["ids"]
    # Corrupt the tree so the root claims its own great-grandchild as parent.
    db_session.execute(update(Convo).where(Convo.id == root_id).values(parent_id=great_id))
    db_session.commit()

    descendants = convo_service.collect_descendants(ConvoRepository(db_session), root_id)

    assert {ref.id for ref in descendants} == set(chain["ids"][1:])


def test_store_failure_rolls_back_and_names_stage(
    db_session, reply_tree, row_counts, revalidator, monkeypatch
) -> None:
    before = row_counts()

    def _boom(self, community_ids, convo_ids):
        raise OperationalError("DELETE FROM community_convo", {}, Exception("disk I/O error"))

    monkeypatch.setattr(ConvoRepository, "pull_from_communities", _boom)

    with pytest.raises(ConvoDeletionError) as excinfo:
        convo_service.delete_convo(
            db_session, reply_tree["root"].id, "/", revalidator=revalidator
        )

    assert excinfo.value.stage == "repair_communities"
    assert isinstance(excinfo.value.__cause__, OperationalError)
    assert row_counts() == before
    assert revalidator.history == []


def test_path_hint_is_forwarded_verbatim(db_session, reply_tree, revalidator) -> None:
    path = "/convo/abc?tab=replies#top"
    convo_service.delete_convo(db_session, reply_tree["b"].id, path, revalidator=revalidator)
    assert revalidator.history == [path]


def test_failure_in_delete_step_rolls_back_repairs(
    db_session, reply_tree, row_counts, revalidator, monkeypatch
) -> None:
    root_id = reply_tree["root"].id
    a_id = reply_tree["a"].id
    alice_id = reply_tree["alice"].id
    before = row_counts()

    def _boom(self, convo_ids):
        raise OperationalError("DELETE FROM convo", {}, Exception("database is locked"))

    monkeypatch.setattr(ConvoRepository, "delete_many", _boom)

    with pytest.raises(ConvoDeletionError) as excinfo:
        convo_service.delete_convo(db_session, a_id, "/", revalidator=revalidator)

    assert excinfo.value.stage == "delete"
    assert excinfo.value.convo_id == a_id
    assert row_counts() == before
    # Link rows removed by the earlier repair steps are restored.
    assert _children(db_session, root_id) == [a_id, reply_tree["b"].id]
    assert _user_convos(db_session, alice_id) == {root_id}
    assert revalidator.history == []
