import pytest

from aski.errors import AmbiguousPrefixError, DuplicateHashError, EmptyInputError, NotFoundError
from aski.fs import message_sha1
from aski.graph import ConversationGraph
from aski.models import MessageNode


def contents(path):
    return [n.content for n in path]


def test_empty_graph_has_empty_path(graph):
    assert graph.active_path() == []
    assert graph.head == ""
    assert graph.head_node() is None


def test_active_path_follows_append_order(graph):
    added = [graph.append_turn(role, f"turn {i}") for i, role in enumerate(["system", "user", "assistant", "user", "assistant"])]
    assert graph.active_path() == added
    assert graph.head == added[-1].sha1
    assert added[0].parent_sha1 == ""
    for parent, child in zip(added, added[1:]):
        assert child.parent_sha1 == parent.sha1


def test_hash_is_derived_from_role_content_and_parent(graph):
    root = graph.append_turn("system", "be nice")
    child = graph.append_turn("user", "hi")
    assert root.sha1 == message_sha1("system", "be nice", "")
    assert child.sha1 == message_sha1("user", "hi", root.sha1)
    assert len(child.sha1) == 40


def test_is_head(graph):
    a = graph.append_turn("user", "a")
    b = graph.append_turn("assistant", "b")
    assert graph.is_head(b)
    assert not graph.is_head(a)


def test_change_head_redirects_next_append(graph):
    a = graph.append_turn("user", "A")
    graph.append_turn("assistant", "B")
    moved = graph.change_head(a.sha1[:7])
    assert moved is a
    c = graph.append_turn("assistant", "C")
    assert c.parent_sha1 == a.sha1


def test_change_head_ambiguous_leaves_head_unchanged(graph):
    by_first_char = {}
    for i in range(17):
        node = graph.append_turn("user" if i % 2 else "assistant", f"turn {i}")
        by_first_char.setdefault(node.sha1[0], []).append(node)
    shared = next(c for c, nodes in by_first_char.items() if len(nodes) > 1)
    head = graph.head
    with pytest.raises(AmbiguousPrefixError):
        graph.change_head(shared)
    assert graph.head == head


def test_change_head_empty_input(graph):
    graph.append_turn("user", "a")
    graph.append_turn("assistant", "b")
    head = graph.head
    for blank in ("", "   "):
        with pytest.raises(EmptyInputError):
            graph.change_head(blank)
    assert graph.head == head


def test_change_head_not_found(graph):
    node = graph.append_turn("user", "a")
    other = "0" if node.sha1[0] != "0" else "1"
    with pytest.raises(NotFoundError):
        graph.change_head(other)
    assert graph.head == node.sha1


def test_duplicate_submission_is_idempotent(graph):
    graph.append_turn("system", "sys")
    first = graph.append_turn("user", "same question")
    second = graph.append_turn("user", "same question")
    assert second is first
    assert graph.head == first.sha1
    assert len(graph) == 2


def test_reappending_under_same_parent_reuses_node(graph):
    a = graph.append_turn("user", "A")
    b = graph.append_turn("assistant", "B")
    graph.change_head(a.sha1)
    again = graph.append_turn("assistant", "B")
    assert again is b
    assert len(graph) == 2
    assert graph.head == b.sha1


def test_same_content_in_different_roles_is_not_a_duplicate(graph):
    graph.append_turn("user", "ok")
    graph.append_turn("assistant", "ok")
    assert len(graph) == 2


def test_branch_isolation(graph):
    a = graph.append_turn("user", "A")
    b = graph.append_turn("assistant", "B")
    graph.change_head(a.sha1)
    c = graph.append_turn("assistant", "C")

    assert b.sha1 in graph.store and c.sha1 in graph.store
    assert b.parent_sha1 == a.sha1 and c.parent_sha1 == a.sha1
    assert graph.active_path() == [a, c]

    graph.change_head(b.sha1)
    assert graph.active_path() == [a, b]


def test_active_path_has_no_side_effects(graph):
    graph.append_turn("user", "A")
    graph.append_turn("assistant", "B")
    head = graph.head
    assert graph.active_path() == graph.active_path()
    assert graph.head == head
    assert len(graph) == 2


def test_to_messages(graph):
    graph.append_turn("system", "sys")
    graph.append_turn("user", "hi")
    assert graph.to_messages() == [
        {"role": "system", "content": "sys"},
        {"role": "user", "content": "hi"},
    ]


def test_unknown_role_is_rejected(graph):
    with pytest.raises(ValueError):
        graph.append_turn("tool", "x")


def test_restore_round_trips_nodes_and_head(graph):
    a = graph.append_turn("user", "A")
    graph.append_turn("assistant", "B")
    graph.change_head(a.sha1)
    graph.append_turn("assistant", "C")

    restored = ConversationGraph.restore(graph.store.nodes(), graph.head, summary="title")
    assert restored.head == graph.head
    assert restored.summary == "title"
    assert restored.store.nodes() == graph.store.nodes()
    assert restored.active_path() == graph.active_path()


def test_restore_rejects_tampered_content(graph):
    node = graph.append_turn("user", "original")
    tampered = MessageNode(sha1=node.sha1, parent_sha1="", role="user", content="edited by hand")
    with pytest.raises(DuplicateHashError):
        ConversationGraph.restore([tampered], node.sha1)


def test_restore_rejects_dangling_parent():
    parent = "f" * 40
    orphan = MessageNode(sha1=message_sha1("user", "x", parent), parent_sha1=parent, role="user", content="x")
    with pytest.raises(Exception, match="missing parent"):
        ConversationGraph.restore([orphan], orphan.sha1)


def test_restore_rejects_unknown_head(graph):
    graph.append_turn("user", "x")
    with pytest.raises(NotFoundError):
        ConversationGraph.restore(graph.store.nodes(), "0" * 40)
