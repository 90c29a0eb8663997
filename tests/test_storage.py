import json

import pytest

from aski.errors import AskiError, DuplicateHashError
from aski.graph import ConversationGraph
from aski.storage import Storage


@pytest.fixture
def branched():
    g = ConversationGraph()
    g.append_turn("system", "sys")
    q = g.append_turn("user", "question")
    g.append_turn("assistant", "first answer")
    g.change_head(q.sha1)
    second = g.append_turn("assistant", "second answer")
    g.summary = "Two answers"
    return g, second


def test_round_trip_keeps_branches_and_head(tmp_path, branched):
    g, second = branched
    storage = Storage(root=tmp_path)
    path = storage.save(g, "claude")

    loaded, profile = storage.load(path)

    assert profile == "claude"
    assert loaded.head == second.sha1
    assert loaded.summary == "Two answers"
    assert len(loaded) == len(g)
    assert [n.content for n in loaded.active_path()] == ["sys", "question", "second answer"]


def test_file_name_uses_summary(tmp_path, branched):
    g, _ = branched
    path = Storage(root=tmp_path).save(g, "default")
    assert path.parent == tmp_path
    assert path.name.endswith("_Two-answers.json")


def test_save_to_explicit_path_overwrites(tmp_path, branched):
    g, _ = branched
    storage = Storage(root=tmp_path)
    target = tmp_path / "resume.json"
    storage.save(g, "default", target)
    g.append_turn("user", "more")
    storage.save(g, "default", target)
    loaded, _ = storage.load(target)
    assert loaded.head_node().content == "more"


def test_default_root_is_under_aski_home(aski_home):
    assert Storage().root == aski_home / "history"


def test_missing_file(tmp_path):
    with pytest.raises(AskiError, match="no saved conversation"):
        Storage(root=tmp_path).load(tmp_path / "nope.json")


def test_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(AskiError, match="invalid JSON"):
        Storage(root=tmp_path).load(path)


def test_unknown_fields_are_rejected(tmp_path):
    path = tmp_path / "odd.json"
    path.write_text(json.dumps({"head": "", "messages": [], "colour": "red"}), encoding="utf-8")
    with pytest.raises(AskiError, match="not a valid aski conversation"):
        Storage(root=tmp_path).load(path)


def test_tampered_content_is_rejected(tmp_path, branched):
    g, _ = branched
    storage = Storage(root=tmp_path)
    path = storage.save(g, "default")
    doc = json.loads(path.read_text(encoding="utf-8"))
    doc["messages"][0]["content"] = "rewritten"
    path.write_text(json.dumps(doc), encoding="utf-8")
    with pytest.raises(DuplicateHashError):
        storage.load(path)


def test_head_must_exist(tmp_path, branched):
    g, _ = branched
    storage = Storage(root=tmp_path)
    path = storage.save(g, "default")
    doc = json.loads(path.read_text(encoding="utf-8"))
    doc["head"] = "0" * 40
    path.write_text(json.dumps(doc), encoding="utf-8")
    with pytest.raises(AskiError):
        storage.load(path)
