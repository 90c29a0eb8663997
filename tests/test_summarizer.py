from aski import config
from aski.graph import ConversationGraph
from aski.models import Profile
from aski.summarizer import Summarizer, build_summary_request, clean_title


class FakeClient:
    def __init__(self, reply):
        self.reply = reply
        self.calls = []

    def complete(self, messages, profile):
        self.calls.append((messages, profile))
        return self.reply


def conversation():
    g = ConversationGraph()
    g.append_turn("system", "sys")
    g.append_turn("user", "What is a monad?")
    g.append_turn("assistant", "A monoid in the category of endofunctors.")
    return g.active_path()


def test_build_summary_request_quotes_last_two_turns():
    messages = build_summary_request(conversation())
    assert messages[0]["content"] == (
        "user says :What is a monad?\n"
        "assistant says :A monoid in the category of endofunctors.\n"
    )
    assert messages[1]["role"] == "user"
    assert messages[1]["content"]


def test_clean_title():
    assert clean_title(' "Monads explained." ') == "Monads explained"


def test_summarize_uses_profile_model(ctx, monkeypatch):
    monkeypatch.setattr(config, "SUMMARY_MODEL", "")
    client = FakeClient('"Monads."')
    s = Summarizer(ctx, client, Profile(model="claude-3-haiku", system_context="long"))
    assert s.summarize(conversation()) == "Monads"
    _, profile = client.calls[0]
    assert profile.model == "claude-3-haiku"
    assert profile.system_context == ""


def test_summarize_model_override(ctx, monkeypatch):
    monkeypatch.setattr(config, "SUMMARY_MODEL", "gpt-4o-mini")
    client = FakeClient("Monads")
    Summarizer(ctx, client, Profile(model="claude-3-opus")).summarize(conversation())
    assert client.calls[0][1].model == "gpt-4o-mini"


def test_nothing_to_summarize(ctx):
    client = FakeClient("unused")
    g = ConversationGraph()
    g.append_turn("system", "sys")
    assert Summarizer(ctx, client, Profile()).summarize(g.active_path()) == ""
    assert client.calls == []
