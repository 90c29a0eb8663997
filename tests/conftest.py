from typing import List

import pytest

from aski.context import Context
from aski.graph import ConversationGraph


class RecordingContext(Context):
    """Context that keeps everything in memory instead of printing."""

    def __init__(self, verbose: bool = True) -> None:
        super().__init__(verbose=verbose)
        self.lines: List[str] = []
        self.written: List[str] = []
        self.logs: List[str] = []
        self.errors: List[str] = []

    def send_to_user(self, message: str) -> None:
        self.lines.append(message)

    def write(self, text: str) -> None:
        self.written.append(text)

    def log(self, message: str) -> None:
        if self.verbose:
            self.logs.append(message)

    def error_message(self, message: str) -> None:
        self.errors.append(message)

    @property
    def output(self) -> str:
        return "\n".join(self.lines)


@pytest.fixture
def ctx():
    return RecordingContext()


@pytest.fixture
def graph():
    return ConversationGraph()


@pytest.fixture
def aski_home(tmp_path, monkeypatch):
    from aski import config

    monkeypatch.setattr(config, "ASKI_HOME", tmp_path)
    return tmp_path
