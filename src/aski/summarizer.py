# aski: One-line conversation titles, used by :summary and for naming saved history files.

from typing import List

from . import config
from .client import CompletionClient
from .context import Context
from .models import MessageNode, Profile
from .prompts import get_prompt


def build_summary_request(path: List[MessageNode]) -> List[dict]:
    """Quote the last two non-system turns, then ask for a title."""
    recent = [n for n in path[-2:] if n.role.value != "system"]
    quoted = "".join(f"{n.role.value} says :{n.content}\n" for n in recent)
    return [
        {"role": "user", "content": quoted},
        {"role": "user", "content": get_prompt("summary_prompt.txt").strip()},
    ]


def clean_title(text: str) -> str:
    return text.replace(".", "").replace('"', "").strip()


class Summarizer:
    """Asks the model for a title. Uses ASKI_SUMMARY_MODEL when set, else the profile's model."""

    def __init__(self, ctx: Context, client: CompletionClient, profile: Profile) -> None:
        self.ctx = ctx
        self.client = client
        # Plain-text request without the profile's sampling parameters or seed turns.
        self.profile = Profile(name="summary", model=config.SUMMARY_MODEL or profile.model, system_context="")

    def summarize(self, path: List[MessageNode]) -> str:
        if not any(n.role.value != "system" for n in path):
            return ""
        self.ctx.log(f"Summarizing {len(path)} turn(s) with {self.profile.model}")
        return clean_title(self.client.complete(build_summary_request(path), self.profile))
