# aski: Pydantic v2 models for message nodes, profiles and the persisted conversation file. One source of truth for validation of anything read from disk.

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config


class CustomBaseModel(BaseModel):
    """Pydantic base model configured to forbid unknown fields for strict validation."""
    model_config = ConfigDict(extra="forbid")


class Role(str, Enum):
    system = "system"
    user = "user"
    assistant = "assistant"


class MessageNode(CustomBaseModel):
    """One turn of the conversation. Immutable; addressed by sha1."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    sha1: str = Field(..., description="Content hash of (role, content, parent_sha1)")
    parent_sha1: str = Field("", description="Hash of the parent turn; empty for the root")
    role: Role = Field(..., description="Author of the turn")
    content: str = Field(..., description="Raw text of the turn")

    @property
    def short(self) -> str:
        return self.sha1[:6]

    def same_fields(self, other: "MessageNode") -> bool:
        return (self.parent_sha1, self.role, self.content) == (other.parent_sha1, other.role, other.content)


class SeedMessage(CustomBaseModel):
    """A turn a profile prepends to every new conversation (few-shot examples)."""
    role: Role
    content: str


class CustomParameters(BaseModel):
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stop: Optional[List[str]] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None
    logit_bias: Optional[Dict[str, int]] = None

    @field_validator("stop", mode="before")
    @classmethod
    def _stop_as_list(cls, v):
        if isinstance(v, str):
            return [v]
        return v

    def as_payload(self) -> Dict[str, object]:
        """Only the parameters the user actually set."""
        return self.model_dump(exclude_none=True)


class Profile(BaseModel):
    name: str = "default"
    model: str = Field(default_factory=lambda: config.DEFAULT_MODEL)
    system_context: str = "You are a kind and helpful chat AI. Sometimes you may say things that are incorrect, but that is unavoidable."
    messages: List[SeedMessage] = Field(default_factory=list)
    response_format: Literal["text", "json_object"] = "text"
    custom_parameters: CustomParameters = Field(default_factory=CustomParameters)

    @property
    def is_claude(self) -> bool:
        return self.model.lower().startswith("claude")


class AppConfig(BaseModel):
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    current_profile: str = "default"
    # Commit the text streamed before a transport failure instead of dropping it.
    keep_partial_on_error: bool = False
    profiles: List[Profile] = Field(default_factory=lambda: [Profile()])

    def profile(self, name: Optional[str] = None) -> Optional[Profile]:
        wanted = name or self.current_profile
        for p in self.profiles:
            if p.name == wanted:
                return p
        return None


class PersistedMessage(CustomBaseModel):
    sha1: str
    parent_sha1: str = ""
    role: Role
    content: str


class PersistedConversation(CustomBaseModel):
    version: int = 1
    profile: str = "default"
    summary: str = ""
    head: str
    messages: List[PersistedMessage]
