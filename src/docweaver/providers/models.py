"""Domain models for the provider transport layer."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, get_args

from docweaver.errors import ConfigurationError

Role = Literal["user", "assistant", "system"]

_ROLES: tuple[str, ...] = get_args(Role)


@dataclass(frozen=True)
class Message:
    """A standard conversational message turn."""

    role: Role
    content: str = ""

    def __post_init__(self) -> None:
        if self.role not in _ROLES:
            raise ConfigurationError(
                f"Unknown message role: {self.role!r}",
                hint="Roles are 'user', 'assistant' or 'system'.",
            )
        if not isinstance(self.content, str):
            raise ConfigurationError(
                "Message content must be a string",
                hint="Join multi-part content into a single string first.",
            )

    @classmethod
    def coerce(cls, item: Message | Mapping[str, Any]) -> Message:
        """Accept either a ``Message`` or a ``{"role", "content"}`` mapping."""
        if isinstance(item, Message):
            return item
        if isinstance(item, Mapping):
            return cls(role=item.get("role", "user"), content=item.get("content", ""))
        raise ConfigurationError(
            f"Cannot build a message from {type(item).__name__}",
            hint="Pass Message(...) or {'role': 'user', 'content': '...'}.",
        )

    def to_dict(self) -> dict[str, str]:
        """Plain dict form used on the wire and in backups."""
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class ProviderRequest:
    """A unified request payload for a streaming provider call."""

    model: str
    messages: tuple[Message, ...]
    max_output_tokens: int
    system_prompt: str | None = None
    json_type: str | None = None
    stream_to_console: bool = False
    save_to_filepath: Path | None = None
    prefix: str | None = None
    flush_threshold: int | None = None


@dataclass(frozen=True)
class ProviderResponse:
    """Accumulated text and usage from one streamed completion."""

    text: str = ""
    input_tokens: int = 0
    output_tokens: int = 0
