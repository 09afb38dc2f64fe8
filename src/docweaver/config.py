"""Configuration: credential resolution and on-disk state locations."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

STATE_DIR_NAME = ".docweaver"
MESSAGES_DIR_NAME = "messages"

# Provider-specific API key environment variable names
API_KEY_ENV_VARS: dict[str, str] = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}


def resolve_api_key(provider: str, explicit: str | None = None) -> str | None:
    """Return *explicit* when given, else the provider's environment key.

    ``None`` is a valid answer: the provider SDK then applies its own lookup
    and reports a missing key as an ordinary call failure.
    """
    if explicit:
        return explicit
    env_var = API_KEY_ENV_VARS.get(provider)
    if env_var is None:
        return None
    return os.environ.get(env_var) or None


@dataclass(frozen=True)
class Settings:
    """Where docweaver keeps its working state.

    Example:
        settings = Settings(workdir=Path("docs-project"))
        settings.messages_dir  # docs-project/.docweaver/messages
    """

    workdir: Path = field(default_factory=Path.cwd)
    state_dir_name: str = STATE_DIR_NAME
    messages_dir_name: str = MESSAGES_DIR_NAME

    @property
    def state_dir(self) -> Path:
        """Directory holding all docweaver state for *workdir*."""
        return Path(self.workdir) / self.state_dir_name

    @property
    def messages_dir(self) -> Path:
        """Directory receiving request/response backups."""
        return self.state_dir / self.messages_dir_name
