"""Debug artifacts: request/response backups and the live file mirror.

External tools tail these files, so every write replaces the whole file.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from docweaver.config import Settings
    from docweaver.providers.models import Message

logger = logging.getLogger(__name__)


def save_messages(
    messages: Sequence[Message], save_name: str, settings: Settings
) -> Path:
    """Write the outbound message list to ``<messages_dir>/<save_name>.json``."""
    target = settings.messages_dir / f"{save_name}.json"
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = [m.to_dict() for m in messages]
    target.write_text(json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8")
    logger.debug("Saved %d message(s) to %s", len(payload), target)
    return target


def save_response(text: str, save_name: str, settings: Settings) -> Path:
    """Write the final response text to ``<messages_dir>/<save_name>_response.txt``."""
    target = settings.messages_dir / f"{save_name}_response.txt"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(text, encoding="utf-8")
    return target


def write_mirror(path: Path, text: str, prefix: str | None = None) -> None:
    """Rewrite the live mirror at *path* with ``prefix + text``."""
    path.write_text((prefix or "") + text, encoding="utf-8")
