"""Best-effort recovery of truncated JSON.

A model stopped by its output-token ceiling leaves JSON cut at an arbitrary
character. ``repair`` keeps every member that was unambiguously finished,
drops the dangling one, and closes whatever containers are still open, in
stack order.

String literals are tracked by toggling on every ``"`` with no escape
awareness. A truncated string holding ``\\"`` can therefore cost the
preceding complete members of the same container.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any

from docweaver.errors import RepairError

_CLOSERS = {"{": "}", "[": "]"}


@dataclass
class _Frame:
    """An open container: its closer, where it opened, and its last comma."""

    closer: str
    start: int
    last_comma: int | None = None


def _open_frames(text: str) -> list[_Frame]:
    """Scan *text* and return the containers still open at its end."""
    frames: list[_Frame] = []
    in_string = False
    for i, ch in enumerate(text):
        if ch == '"':
            in_string = not in_string
        elif in_string:
            continue
        elif ch in _CLOSERS:
            frames.append(_Frame(_CLOSERS[ch], i))
        elif ch in "}]":
            # Pop the nearest frame this closer matches; stray closers are ignored.
            for depth in range(len(frames) - 1, -1, -1):
                if frames[depth].closer == ch:
                    del frames[depth]
                    break
        elif ch == "," and frames:
            frames[-1].last_comma = i
    return frames


def _is_complete_entry(fragment: str, closer: str) -> bool:
    """Whether *fragment* is one finished member/element of its container."""
    if not fragment.strip():
        return False
    wrapped = ("{" if closer == "}" else "[") + fragment + closer
    try:
        json.loads(wrapped)
    except (json.JSONDecodeError, RecursionError):
        return False
    return True


def _drop_incomplete_tail(text: str, frame: _Frame) -> str:
    """Cut the innermost container back to its last finished entry."""
    if frame.last_comma is not None:
        cut = frame.last_comma
        fragment = text[frame.last_comma + 1 :]
    else:
        cut = frame.start + 1
        fragment = text[cut:]
    if _is_complete_entry(fragment, frame.closer):
        return text
    return text[:cut]


def _strip_trailing_comma(text: str) -> str:
    stripped = text.rstrip()
    if stripped.endswith(","):
        return stripped[:-1]
    return text


def close_partial_json(text: str) -> str:
    """Return *text* with its dangling tail removed and open containers closed.

    The result is the string ``repair`` parses; it is exposed for debugging
    and for callers that want to persist the reconstructed document.
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    frames = _open_frames(normalized)
    if not frames:
        return normalized
    repaired = _drop_incomplete_tail(normalized, frames[-1])
    repaired = _strip_trailing_comma(repaired)
    return repaired + "".join(frame.closer for frame in reversed(frames))


def repair(text: str) -> Any:
    """Parse *text* as JSON, reconstructing it first if it was truncated.

    Complete documents are returned as parsed. Raises ``RepairError`` when no
    valid JSON can be recovered, including input nested too deeply to decode.

    Example:
        repair('{"title": "Intro", "sections": [{"title": "Set')
        # {'title': 'Intro', 'sections': [{}]}
    """
    normalized = text.replace("\r\n", "\n").replace("\r", "\n")
    if not normalized.strip():
        raise RepairError("Cannot repair empty text")
    try:
        return json.loads(normalized)
    except (json.JSONDecodeError, RecursionError):
        pass

    candidate = close_partial_json(normalized)
    try:
        return json.loads(candidate)
    except json.JSONDecodeError as e:
        raise RepairError(
            f"Could not recover JSON from truncated text: {e.msg}",
            hint="The response may not be JSON at all; check the saved response text.",
        ) from e
    except RecursionError as e:
        raise RepairError(
            "Could not recover JSON from truncated text: nesting is too deep"
        ) from e
