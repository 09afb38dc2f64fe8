"""Post-processing of streamed text according to ``json_type``."""

from __future__ import annotations

import json
import re
from typing import Any

FENCE = "```"

_SEEDS: dict[str, str] = {"start_object": "{", "start_array": "["}
_FENCED_JSON_RE = re.compile(r"```json([\s\S]*?)```")

ARRAY_WRAPPER_KEY = "results"
ARRAY_WRAPPER_INSTRUCTION = (
    "\n\nPlease wrap the returned array in a JSON object with a key of "
    f"'{ARRAY_WRAPPER_KEY}' to ensure proper parsing. Eg: structure the returned "
    f'object as `{{ "{ARRAY_WRAPPER_KEY}": [ ... ]}}`'
)
_WRAPPER_PREFIX_RE = re.compile(r'^\s*\{\s*"[^"]*"\s*:\s*(?=\[)')


def seed_for(json_type: str | None) -> str | None:
    """Opening bracket used to seed the assistant turn, if any."""
    if json_type is None:
        return None
    return _SEEDS.get(json_type)


def cut_at_fence(text: str) -> str:
    """Drop everything from the first code-fence marker onwards."""
    return text.split(FENCE, 1)[0]


def extract_fenced_json(text: str) -> str:
    """Return the body of the first ```json block, or *text* when there is none."""
    match = _FENCED_JSON_RE.search(text)
    if match is None:
        return text
    return match.group(1).strip()


def shape_output(text: str, json_type: str | None, *, seed: str | None) -> str:
    """Apply the ``json_type`` post-processing to accumulated stream text.

    *seed* is the bracket the adapter prefilled, or ``None`` when the provider
    could not be seeded; in that case a fence-wrapped answer is unwrapped
    instead of being cut.
    """
    if json_type in _SEEDS:
        if seed is None:
            return extract_fenced_json(text)
        return cut_at_fence(seed + text)
    if json_type == "parse":
        return extract_fenced_json(text)
    return text


def _dumps_compact(value: Any) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def unwrap_array_wrapper(text: str) -> str:
    """Undo the single-key object wrapping used where JSON mode cannot emit arrays.

    A one-key object yields that key's value; an object with several keys
    yields the list of its values. Text that does not parse (a truncated
    stream) loses the wrapper prefix textually so the inner array can still be
    repaired or continued.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        match = _WRAPPER_PREFIX_RE.match(text)
        return text[match.end() :] if match else text
    if isinstance(data, dict):
        if len(data) == 1:
            return _dumps_compact(next(iter(data.values())))
        return _dumps_compact(list(data.values()))
    return _dumps_compact(data)
