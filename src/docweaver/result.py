"""Call results: a success/failure tagged union."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Union

if TYPE_CHECKING:
    from docweaver.continuation import ContinuationState


@dataclass(frozen=True)
class CallSuccess:
    """A completed call.

    ``message`` is the parsed JSON value when a ``json_type`` was requested
    (possibly a best-effort reconstruction of truncated output), otherwise the
    raw completion text.
    """

    message: Any
    output_tokens: int
    input_tokens: int
    #: Terminal continuation state for structured calls; ``None`` for raw text.
    json_state: ContinuationState | None = None
    success: Literal[True] = True


@dataclass(frozen=True)
class CallFailure:
    """A call that failed at the provider or while recovering its output.

    ``rate_limited`` lets callers offer a wait-and-retry choice instead of a
    plain skip.
    """

    rate_limited: bool
    error: str
    success: Literal[False] = False


CallResult = Union[CallSuccess, CallFailure]
