"""Structured-output recovery: strict parse, repair, and one continuation.

Providers cap output tokens per response, so a long outline can stop in the
middle of a JSON token. The orchestrator parses what arrived, repairs it when
the parse fails and, if allowed, asks the model to carry on from the partial
text by resubmitting it as the trailing assistant turn. The nested call runs
with continuation disabled, so at most one continuation happens per call.

States::

    INITIAL --parse ok--> PARSED
    INITIAL --parse fails, continuation off/used--> PARTIAL_ACCEPTED
    INITIAL --parse fails, continuation on--> CONTINUING
    CONTINUING --nested success--> INITIAL (spliced text)
    CONTINUING --nested CallFailure--> PARTIAL_ACCEPTED
    CONTINUING --nested exception--> FAILED
"""

from __future__ import annotations

from dataclasses import dataclass, replace
import enum
import json
import logging
from typing import TYPE_CHECKING, Any

from docweaver.errors import RepairError
from docweaver.providers.models import Message
from docweaver.repair import repair
from docweaver.result import CallSuccess

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

    from docweaver.options import CallOptions
    from docweaver.result import CallResult

    Invoke = Callable[[list[Message], CallOptions], Awaitable[CallResult]]

logger = logging.getLogger(__name__)


class ContinuationState(enum.Enum):
    """Where the structured-output state machine stands."""

    INITIAL = "initial"
    PARSED = "parsed"
    PARTIAL_ACCEPTED = "partial_accepted"
    CONTINUING = "continuing"
    FAILED = "failed"


@dataclass(frozen=True)
class JsonOutcome:
    """Final structured value plus the extra usage continuation cost."""

    value: Any
    state: ContinuationState
    raw_text: str
    input_tokens: int = 0
    output_tokens: int = 0
    continuations: int = 0

    @property
    def text(self) -> str:
        """Pretty-printed JSON for backups and mirrors."""
        return json.dumps(self.value, indent=2, ensure_ascii=False)


def continuation_messages(messages: Sequence[Message], partial: str) -> list[Message]:
    """Messages that ask the model to continue *partial*.

    A trailing assistant turn (for example a prefill seed) is replaced, any
    other trailing turn is kept and the partial text appended after it.
    """
    base = list(messages)
    if base and base[-1].role == "assistant":
        base = base[:-1]
    return [*base, Message(role="assistant", content=partial)]


def continuation_options(options: CallOptions, partial: str) -> CallOptions:
    """Options for the nested call: raw text, no further continuation.

    The live mirror keeps showing the whole document by folding the partial
    text into the prefix.
    """
    return replace(
        options,
        json_type=None,
        continue_on_partial_json=False,
        save_name=f"{options.save_name}_continuation" if options.save_name else None,
        prefix=(options.prefix or "") + partial
        if options.save_to_filepath is not None
        else options.prefix,
    )


async def resolve_json(
    text: str,
    *,
    messages: Sequence[Message],
    options: CallOptions,
    invoke: Invoke,
) -> JsonOutcome:
    """Turn a structured completion into a JSON value.

    *invoke* is the call facade, used for the continuation request. Raises
    ``RepairError`` when the first response cannot be repaired at all.
    """
    raw = text
    allow_continue = options.continue_on_partial_json
    extra_input = 0
    extra_output = 0
    continuations = 0
    fallback: Any = None
    state = ContinuationState.INITIAL

    while True:
        try:
            value = json.loads(raw)
        except json.JSONDecodeError:
            pass
        else:
            state = ContinuationState.PARSED
            break

        try:
            value = repair(raw)
        except RepairError:
            if continuations == 0:
                raise
            # The spliced text is worse than what we had; keep the earlier partial.
            logger.warning("Continued output could not be repaired; using earlier partial")
            value = fallback
            state = ContinuationState.FAILED
            break

        if not allow_continue:
            state = ContinuationState.PARTIAL_ACCEPTED
            logger.info("Accepted repaired partial JSON (%d chars)", len(raw))
            break

        state = ContinuationState.CONTINUING
        allow_continue = False
        fallback = value
        logger.info("JSON truncated after %d chars; requesting continuation", len(raw))
        try:
            nested = await invoke(
                continuation_messages(messages, raw),
                continuation_options(options, raw),
            )
        except Exception as exc:
            logger.warning("Continuation call raised, keeping partial: %s", exc)
            state = ContinuationState.FAILED
            break

        if not isinstance(nested, CallSuccess):
            logger.warning("Continuation call failed, keeping partial: %s", nested.error)
            state = ContinuationState.PARTIAL_ACCEPTED
            break

        continuations += 1
        raw += str(nested.message)
        extra_input += nested.input_tokens
        extra_output += nested.output_tokens
        state = ContinuationState.INITIAL

    logger.debug("Structured output resolved state=%s", state.value)
    return JsonOutcome(
        value=value,
        state=state,
        raw_text=raw,
        input_tokens=extra_input,
        output_tokens=extra_output,
        continuations=continuations,
    )
