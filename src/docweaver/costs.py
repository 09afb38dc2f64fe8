"""Cost estimates and input budgets from registry prices and limits."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docweaver.models import DEFAULT_REGISTRY
from docweaver.providers import create_provider
from docweaver.providers.models import Message

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from docweaver.models import ModelRegistry

logger = logging.getLogger(__name__)

_PER_MILLION = 1_000_000

#: Output-limit multiples reserved for outline and page-writing calls.
OUTLINE_OUTPUT_MULTIPLE = 3
WRITING_OUTPUT_MULTIPLE = 4


def estimate_cost(
    messages: Sequence[Message | Mapping[str, Any]],
    expected_output_tokens: int,
    model: str,
    *,
    registry: ModelRegistry | None = None,
) -> float:
    """Estimated dollar cost of sending *messages* to *model*.

    Message contents are joined with newlines and counted with the model's
    tokenizer (or its registered surrogate), so the figure is approximate for
    providers whose tokenizers are not public.

    Raises:
        UnknownModelError: *model* is not registered.
    """
    registry = DEFAULT_REGISTRY if registry is None else registry
    info = registry.lookup(model)
    text = "\n".join(Message.coerce(m).content for m in messages)
    input_tokens = create_provider(info.provider).count_tokens(text, model, info)
    cost = (
        input_tokens * info.input_tokens_per_m
        + expected_output_tokens * info.output_tokens_per_m
    ) / _PER_MILLION
    logger.debug(
        "Estimated %s: %d input + %d output tokens = $%.4f",
        model,
        input_tokens,
        expected_output_tokens,
        cost,
    )
    return cost


def call_cost(
    input_tokens: int,
    output_tokens: int,
    model: str,
    *,
    registry: ModelRegistry | None = None,
) -> float:
    """Dollar cost of a finished call from its reported usage."""
    registry = DEFAULT_REGISTRY if registry is None else registry
    info = registry.lookup(model)
    return (
        input_tokens * info.input_tokens_per_m + output_tokens * info.output_tokens_per_m
    ) / _PER_MILLION


def primary_source_budget(
    model: str,
    prompt_overhead_tokens: int = 0,
    *,
    registry: ModelRegistry | None = None,
) -> int:
    """Tokens left for the primary source after reserving output room.

    The context window is reduced by room for an outline response, room for a
    page-writing response, and the fixed prompt text. May be negative for
    small-window models.
    """
    registry = DEFAULT_REGISTRY if registry is None else registry
    info = registry.lookup(model)
    out = info.output_token_limit
    return (
        info.total_token_limit
        - OUTLINE_OUTPUT_MULTIPLE * out
        - WRITING_OUTPUT_MULTIPLE * out
        - prompt_overhead_tokens
    )
