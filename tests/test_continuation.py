"""Structured-output recovery: parse, repair, and the single continuation."""

from __future__ import annotations

import pytest

from docweaver.call import call_llm
from docweaver.continuation import (
    ContinuationState,
    continuation_messages,
    continuation_options,
    resolve_json,
)
from docweaver.errors import RepairError
from docweaver.options import CallOptions
from docweaver.providers.mock import MockProvider
from docweaver.providers.models import Message
from docweaver.result import CallFailure, CallSuccess
from tests.conftest import OPENAI_MODEL

pytestmark = pytest.mark.unit

USER = [Message(role="user", content="List the numbers.")]


# =============================================================================
# Through the Call Facade
# =============================================================================


@pytest.mark.asyncio
async def test_truncated_array_is_completed_by_one_continuation() -> None:
    provider = MockProvider(script=[["1,2,3"], [",4,5]"]])
    options = CallOptions(
        model=OPENAI_MODEL, json_type="start_array", continue_on_partial_json=True
    )

    result = await call_llm(USER, options, provider=provider)

    assert isinstance(result, CallSuccess)
    assert result.message == [1, 2, 3, 4, 5]
    assert result.json_state is ContinuationState.PARSED
    assert result.input_tokens == 20
    assert result.output_tokens == 2
    assert provider.calls == 2


@pytest.mark.asyncio
async def test_continuation_request_resubmits_raw_partial_as_assistant_turn() -> None:
    provider = MockProvider(script=[['"a": 1, "b": "tw'], ['o"}']])
    options = CallOptions(
        model=OPENAI_MODEL,
        json_type="start_object",
        continue_on_partial_json=True,
        system_prompt="Answer in JSON.",
    )

    result = await call_llm(USER, options, provider=provider)

    assert result.message == {"a": 1, "b": "two"}
    nested = provider.requests[1]
    assert nested.messages == (
        USER[0],
        Message(role="assistant", content='{"a": 1, "b": "tw'),
    )
    assert nested.json_type is None
    assert nested.system_prompt == "Answer in JSON."


@pytest.mark.asyncio
async def test_continuation_is_never_chained() -> None:
    """A second truncation is accepted as partial, not continued again."""
    provider = MockProvider(script=[["1,2"], [",3"], [",4"]])
    options = CallOptions(
        model=OPENAI_MODEL, json_type="start_array", continue_on_partial_json=True
    )

    result = await call_llm(USER, options, provider=provider)

    assert isinstance(result, CallSuccess)
    assert result.message == [1, 2, 3]
    assert result.json_state is ContinuationState.PARTIAL_ACCEPTED
    assert provider.calls == 2


@pytest.mark.asyncio
async def test_failed_continuation_falls_back_to_repaired_partial() -> None:
    provider = MockProvider(script=[["1,2,"], RuntimeError("connection reset")])
    options = CallOptions(
        model=OPENAI_MODEL, json_type="start_array", continue_on_partial_json=True
    )

    result = await call_llm(USER, options, provider=provider)

    assert isinstance(result, CallSuccess)
    assert result.message == [1, 2]
    assert result.json_state is ContinuationState.PARTIAL_ACCEPTED


@pytest.mark.asyncio
async def test_partial_accepted_without_continuation() -> None:
    provider = MockProvider(script=[["1,2,3"]])
    options = CallOptions(model=OPENAI_MODEL, json_type="start_array")

    result = await call_llm(USER, options, provider=provider)

    assert result.message == [1, 2, 3]
    assert result.json_state is ContinuationState.PARTIAL_ACCEPTED
    assert provider.calls == 1


@pytest.mark.asyncio
async def test_unrepairable_response_becomes_call_failure() -> None:
    provider = MockProvider(script=[["I would rather not."]])
    options = CallOptions(model=OPENAI_MODEL, json_type="parse")

    result = await call_llm(USER, options, provider=provider)

    assert isinstance(result, CallFailure)
    assert result.rate_limited is False


# =============================================================================
# Orchestrator Directly
# =============================================================================


@pytest.mark.asyncio
async def test_nested_exception_is_absorbed_as_failed_state() -> None:
    async def invoke(messages, options):
        raise OSError("socket closed")

    outcome = await resolve_json(
        '{"a": 1, "b": [',
        messages=USER,
        options=CallOptions(model=OPENAI_MODEL, continue_on_partial_json=True),
        invoke=invoke,
    )

    assert outcome.state is ContinuationState.FAILED
    assert outcome.value == {"a": 1, "b": []}


@pytest.mark.asyncio
async def test_nested_failure_result_is_partial_accepted() -> None:
    async def invoke(messages, options):
        return CallFailure(rate_limited=True, error="rate limit")

    outcome = await resolve_json(
        "[1, 2",
        messages=USER,
        options=CallOptions(model=OPENAI_MODEL, continue_on_partial_json=True),
        invoke=invoke,
    )

    assert outcome.state is ContinuationState.PARTIAL_ACCEPTED
    assert outcome.value == [1, 2]


@pytest.mark.asyncio
async def test_unrepairable_splice_keeps_earlier_partial() -> None:
    async def invoke(messages, options):
        return CallSuccess(message="]]}", output_tokens=3, input_tokens=4)

    outcome = await resolve_json(
        "[1, 2",
        messages=USER,
        options=CallOptions(model=OPENAI_MODEL, continue_on_partial_json=True),
        invoke=invoke,
    )

    assert outcome.state is ContinuationState.FAILED
    assert outcome.value == [1, 2]
    assert outcome.output_tokens == 3


@pytest.mark.asyncio
async def test_overly_nested_splice_keeps_earlier_partial() -> None:
    async def invoke(messages, options):
        return CallSuccess(message=", " + "[" * 100_000, output_tokens=1, input_tokens=1)

    outcome = await resolve_json(
        "[1, 2",
        messages=USER,
        options=CallOptions(model=OPENAI_MODEL, continue_on_partial_json=True),
        invoke=invoke,
    )

    assert outcome.state is ContinuationState.FAILED
    assert outcome.value == [1, 2]


@pytest.mark.asyncio
async def test_strict_parse_skips_repair_and_continuation() -> None:
    async def invoke(messages, options):
        raise AssertionError("no continuation expected")

    outcome = await resolve_json(
        '{"a": [1, 2]}',
        messages=USER,
        options=CallOptions(model=OPENAI_MODEL, continue_on_partial_json=True),
        invoke=invoke,
    )

    assert outcome.state is ContinuationState.PARSED
    assert outcome.text == '{\n  "a": [\n    1,\n    2\n  ]\n}'


@pytest.mark.asyncio
async def test_first_response_without_structure_raises() -> None:
    async def invoke(messages, options):
        raise AssertionError("no continuation expected")

    with pytest.raises(RepairError):
        await resolve_json(
            "no json here",
            messages=USER,
            options=CallOptions(model=OPENAI_MODEL, continue_on_partial_json=True),
            invoke=invoke,
        )


# =============================================================================
# Continuation Request Shape
# =============================================================================


def test_trailing_assistant_turn_is_replaced() -> None:
    messages = [*USER, Message(role="assistant", content="[")]
    assert continuation_messages(messages, "[1, 2") == [
        *USER,
        Message(role="assistant", content="[1, 2"),
    ]


def test_trailing_user_turn_is_kept() -> None:
    assert continuation_messages(USER, "[1") == [
        *USER,
        Message(role="assistant", content="[1"),
    ]


def test_continuation_options_disable_further_continuation(tmp_path) -> None:
    options = CallOptions(
        model=OPENAI_MODEL,
        json_type="start_array",
        continue_on_partial_json=True,
        save_name="outline",
        save_to_filepath=tmp_path / "outline.json",
        prefix="// ",
    )

    nested = continuation_options(options, "[1, 2")

    assert nested.continue_on_partial_json is False
    assert nested.json_type is None
    assert nested.save_name == "outline_continuation"
    assert nested.prefix == "// [1, 2"
    assert nested.save_to_filepath == tmp_path / "outline.json"
