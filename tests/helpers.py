"""Test helpers (small, reusable doubles).

Fake SDK clients expose just the attribute paths the adapters call and record
the keyword arguments they receive. Stream items are ``SimpleNamespace``
objects shaped like the SDK event types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import SimpleNamespace
from typing import Any


class AsyncStream:
    """Async iterator over a fixed list of stream items."""

    def __init__(self, items: list[Any]) -> None:
        self._items = list(items)

    def __aiter__(self) -> AsyncStream:
        return self

    async def __anext__(self) -> Any:
        if not self._items:
            raise StopAsyncIteration
        return self._items.pop(0)


@dataclass
class RecordingCreate:
    """Async callable standing in for ``client....create``."""

    items: list[Any]
    calls: list[dict[str, Any]] = field(default_factory=list)

    async def __call__(self, **kwargs: Any) -> AsyncStream:
        self.calls.append(kwargs)
        return AsyncStream(self.items)

    @property
    def kwargs(self) -> dict[str, Any]:
        return self.calls[-1]


@dataclass
class ClosableClient:
    closed: bool = False

    async def close(self) -> None:
        self.closed = True


# =============================================================================
# Anthropic
# =============================================================================


def anthropic_events(
    deltas: list[str], *, input_tokens: int = 12, output_tokens: int = 7
) -> list[Any]:
    events: list[Any] = [
        SimpleNamespace(
            type="message_start",
            message=SimpleNamespace(usage=SimpleNamespace(input_tokens=input_tokens)),
        ),
        SimpleNamespace(
            type="content_block_start",
            index=0,
            content_block=SimpleNamespace(type="text", text=""),
        ),
    ]
    events.extend(
        SimpleNamespace(
            type="content_block_delta",
            index=0,
            delta=SimpleNamespace(type="text_delta", text=d),
        )
        for d in deltas
    )
    events.append(SimpleNamespace(type="content_block_stop", index=0))
    events.append(
        SimpleNamespace(
            type="message_delta",
            delta=SimpleNamespace(stop_reason="end_turn"),
            usage=SimpleNamespace(output_tokens=output_tokens),
        )
    )
    events.append(SimpleNamespace(type="message_stop"))
    return events


def fake_anthropic_client(events: list[Any]) -> tuple[Any, RecordingCreate]:
    create = RecordingCreate(events)
    client = ClosableClient()
    client.messages = SimpleNamespace(create=create)  # type: ignore[attr-defined]
    return client, create


# =============================================================================
# OpenAI
# =============================================================================


def openai_chunks(
    deltas: list[str], *, prompt_tokens: int = 20, completion_tokens: int = 9
) -> list[Any]:
    chunks: list[Any] = [
        SimpleNamespace(
            choices=[SimpleNamespace(index=0, delta=SimpleNamespace(content=d))],
            usage=None,
        )
        for d in deltas
    ]
    # include_usage sends a final chunk with no choices.
    chunks.append(
        SimpleNamespace(
            choices=[],
            usage=SimpleNamespace(
                prompt_tokens=prompt_tokens, completion_tokens=completion_tokens
            ),
        )
    )
    return chunks


def fake_openai_client(chunks: list[Any]) -> tuple[Any, RecordingCreate]:
    create = RecordingCreate(chunks)
    client = ClosableClient()
    client.chat = SimpleNamespace(  # type: ignore[attr-defined]
        completions=SimpleNamespace(create=create)
    )
    return client, create


# =============================================================================
# Gemini
# =============================================================================


def gemini_chunks(deltas: list[str], *, prompt_tokens: int = 5) -> list[Any]:
    chunks = []
    for i, d in enumerate(deltas, start=1):
        part = SimpleNamespace(text=d, thought=None)
        chunks.append(
            SimpleNamespace(
                candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part]))],
                usage_metadata=SimpleNamespace(
                    prompt_token_count=prompt_tokens, candidates_token_count=i
                ),
            )
        )
    return chunks


def fake_gemini_client(chunks: list[Any]) -> tuple[Any, RecordingCreate]:
    create = RecordingCreate(chunks)
    client = SimpleNamespace(
        aio=SimpleNamespace(models=SimpleNamespace(generate_content_stream=create))
    )
    return client, create
