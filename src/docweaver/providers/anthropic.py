"""Anthropic Messages API streaming provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docweaver.errors import APIError
from docweaver.providers.models import ProviderResponse
from docweaver.shaping import seed_for, shape_output
from docweaver.stream import StreamState
from docweaver.tokens import DEFAULT_ENCODING, count_text_tokens

if TYPE_CHECKING:
    from docweaver.models import ModelInfo
    from docweaver.providers.models import Message, ProviderRequest

logger = logging.getLogger(__name__)

_FLUSH_THRESHOLD = 5000


class AnthropicProvider:
    """Anthropic Messages API provider."""

    name = "anthropic"

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize with an API key (``None`` defers to the SDK's env lookup)."""
        self.api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the async Anthropic client."""
        if self._client is None:
            try:
                from anthropic import AsyncAnthropic
            except ImportError as e:
                raise APIError(
                    "anthropic package not installed",
                    hint="pip install anthropic",
                ) from e
            self._client = (
                AsyncAnthropic(api_key=self.api_key) if self.api_key else AsyncAnthropic()
            )
        return self._client

    @staticmethod
    def _build_messages(
        messages: tuple[Message, ...], seed: str | None
    ) -> tuple[list[dict[str, Any]], list[str]]:
        """Split system turns out and merge consecutive same-role turns.

        Anthropic takes the system prompt as a request field and requires
        strict user/assistant alternation.
        """
        wire: list[dict[str, Any]] = []
        system_parts: list[str] = []
        for message in messages:
            if message.role == "system":
                if message.content:
                    system_parts.append(message.content)
                continue
            _append_message(wire, {"role": message.role, "content": message.content})
        if seed is not None:
            _append_message(wire, {"role": "assistant", "content": seed})
        return wire, system_parts

    async def stream(self, request: ProviderRequest) -> ProviderResponse:
        """Stream a completion from the Messages API."""
        client = self._get_client()
        seed = seed_for(request.json_type)
        messages, system_parts = self._build_messages(request.messages, seed)
        if request.system_prompt:
            system_parts.insert(0, request.system_prompt)

        create_kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": messages,
            "max_tokens": request.max_output_tokens,
            "stream": True,
        }
        if system_parts:
            create_kwargs["system"] = "\n\n".join(system_parts)

        logger.info("Calling anthropic model=%s", request.model)
        state = StreamState.for_request(request, default_threshold=_FLUSH_THRESHOLD)
        events = await client.messages.create(**create_kwargs)
        state.announce(request.model)

        async for event in events:
            event_type = getattr(event, "type", None)
            if event_type == "message_start":
                usage = getattr(getattr(event, "message", None), "usage", None)
                state.add_usage(input_tokens=_int_attr(usage, "input_tokens"))
            elif event_type == "content_block_start":
                block = getattr(event, "content_block", None)
                if getattr(block, "type", None) == "text":
                    state.add(getattr(block, "text", "") or "")
            elif event_type == "content_block_delta":
                delta = getattr(event, "delta", None)
                if getattr(delta, "type", None) == "text_delta":
                    state.add(getattr(delta, "text", "") or "")
            elif event_type == "message_delta":
                usage = getattr(event, "usage", None)
                state.add_usage(output_tokens=_int_attr(usage, "output_tokens"))

        text = shape_output(state.text, request.json_type, seed=seed)
        return ProviderResponse(
            text=text,
            input_tokens=state.input_tokens,
            output_tokens=state.output_tokens,
        )

    def count_tokens(self, text: str, model: str, info: ModelInfo) -> int:
        """Count tokens with the model's surrogate tokenizer."""
        _ = model
        return count_text_tokens(text, info.token_counting_model or DEFAULT_ENCODING)

    async def aclose(self) -> None:
        """Close underlying async client resources."""
        client = self._client
        if client is None:
            return
        self._client = None
        await client.close()


def _int_attr(obj: Any, name: str) -> int:
    value = getattr(obj, name, None)
    return value if isinstance(value, int) else 0


def _append_message(messages: list[dict[str, Any]], msg: dict[str, Any]) -> None:
    """Append *msg*, merging into the previous message when roles match."""
    if messages and messages[-1]["role"] == msg["role"]:
        prev = messages[-1]
        prev_content = prev["content"]
        new_content = msg["content"]
        # Normalize both sides to list-of-blocks for merging.
        if isinstance(prev_content, str):
            prev_content = [{"type": "text", "text": prev_content}]
        if isinstance(new_content, str):
            new_content = [{"type": "text", "text": new_content}]
        prev["content"] = prev_content + new_content
    else:
        messages.append(msg)
