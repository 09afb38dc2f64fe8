"""OpenAI Chat Completions streaming provider."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docweaver.errors import APIError
from docweaver.persistence import write_mirror
from docweaver.providers.models import ProviderResponse
from docweaver.shaping import ARRAY_WRAPPER_INSTRUCTION, shape_output, unwrap_array_wrapper
from docweaver.stream import StreamState
from docweaver.tokens import count_text_tokens

if TYPE_CHECKING:
    from docweaver.models import ModelInfo
    from docweaver.providers.models import ProviderRequest

logger = logging.getLogger(__name__)

_FLUSH_THRESHOLD = 5000


class OpenAIProvider:
    """OpenAI Chat Completions provider.

    JSON mode only ever returns objects, so array requests ask the model to
    wrap the array under a single key and the wrapper is removed afterwards.
    """

    name = "openai"

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize with an API key (``None`` defers to the SDK's env lookup)."""
        self.api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the OpenAI client."""
        if self._client is None:
            try:
                from openai import AsyncOpenAI
            except ImportError as e:
                raise APIError(
                    "openai package not installed",
                    hint="pip install openai",
                ) from e
            self._client = AsyncOpenAI(api_key=self.api_key) if self.api_key else AsyncOpenAI()
        return self._client

    @staticmethod
    def _build_messages(request: ProviderRequest) -> list[dict[str, str]]:
        """Wire messages with the system prompt synthesized as a leading turn."""
        messages = [m.to_dict() for m in request.messages]
        system = request.system_prompt or ""
        if request.json_type == "start_array":
            system += ARRAY_WRAPPER_INSTRUCTION
        if system:
            messages.insert(0, {"role": "system", "content": system})
        return messages

    async def stream(self, request: ProviderRequest) -> ProviderResponse:
        """Stream a chat completion."""
        client = self._get_client()
        create_kwargs: dict[str, Any] = {
            "model": request.model,
            "messages": self._build_messages(request),
            "max_tokens": request.max_output_tokens,
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        if request.json_type:
            create_kwargs["response_format"] = {"type": "json_object"}

        logger.info("Calling openai model=%s", request.model)
        state = StreamState.for_request(request, default_threshold=_FLUSH_THRESHOLD)
        chunks = await client.chat.completions.create(**create_kwargs)
        state.announce(request.model)

        async for chunk in chunks:
            usage = getattr(chunk, "usage", None)
            if usage is not None:
                state.add_usage(
                    input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                    output_tokens=getattr(usage, "completion_tokens", 0) or 0,
                )
            pieces = []
            for choice in getattr(chunk, "choices", None) or []:
                delta = getattr(choice, "delta", None)
                content = getattr(delta, "content", None)
                if content:
                    pieces.append(content)
            state.add("".join(pieces))

        if request.json_type == "start_array":
            text = unwrap_array_wrapper(state.text)
            if request.save_to_filepath is not None:
                write_mirror(request.save_to_filepath, text, request.prefix)
        else:
            text = shape_output(state.text, request.json_type, seed=None)
        return ProviderResponse(
            text=text,
            input_tokens=state.input_tokens,
            output_tokens=state.output_tokens,
        )

    def count_tokens(self, text: str, model: str, info: ModelInfo) -> int:
        """Count tokens with tiktoken, honouring the registry's tokenizer override."""
        return count_text_tokens(text, info.token_counting_model or model)

    async def aclose(self) -> None:
        """Close underlying async client resources."""
        client = self._client
        if client is None:
            return
        self._client = None
        await client.close()
