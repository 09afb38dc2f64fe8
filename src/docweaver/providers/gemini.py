"""Gemini provider implementation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docweaver.errors import APIError
from docweaver.providers.models import ProviderResponse
from docweaver.shaping import shape_output
from docweaver.stream import StreamState
from docweaver.tokens import DEFAULT_ENCODING, count_text_tokens

if TYPE_CHECKING:
    from docweaver.models import ModelInfo
    from docweaver.providers.models import ProviderRequest

logger = logging.getLogger(__name__)

_FLUSH_THRESHOLD = 200


class GeminiProvider:
    """Google Gemini API provider."""

    name = "gemini"

    def __init__(self, api_key: str | None = None) -> None:
        """Create provider with an API key."""
        self.api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazy-initialize the Gemini client."""
        if self._client is None:
            try:
                from google import genai
            except ImportError as e:
                raise APIError(
                    "google-genai package not installed",
                    hint="pip install google-genai",
                ) from e
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    @staticmethod
    def _build_contents(request: ProviderRequest) -> tuple[list[dict[str, Any]], str]:
        """Gemini contents plus the merged system instruction."""
        contents: list[dict[str, Any]] = []
        system_parts = [request.system_prompt] if request.system_prompt else []
        for message in request.messages:
            if message.role == "system":
                if message.content:
                    system_parts.append(message.content)
                continue
            role = "model" if message.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": message.content}]})
        return contents, "\n\n".join(system_parts)

    async def stream(self, request: ProviderRequest) -> ProviderResponse:
        """Stream content from the Gemini model."""
        client = self._get_client()
        contents, system_instruction = self._build_contents(request)

        config: dict[str, Any] = {"max_output_tokens": request.max_output_tokens}
        if system_instruction:
            config["system_instruction"] = system_instruction
        if request.json_type:
            config["response_mime_type"] = "application/json"

        logger.info("Calling gemini model=%s", request.model)
        state = StreamState.for_request(request, default_threshold=_FLUSH_THRESHOLD)
        chunks = await client.aio.models.generate_content_stream(
            model=request.model, contents=contents, config=config
        )
        state.announce(request.model)

        async for chunk in chunks:
            state.add(_chunk_text(chunk))
            usage = getattr(chunk, "usage_metadata", None)
            if usage is not None:
                # Gemini reports running totals on every chunk.
                state.set_usage(
                    input_tokens=_int_or_none(getattr(usage, "prompt_token_count", None)),
                    output_tokens=_int_or_none(
                        getattr(usage, "candidates_token_count", None)
                    ),
                )

        text = shape_output(state.text, request.json_type, seed=None)
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
        aclose = getattr(client.aio, "aclose", None)
        if callable(aclose):
            await aclose()


def _chunk_text(chunk: Any) -> str:
    """Concatenate the text parts of a streamed chunk, skipping thoughts."""
    pieces: list[str] = []
    for candidate in getattr(chunk, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            if getattr(part, "thought", False) is True:
                continue
            text = getattr(part, "text", None)
            if isinstance(text, str):
                pieces.append(text)
    return "".join(pieces)


def _int_or_none(value: Any) -> int | None:
    return value if isinstance(value, int) else None
