"""Mock provider for testing and offline runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from docweaver.providers.models import ProviderResponse
from docweaver.shaping import seed_for, shape_output
from docweaver.stream import StreamState
from docweaver.tokens import DEFAULT_ENCODING, count_text_tokens

if TYPE_CHECKING:
    from docweaver.models import ModelInfo
    from docweaver.providers.models import ProviderRequest


@dataclass
class MockProvider:
    """Replays scripted delta streams without network access.

    Each ``stream`` call consumes the next script entry: a list of deltas, a
    single string (one delta), or an exception to raise. With the script
    exhausted it echoes the last user message. Behaves like a prefill-capable
    backend: ``start_object``/``start_array`` seeds are not streamed back and
    are re-attached afterwards.
    """

    script: list[list[str] | str | BaseException] = field(default_factory=list)
    input_tokens: int = 10
    output_tokens_per_delta: int = 1
    requests: list[ProviderRequest] = field(default_factory=list)
    closed: bool = False
    name: str = "mock"

    @property
    def calls(self) -> int:
        """Number of ``stream`` calls made so far."""
        return len(self.requests)

    async def stream(self, request: ProviderRequest) -> ProviderResponse:
        """Stream the next scripted response."""
        self.requests.append(request)
        deltas = self._next_deltas(request)
        seed = seed_for(request.json_type)

        state = StreamState.for_request(request, default_threshold=200)
        state.announce(request.model)
        state.add_usage(input_tokens=self.input_tokens)
        for delta in deltas:
            state.add(delta)
            state.add_usage(output_tokens=self.output_tokens_per_delta)

        return ProviderResponse(
            text=shape_output(state.text, request.json_type, seed=seed),
            input_tokens=state.input_tokens,
            output_tokens=state.output_tokens,
        )

    def _next_deltas(self, request: ProviderRequest) -> list[str]:
        if not self.script:
            last_user = next(
                (m.content for m in reversed(request.messages) if m.role == "user"),
                "",
            )
            return [f"echo: {last_user[:100]}"]
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, str):
            return [item]
        return list(item)

    def count_tokens(self, text: str, model: str, info: ModelInfo) -> int:
        """Count tokens with the default surrogate encoding."""
        _ = model
        return count_text_tokens(text, info.token_counting_model or DEFAULT_ENCODING)

    async def aclose(self) -> None:
        """Mark the provider closed."""
        self.closed = True
