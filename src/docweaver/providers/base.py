"""Provider protocol: minimal interface for streaming LLM backends."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from docweaver.models import ModelInfo
    from docweaver.providers.models import ProviderRequest, ProviderResponse


@runtime_checkable
class Provider(Protocol):
    """Minimal provider protocol: stream, count_tokens, aclose.

    Wire quirks (system prompt placement, assistant prefill, array wrapping)
    are private to each adapter.
    """

    name: str

    async def stream(self, request: ProviderRequest) -> ProviderResponse:
        """Stream one completion and return its accumulated text and usage.

        Transport and provider errors propagate unchanged.
        """
        ...

    def count_tokens(self, text: str, model: str, info: ModelInfo) -> int:
        """Count input tokens for cost estimates."""
        ...

    async def aclose(self) -> None:
        """Release client resources."""
        ...
