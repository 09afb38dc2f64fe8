"""Provider implementations."""

from __future__ import annotations

from docweaver.errors import UnknownProviderError
from docweaver.providers.anthropic import AnthropicProvider
from docweaver.providers.base import Provider
from docweaver.providers.gemini import GeminiProvider
from docweaver.providers.mock import MockProvider
from docweaver.providers.models import Message, ProviderRequest, ProviderResponse
from docweaver.providers.openai import OpenAIProvider

_PROVIDERS: tuple[str, ...] = ("anthropic", "openai", "gemini")


def create_provider(name: str, api_key: str | None = None) -> Provider:
    """Build the adapter for a registry provider tag."""
    if name == "anthropic":
        return AnthropicProvider(api_key)
    if name == "openai":
        return OpenAIProvider(api_key)
    if name == "gemini":
        return GeminiProvider(api_key)
    raise UnknownProviderError(
        name,
        hint=f"Supported providers: {', '.join(_PROVIDERS)}",
    )


__all__ = [
    "AnthropicProvider",
    "GeminiProvider",
    "Message",
    "MockProvider",
    "OpenAIProvider",
    "Provider",
    "ProviderRequest",
    "ProviderResponse",
    "create_provider",
]
