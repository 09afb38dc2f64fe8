"""Static model registry: provider, limits, prices, tokenizer override."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

from docweaver.errors import UnknownModelError


@dataclass(frozen=True)
class ModelInfo:
    """Per-model facts used for dispatch, clamping and pricing."""

    provider: str
    total_token_limit: int
    output_token_limit: int
    input_tokens_per_m: float
    output_tokens_per_m: float
    #: Surrogate tokenizer id for cost estimates (a tiktoken model or encoding).
    token_counting_model: str | None = None


class ModelRegistry(Mapping[str, ModelInfo]):
    """Read-only lookup table of known models."""

    def __init__(self, entries: Mapping[str, ModelInfo]) -> None:
        self._entries = dict(entries)

    def __getitem__(self, model: str) -> ModelInfo:
        return self._entries[model]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, model: str) -> ModelInfo:
        """Return the entry for *model* or raise ``UnknownModelError``."""
        try:
            return self._entries[model]
        except KeyError:
            known = ", ".join(sorted(self._entries))
            raise UnknownModelError(model, hint=f"Known models: {known}") from None


DEFAULT_REGISTRY = ModelRegistry(
    {
        "claude-3-opus-20240229": ModelInfo(
            provider="anthropic",
            total_token_limit=200_000,
            output_token_limit=4096,
            input_tokens_per_m=15,
            output_tokens_per_m=75,
        ),
        "claude-3-sonnet-20240229": ModelInfo(
            provider="anthropic",
            total_token_limit=200_000,
            output_token_limit=4096,
            input_tokens_per_m=3,
            output_tokens_per_m=15,
        ),
        "claude-3-5-sonnet-20240620": ModelInfo(
            provider="anthropic",
            total_token_limit=200_000,
            output_token_limit=8192,
            input_tokens_per_m=3,
            output_tokens_per_m=15,
        ),
        "claude-3-haiku-20240307": ModelInfo(
            provider="anthropic",
            total_token_limit=200_000,
            output_token_limit=4096,
            input_tokens_per_m=0.25,
            output_tokens_per_m=1.25,
        ),
        "gpt-4o": ModelInfo(
            provider="openai",
            total_token_limit=128_000,
            output_token_limit=4096,
            input_tokens_per_m=5,
            output_tokens_per_m=15,
            # tiktoken lags behind new model names.
            token_counting_model="gpt-4",
        ),
        "gpt-4o-mini": ModelInfo(
            provider="openai",
            total_token_limit=128_000,
            output_token_limit=16_384,
            input_tokens_per_m=0.15,
            output_tokens_per_m=0.6,
            token_counting_model="gpt-4",
        ),
        "gemini-1.5-pro": ModelInfo(
            provider="gemini",
            total_token_limit=2_000_000,
            output_token_limit=8192,
            input_tokens_per_m=3.5,
            output_tokens_per_m=10.5,
        ),
        "gemini-1.5-flash": ModelInfo(
            provider="gemini",
            total_token_limit=1_000_000,
            output_token_limit=8192,
            input_tokens_per_m=0.35,
            output_tokens_per_m=1.05,
        ),
    }
)
