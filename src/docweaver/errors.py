"""Exception hierarchy for docweaver."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class DocweaverError(Exception):
    """Base exception for all docweaver errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(DocweaverError):
    """Options or configuration failed validation."""


class UnknownModelError(ConfigurationError):
    """The requested model id is not in the model registry."""

    def __init__(self, model: str, *, hint: str | None = None) -> None:
        super().__init__(f"Unknown model: {model!r}", hint=hint)
        self.model = model


class UnknownProviderError(ConfigurationError):
    """A registry entry names a provider with no adapter."""

    def __init__(self, provider: str, *, hint: str | None = None) -> None:
        super().__init__(f"Unknown provider: {provider!r}", hint=hint)
        self.provider = provider


class APIError(DocweaverError):
    """Provider call failed.

    Adapters let SDK exceptions propagate untouched; this type exists for code
    that wants to raise a provider failure with metadata attached.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.provider = provider


class RateLimitError(APIError):
    """Rate limit exceeded (HTTP 429)."""


class RepairError(DocweaverError):
    """Text held no structure the partial-JSON parser could recover."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
