"""Call facade: one streamed LLM call with structured-output recovery."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any

from docweaver.config import resolve_api_key
from docweaver.continuation import resolve_json
from docweaver.models import DEFAULT_REGISTRY
from docweaver.persistence import save_messages, save_response, write_mirror
from docweaver.providers import create_provider
from docweaver.providers._errors import is_rate_limited
from docweaver.providers.models import Message, ProviderRequest
from docweaver.result import CallFailure, CallSuccess

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from docweaver.models import ModelRegistry
    from docweaver.options import CallOptions
    from docweaver.providers.base import Provider
    from docweaver.result import CallResult

logger = logging.getLogger(__name__)


async def call_llm(
    messages: Sequence[Message | Mapping[str, Any]],
    options: CallOptions,
    *,
    provider: Provider | None = None,
    registry: ModelRegistry | None = None,
) -> CallResult:
    """Run one streamed completion and return a tagged result.

    Args:
        messages: Conversation turns; a trailing assistant turn is continued.
        options: Model, limits, structured-output mode and debug persistence.
        provider: Adapter to use instead of the registry's provider. Not closed
            by this call.
        registry: Model table; defaults to the built-in registry.

    Returns:
        ``CallSuccess`` with the parsed value (``json_type`` set) or raw text,
        or ``CallFailure`` for provider errors and unrepairable output.

    Raises:
        UnknownModelError: ``options.model`` is not registered.
        UnknownProviderError: The registry names a provider with no adapter.

    Example:
        result = await call_llm(
            [{"role": "user", "content": "Outline this transcript: ..."}],
            CallOptions(model="gpt-4o", json_type="start_object"),
        )
        if result.success:
            outline = result.message
    """
    registry = DEFAULT_REGISTRY if registry is None else registry
    info = registry.lookup(options.model)
    owns_provider = provider is None
    if provider is None:
        provider = create_provider(
            info.provider, resolve_api_key(info.provider, options.api_key)
        )

    limit = info.output_token_limit
    max_output = min(limit, options.max_output_tokens or limit)
    turns = [Message.coerce(m) for m in messages]

    try:
        return await _run(turns, options, provider, registry, max_output)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        rate_limited = is_rate_limited(exc)
        logger.warning(
            "Call to %s failed (rate_limited=%s): %s",
            options.model,
            rate_limited,
            exc,
        )
        return CallFailure(rate_limited=rate_limited, error=str(exc))
    finally:
        if owns_provider:
            await _close_provider(provider)


async def _run(
    turns: list[Message],
    options: CallOptions,
    provider: Provider,
    registry: ModelRegistry,
    max_output: int,
) -> CallResult:
    if options.save_name:
        save_messages(turns, options.save_name, options.settings)

    if turns and turns[-1].role == "assistant":
        turns[-1] = Message(role="assistant", content=turns[-1].content.rstrip())

    request = ProviderRequest(
        model=options.model,
        messages=tuple(turns),
        max_output_tokens=max_output,
        system_prompt=options.system_prompt,
        json_type=options.json_type,
        stream_to_console=options.stream_to_console,
        save_to_filepath=options.save_to_filepath,  # type: ignore[arg-type]
        prefix=options.prefix,
        flush_threshold=options.flush_threshold,
    )
    response = await provider.stream(request)
    if options.stream_to_console:
        sys.stdout.write("\n\n")

    message: Any = response.text
    text = response.text
    input_tokens = response.input_tokens
    output_tokens = response.output_tokens
    json_state = None

    if options.json_type:

        async def invoke(nested: list[Message], nested_options: CallOptions) -> CallResult:
            return await call_llm(
                nested, nested_options, provider=provider, registry=registry
            )

        outcome = await resolve_json(
            response.text, messages=turns, options=options, invoke=invoke
        )
        message = outcome.value
        text = outcome.text
        input_tokens += outcome.input_tokens
        output_tokens += outcome.output_tokens
        json_state = outcome.state

    if options.save_name:
        save_response(text, options.save_name, options.settings)
    if options.save_to_filepath is not None:
        write_mirror(options.save_to_filepath, text, options.prefix)  # type: ignore[arg-type]

    logger.debug(
        "Call to %s finished: %d input / %d output tokens",
        options.model,
        input_tokens,
        output_tokens,
    )
    return CallSuccess(
        message=message,
        output_tokens=output_tokens,
        input_tokens=input_tokens,
        json_state=json_state,
    )


async def _close_provider(provider: Provider) -> None:
    aclose = getattr(provider, "aclose", None)
    if callable(aclose):
        try:
            await aclose()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            # Cleanup should never mask the primary result.
            logger.warning("Provider cleanup failed: %s", exc)
