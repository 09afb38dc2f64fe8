"""Per-call options for ``call_llm``."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, get_args

from docweaver.config import Settings
from docweaver.errors import ConfigurationError

#: How structured output is requested and extracted.
#:
#: - ``parse``: pull the first fenced ```json block out of free text.
#: - ``start_object`` / ``start_array``: seed the assistant turn with ``{`` / ``[``.
JsonType = Literal["parse", "start_object", "start_array"]

_JSON_TYPES: tuple[str, ...] = get_args(JsonType)


@dataclass(frozen=True)
class CallOptions:
    """Options for a single facade call.

    Only ``model`` is required. Persistence fields (``save_name``,
    ``save_to_filepath``, ``prefix``) write debugging artifacts and never
    change the returned result.
    """

    model: str
    #: Clamped to the model's registered output ceiling; ``None`` uses the ceiling.
    max_output_tokens: int | None = None
    #: Falls back to the provider's environment variable when *None*.
    api_key: str | None = field(default=None, repr=False)
    stream_to_console: bool = False
    system_prompt: str | None = None
    json_type: JsonType | None = None
    #: Backup name under ``<workdir>/.docweaver/messages``.
    save_name: str | None = None
    #: Live mirror of the streamed text, rewritten as it grows.
    save_to_filepath: Path | str | None = None
    #: Written ahead of the streamed text in the live mirror.
    prefix: str | None = None
    #: Allow one continuation call when structured output comes back truncated.
    continue_on_partial_json: bool = False
    #: Characters streamed between mirror rewrites; ``None`` uses the adapter default.
    flush_threshold: int | None = None
    settings: Settings = field(default_factory=Settings)

    def __post_init__(self) -> None:
        """Validate option shapes early for clear errors."""
        if not isinstance(self.model, str) or not self.model:
            raise ConfigurationError(
                "model must be a non-empty string",
                hint="Pass a model id from the registry, e.g. model='gpt-4o'.",
            )
        if self.max_output_tokens is not None and (
            not isinstance(self.max_output_tokens, int) or self.max_output_tokens <= 0
        ):
            raise ConfigurationError(
                "max_output_tokens must be a positive integer",
                hint="Omit it to use the model's output ceiling.",
            )
        if self.json_type is not None and self.json_type not in _JSON_TYPES:
            raise ConfigurationError(
                f"Unknown json_type: {self.json_type!r}",
                hint=f"Use one of: {', '.join(_JSON_TYPES)}, or None for raw text.",
            )
        if self.flush_threshold is not None and self.flush_threshold < 0:
            raise ConfigurationError(
                "flush_threshold must be >= 0",
                hint="0 rewrites the mirror on every streamed delta.",
            )
        if self.save_to_filepath is not None and not isinstance(
            self.save_to_filepath, Path
        ):
            object.__setattr__(self, "save_to_filepath", Path(self.save_to_filepath))
