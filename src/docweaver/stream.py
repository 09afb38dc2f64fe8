"""Per-call stream bookkeeping: text, usage and debounced mirror writes."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import sys
from typing import TYPE_CHECKING, TextIO

from docweaver.persistence import write_mirror

if TYPE_CHECKING:
    from pathlib import Path

    from docweaver.providers.models import ProviderRequest

logger = logging.getLogger(__name__)

#: Characters streamed between mirror rewrites when the adapter sets no default.
DEFAULT_FLUSH_THRESHOLD = 5000


@dataclass
class StreamState:
    """Accumulates one streamed completion.

    Created when a provider call starts and dropped when it ends; never shared
    between calls. Mirror writes rewrite the whole file once more than
    ``flush_threshold`` characters have arrived since the previous write.
    """

    save_to_filepath: Path | None = None
    prefix: str | None = None
    flush_threshold: int = DEFAULT_FLUSH_THRESHOLD
    stream_to_console: bool = False
    console: TextIO | None = None
    input_tokens: int = 0
    output_tokens: int = 0
    unflushed: int = 0
    flushes: int = 0
    _parts: list[str] = field(default_factory=list, repr=False)

    @classmethod
    def for_request(
        cls, request: ProviderRequest, *, default_threshold: int = DEFAULT_FLUSH_THRESHOLD
    ) -> StreamState:
        """Build the state an adapter needs for *request*."""
        threshold = request.flush_threshold
        return cls(
            save_to_filepath=request.save_to_filepath,
            prefix=request.prefix,
            flush_threshold=default_threshold if threshold is None else threshold,
            stream_to_console=request.stream_to_console,
        )

    @property
    def text(self) -> str:
        """Everything streamed so far."""
        return "".join(self._parts)

    def announce(self, model: str) -> None:
        """Print the console header that precedes streamed output."""
        if not self.stream_to_console:
            return
        target = f" to {self.save_to_filepath}" if self.save_to_filepath else ""
        self._write_console(f"\n\nStreaming from {model}{target}: ")

    def add(self, delta: str) -> None:
        """Append a text delta, echoing and flushing as configured."""
        if not delta:
            return
        self._parts.append(delta)
        if self.stream_to_console:
            self._write_console(delta)
        if self.save_to_filepath is not None:
            self.unflushed += len(delta)
            if self.unflushed > self.flush_threshold:
                self.flush()

    def add_usage(self, *, input_tokens: int = 0, output_tokens: int = 0) -> None:
        """Add incremental usage counters."""
        self.input_tokens += input_tokens
        self.output_tokens += output_tokens

    def set_usage(
        self, *, input_tokens: int | None = None, output_tokens: int | None = None
    ) -> None:
        """Overwrite usage counters for providers that report running totals."""
        if input_tokens is not None:
            self.input_tokens = input_tokens
        if output_tokens is not None:
            self.output_tokens = output_tokens

    def flush(self) -> None:
        """Rewrite the mirror file with ``prefix + text``."""
        self.unflushed = 0
        if self.save_to_filepath is None:
            return
        write_mirror(self.save_to_filepath, self.text, self.prefix)
        self.flushes += 1
        logger.debug("Flushed stream mirror %s", self.save_to_filepath)

    def _write_console(self, text: str) -> None:
        out = self.console if self.console is not None else sys.stdout
        out.write(text)
        out.flush()
