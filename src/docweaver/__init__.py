"""docweaver: streaming LLM calls with partial-JSON recovery.

Public API:
    - call_llm(): One streamed completion, returning CallSuccess or CallFailure
    - CallOptions: Per-call model, limits, structured-output mode, persistence
    - repair(): Best-effort JSON value from truncated JSON text
    - estimate_cost(): Dollar estimate for a prompt before sending it
    - run_bounded(): Slot-limited concurrent work queue
"""

from __future__ import annotations

import logging

from docweaver.call import call_llm
from docweaver.config import Settings
from docweaver.continuation import ContinuationState
from docweaver.costs import call_cost, estimate_cost, primary_source_budget
from docweaver.errors import (
    APIError,
    ConfigurationError,
    DocweaverError,
    RateLimitError,
    RepairError,
    UnknownModelError,
    UnknownProviderError,
)
from docweaver.models import DEFAULT_REGISTRY, ModelInfo, ModelRegistry
from docweaver.options import CallOptions, JsonType
from docweaver.providers.models import Message
from docweaver.queue import UnitOutcome, run_bounded
from docweaver.repair import repair
from docweaver.result import CallFailure, CallResult, CallSuccess

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("docweaver")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("docweaver").addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_REGISTRY",
    "APIError",
    "CallFailure",
    "CallOptions",
    "CallResult",
    "CallSuccess",
    "ConfigurationError",
    "ContinuationState",
    "DocweaverError",
    "JsonType",
    "Message",
    "ModelInfo",
    "ModelRegistry",
    "RateLimitError",
    "RepairError",
    "Settings",
    "UnitOutcome",
    "UnknownModelError",
    "UnknownProviderError",
    "call_cost",
    "call_llm",
    "estimate_cost",
    "primary_source_budget",
    "repair",
    "run_bounded",
]
