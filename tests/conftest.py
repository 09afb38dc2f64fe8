"""Pytest configuration and fixtures.

Provides environment isolation, an offline tokenizer, logging configuration,
and automatic API test skipping. All fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os

import pytest

from docweaver.config import Settings

# Registry models used across the suite.
ANTHROPIC_MODEL = "claude-3-5-sonnet-20240620"
OPENAI_MODEL = "gpt-4o"
GEMINI_MODEL = "gemini-1.5-flash"

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class WordTokenizer:
    """tiktoken stand-in: one token per whitespace-separated word."""

    requested: list[str] = field(default_factory=list)

    def __call__(self, tokenizer: str) -> WordTokenizer:
        self.requested.append(tokenizer)
        return self

    def encode(self, text: str, disallowed_special: tuple[str, ...] = ()) -> list[str]:
        del disallowed_special
        return text.split()


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_provider_env(request, monkeypatch):
    """Ensure a clean provider environment for each test.

    Clears ANTHROPIC_*, OPENAI_* and GEMINI_* env vars to prevent test pollution.
    Opt-out: @pytest.mark.allow_env_pollution or @pytest.mark.api
    """
    if request.node.get_closest_marker("allow_env_pollution") or (
        "api" in request.node.keywords
    ):
        return

    for key in list(os.environ.keys()):
        if key.startswith(("ANTHROPIC_", "OPENAI_", "GEMINI_")):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def offline_tokenizer(monkeypatch) -> WordTokenizer:
    """Replace tiktoken encodings so token counts never download vocabularies."""
    fake = WordTokenizer()
    monkeypatch.setattr("docweaver.tokens._encoding", fake)
    return fake


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings rooted in a per-test working directory."""
    return Settings(workdir=tmp_path)


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


# =============================================================================
# Pytest Hooks
# =============================================================================

API_TESTS_REASON = "API tests require ENABLE_API_TESTS=1"


def _api_tests_enabled() -> bool:
    return bool(os.getenv("ENABLE_API_TESTS"))


def pytest_collection_modifyitems(items):
    """Automatically skip API tests when not explicitly enabled."""
    if _api_tests_enabled():
        return
    skip_api = pytest.mark.skip(reason=API_TESTS_REASON)
    for item in items:
        if "api" in item.keywords:
            item.add_marker(skip_api)
