"""Failure classification for the call facade.

Rate limits are detected by sniffing the error text, which is coarse but works
across SDKs that word their errors differently. A 429 status anywhere in the
exception chain is treated the same way.
"""

from __future__ import annotations

from docweaver.errors import RateLimitError, _walk_exception_chain

_RATE_LIMIT_MARKERS = ("rate limit", "ratelimit")


def extract_status_code(exc: BaseException) -> int | None:
    """Walk the exception chain to find an HTTP status code."""
    for e in _walk_exception_chain(exc):
        for attr in ("status_code", "status"):
            value = getattr(e, attr, None)
            if isinstance(value, int) and 100 <= value <= 599:
                return value
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int) and 100 <= value <= 599:
            return value
    return None


def is_rate_limited(exc: BaseException) -> bool:
    """Return True when *exc* looks like a provider rate-limit failure."""
    for e in _walk_exception_chain(exc):
        if isinstance(e, RateLimitError):
            return True
        text = f"{type(e).__name__}: {e}".lower()
        if any(marker in text for marker in _RATE_LIMIT_MARKERS):
            return True
    return extract_status_code(exc) == 429
