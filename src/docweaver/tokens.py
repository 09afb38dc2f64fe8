"""Local token counting with tiktoken.

Only OpenAI publishes its tokenizers, so other providers count with a
surrogate encoding. Estimates for those models are approximate.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Any

import tiktoken

#: Surrogate used when a model declares no tokenizer of its own.
DEFAULT_ENCODING = "cl100k_base"


@lru_cache(maxsize=16)
def _encoding(tokenizer: str) -> Any:
    """Resolve a tiktoken model name or encoding name, else the default encoding."""
    try:
        return tiktoken.encoding_for_model(tokenizer)
    except KeyError:
        pass
    try:
        return tiktoken.get_encoding(tokenizer)
    except ValueError:
        return tiktoken.get_encoding(DEFAULT_ENCODING)


def count_text_tokens(text: str, tokenizer: str = DEFAULT_ENCODING) -> int:
    """Number of tokens *tokenizer* produces for *text*."""
    if not text:
        return 0
    return len(_encoding(tokenizer).encode(text, disallowed_special=()))
