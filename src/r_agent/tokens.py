"""
Token accounting backed by tiktoken.
"""

from functools import lru_cache, partial
from typing import Callable

import tiktoken

DEFAULT_ENCODING = "o200k_base"

TokenCounter = Callable[[str], int]


@lru_cache(maxsize=32)
def get_encoding(model: str) -> tiktoken.Encoding:
    """Get the tokenizer for a model, falling back to o200k_base."""
    try:
        return tiktoken.encoding_for_model(model)
    except KeyError:
        return tiktoken.get_encoding(DEFAULT_ENCODING)


def count_tokens(model: str, text: str) -> int:
    """Count tokens in ``text`` with the tokenizer of ``model``."""
    if not text:
        return 0
    # Special tokens in content count as one token each instead of raising
    return len(get_encoding(model).encode(text, allowed_special="all"))


def token_counter(model: str) -> TokenCounter:
    """Bind ``count_tokens`` to a model."""
    return partial(count_tokens, model)
