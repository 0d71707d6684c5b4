"""Byte-based token estimation for context budgeting."""

from __future__ import annotations

import math

# Rough ratio of tokens to bytes for source code and prose
TOKENS_PER_BYTE = 0.75


def estimate_tokens(byte_size: int) -> int:
    """
    Estimate the token cost of ``byte_size`` bytes of text.

    This is a heuristic, not a tokenizer. Callers treat the result as a
    soft limit.
    """
    return math.ceil(byte_size * TOKENS_PER_BYTE)


def fits_budget(byte_size: int, max_tokens: int) -> bool:
    """Check whether ``byte_size`` bytes stay within ``max_tokens``."""
    return estimate_tokens(byte_size) <= max_tokens


__all__ = ["TOKENS_PER_BYTE", "estimate_tokens", "fits_budget"]
