"""Text tokenization shared by document indexing and query parsing."""

from __future__ import annotations

import re

_SPLIT_RE = re.compile(r"[^a-z0-9]+")


def tokenize(text: str) -> list[str]:
    """
    Normalize text into an ordered list of terms.

    Lowercases, splits on any run of characters outside [a-z0-9] and drops
    empty tokens. Documents and queries must go through this same function
    for BM25 statistics to line up.
    """
    return [token for token in _SPLIT_RE.split(text.lower()) if token]


__all__ = ["tokenize"]
