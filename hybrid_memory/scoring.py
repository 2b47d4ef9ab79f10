"""
Per-entry signal scorers: vector similarity and recency decay.

Importance needs no scorer; the entry's importance is used directly.
"""

from __future__ import annotations

import math
import time
from collections.abc import Callable, Sequence

SECONDS_PER_DAY = 24 * 60 * 60


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """
    Cosine similarity between two vectors.

    Returns 0.0 when either vector is empty, the lengths differ, or either
    vector has zero magnitude.
    """
    if not vec1 or not vec2 or len(vec1) != len(vec2):
        return 0.0

    dot_product = sum(a * b for a, b in zip(vec1, vec2))
    mag1 = math.sqrt(sum(a * a for a in vec1))
    mag2 = math.sqrt(sum(b * b for b in vec2))

    if mag1 == 0 or mag2 == 0:
        return 0.0

    # Rounding can push |cos| a hair past 1
    return max(-1.0, min(1.0, dot_product / (mag1 * mag2)))


class RecencyScorer:
    """
    Temporal decay: 1 / (1 + decay_factor * days_since(timestamp)).

    "Now" is read from the clock at scoring time, so the same entry scores
    lower on later searches. Timestamps in the future are treated as age 0.
    """

    def __init__(
        self,
        decay_factor: float = 0.1,
        clock: Callable[[], float] = time.time,
    ):
        self.decay_factor = decay_factor
        self.clock = clock

    def days_since(self, timestamp: float, now: float | None = None) -> float:
        if now is None:
            now = self.clock()
        return max(0.0, (now - timestamp) / SECONDS_PER_DAY)

    def score(self, timestamp: float, now: float | None = None) -> float:
        return 1.0 / (1.0 + self.decay_factor * self.days_since(timestamp, now))


__all__ = ["SECONDS_PER_DAY", "RecencyScorer", "cosine_similarity"]
