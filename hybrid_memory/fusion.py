"""
Reciprocal Rank Fusion over the four retrieval signals.

Signals are fused on rank position, not raw magnitude: BM25 is unbounded,
cosine lies in [-1, 1], recency and importance in [0, 1].
"""

from __future__ import annotations

import logging

from .config import RRFConfig
from .types import SIGNALS, SearchResult

logger = logging.getLogger(__name__)


class RankFusion:
    """
    Combine per-signal rankings into one score per candidate.

    For each signal the candidates are ordered by raw score, descending, and
    each candidate earns weight / (position + k) where position is 0-based.
    Sorting is stable, so ties keep the order the candidates were given in.
    """

    def __init__(self, config: RRFConfig | None = None):
        self.config = config or RRFConfig()

    @property
    def k(self) -> float:
        return self.config.k

    def signal_positions(self, candidates: list[SearchResult], signal: str) -> list[int]:
        """0-based position of each candidate in the ranking for one signal."""
        order = sorted(
            range(len(candidates)),
            key=lambda i: candidates[i].scores.get(signal),
            reverse=True,
        )
        positions = [0] * len(candidates)
        for position, index in enumerate(order):
            positions[index] = position
        return positions

    def fuse(self, candidates: list[SearchResult], limit: int | None = None) -> list[SearchResult]:
        """
        Fill in combined scores and ranks, returning the top results.

        Args:
            candidates: Results with raw bm25/vector/recency/importance scores
            limit: Maximum results to return (all when None)

        Returns:
            Candidates sorted by combined score, ranked 1..N, truncated to limit
        """
        if not candidates:
            return []

        weights = self.config.weights.as_dict()
        k = self.config.k
        combined = [0.0] * len(candidates)

        for signal in SIGNALS:
            weight = weights[signal]
            for index, position in enumerate(self.signal_positions(candidates, signal)):
                combined[index] += weight * (1.0 / (position + k))

        for result, score in zip(candidates, combined):
            result.scores.combined = score

        ranked = sorted(candidates, key=lambda r: r.scores.combined, reverse=True)
        for rank, result in enumerate(ranked, start=1):
            result.rank = rank

        if limit is not None:
            ranked = ranked[: max(limit, 0)]

        logger.debug("Fused %d candidates into %d results", len(candidates), len(ranked))
        return ranked


__all__ = ["RankFusion"]
