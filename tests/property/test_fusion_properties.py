"""
Property-based tests for rank fusion and the per-signal scorers.

Property tests verify invariants:
- Ranks are 1..n and combined scores are non-increasing
- Combined scores are bounded by sum(weights) / k
- Raising a signal's weight never hurts the candidate uniquely first on it
- Recency lies in (0, 1] and decreases with age
- Cosine similarity lies in [-1, 1]
"""

from __future__ import annotations

import pytest
from hypothesis import assume, given, settings
from hypothesis import strategies as st

from hybrid_memory.config import RRFConfig, SignalWeights
from hybrid_memory.fusion import RankFusion
from hybrid_memory.scoring import SECONDS_PER_DAY, RecencyScorer, cosine_similarity
from hybrid_memory.types import SIGNALS, MemoryEntry, SearchResult, SignalScores

NOW = 1_767_225_600.0

# Strategies
score_value = st.floats(min_value=0.0, max_value=10.0, allow_nan=False)
score_rows = st.lists(st.tuples(score_value, score_value, score_value, score_value), max_size=15)
weight_value = st.floats(min_value=0.0, max_value=5.0, allow_nan=False)
vector = st.lists(
    st.floats(min_value=-100, max_value=100, allow_nan=False, allow_subnormal=False),
    min_size=1,
    max_size=8,
)


def make_candidates(rows) -> list[SearchResult]:
    return [
        SearchResult(
            entry=MemoryEntry(id=f"m{i}", content=""),
            scores=SignalScores(bm25=row[0], vector=row[1], recency=row[2], importance=row[3]),
        )
        for i, row in enumerate(rows)
    ]


@pytest.mark.hypothesis
class TestFusionProperties:
    """Property tests for RankFusion."""

    @given(rows=score_rows)
    @settings(max_examples=50)
    def test_ranks_and_ordering(self, rows) -> None:
        results = RankFusion().fuse(make_candidates(rows))

        assert [r.rank for r in results] == list(range(1, len(rows) + 1))
        combined = [r.scores.combined for r in results]
        assert combined == sorted(combined, reverse=True)

    @given(rows=score_rows, weights=st.tuples(*[weight_value] * 4))
    @settings(max_examples=50)
    def test_combined_bounded(self, rows, weights) -> None:
        """Each signal contributes at most weight / k."""
        config = RRFConfig(weights=SignalWeights(*weights))
        for result in RankFusion(config).fuse(make_candidates(rows)):
            assert 0.0 <= result.scores.combined <= sum(weights) / config.k + 1e-12

    @given(
        rows=score_rows,
        signal=st.sampled_from(SIGNALS),
        boost=st.floats(min_value=0.1, max_value=5.0, allow_nan=False),
    )
    @settings(max_examples=50)
    def test_weight_monotonicity(self, rows, signal, boost) -> None:
        """Raising a signal's weight lifts its uniquely top-ranked candidate."""
        assume(len(rows) >= 2)
        column = SIGNALS.index(signal)
        best = max(row[column] for row in rows)
        assume(sum(1 for row in rows if row[column] == best) == 1)
        top_index = next(i for i, row in enumerate(rows) if row[column] == best)

        base = RankFusion().fuse(make_candidates(rows))
        weights = SignalWeights(**{signal: 1.0 + boost})
        boosted = RankFusion(RRFConfig(weights=weights)).fuse(make_candidates(rows))

        def find(results):
            return next(r for r in results if r.entry.id == f"m{top_index}")

        assert find(boosted).scores.combined > find(base).scores.combined
        assert find(boosted).rank <= find(base).rank

    @given(rows=score_rows, limit=st.integers(min_value=0, max_value=20))
    @settings(max_examples=30)
    def test_limit(self, rows, limit) -> None:
        assert len(RankFusion().fuse(make_candidates(rows), limit)) == min(limit, len(rows))


@pytest.mark.hypothesis
class TestScorerProperties:
    """Property tests for recency and cosine scorers."""

    @given(
        age_days=st.floats(min_value=-30, max_value=10_000, allow_nan=False),
        decay=st.floats(min_value=0.0, max_value=10.0, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_recency_bounds(self, age_days: float, decay: float) -> None:
        scorer = RecencyScorer(decay, clock=lambda: NOW)
        score = scorer.score(NOW - age_days * SECONDS_PER_DAY)
        assert 0.0 < score <= 1.0

    @given(
        younger=st.floats(min_value=0, max_value=1000, allow_nan=False),
        extra=st.floats(min_value=0.01, max_value=1000, allow_nan=False),
    )
    @settings(max_examples=50)
    def test_recency_decreases_with_age(self, younger: float, extra: float) -> None:
        scorer = RecencyScorer(0.1, clock=lambda: NOW)
        young = scorer.score(NOW - younger * SECONDS_PER_DAY)
        old = scorer.score(NOW - (younger + extra) * SECONDS_PER_DAY)
        assert old < young

    @given(a=vector, b=vector)
    @settings(max_examples=100)
    def test_cosine_bounds(self, a, b) -> None:
        assert -1.0 <= cosine_similarity(a, b) <= 1.0

    @given(a=vector)
    @settings(max_examples=50)
    def test_cosine_symmetric(self, a) -> None:
        b = list(reversed(a))
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))
