"""
Incremental BM25 statistics.

Maintains per-term document frequency, per-document term frequency and the
running average document length. Documents can be added, re-indexed and
removed one at a time; removal leaves the statistics exactly as they were
before the document was added.
"""

from __future__ import annotations

import math
from collections import Counter
from collections.abc import Iterable

from .config import BM25Config
from .tokenizer import tokenize


class BM25Index:
    """
    In-memory BM25 index.

    Example::

        index = BM25Index()
        index.index_document("a", "hash passwords before storage")
        index.score(tokenize("hash passwords"), "a")
    """

    def __init__(self, config: BM25Config | None = None):
        self.config = config or BM25Config()
        # term -> number of documents containing it
        self._doc_freq: dict[str, int] = {}
        # doc id -> term -> count
        self._term_freqs: dict[str, Counter[str]] = {}
        self._doc_lengths: dict[str, int] = {}
        self._total_length = 0
        self._avg_doc_length = 0.0

    @property
    def document_count(self) -> int:
        return len(self._term_freqs)

    @property
    def average_document_length(self) -> float:
        return self._avg_doc_length

    @property
    def vocabulary_size(self) -> int:
        return len(self._doc_freq)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._term_freqs

    def document_frequency(self, term: str) -> int:
        return self._doc_freq.get(term, 0)

    def document_frequencies(self) -> dict[str, int]:
        """Snapshot of the df table."""
        return dict(self._doc_freq)

    def term_frequencies(self, doc_id: str) -> dict[str, int]:
        return dict(self._term_freqs.get(doc_id, {}))

    def document_length(self, doc_id: str) -> int:
        return self._doc_lengths.get(doc_id, 0)

    def index_document(self, doc_id: str, content: str) -> None:
        """
        Add a document, replacing any statistics already held for doc_id.

        Args:
            doc_id: Document identifier
            content: Raw text to tokenize and count
        """
        if doc_id in self._term_freqs:
            self._drop(doc_id)

        counts = Counter(tokenize(content))
        for term in counts:
            self._doc_freq[term] = self._doc_freq.get(term, 0) + 1

        length = sum(counts.values())
        self._term_freqs[doc_id] = counts
        self._doc_lengths[doc_id] = length
        self._total_length += length
        self._recompute_average()

    def remove_document(self, doc_id: str) -> bool:
        """Remove a document's statistics. Returns False if it was not indexed."""
        if doc_id not in self._term_freqs:
            return False
        self._drop(doc_id)
        self._recompute_average()
        return True

    def clear(self) -> None:
        self._doc_freq.clear()
        self._term_freqs.clear()
        self._doc_lengths.clear()
        self._total_length = 0
        self._avg_doc_length = 0.0

    def idf(self, term: str) -> float:
        """Inverse document frequency; 0 for terms no document contains."""
        df = self._doc_freq.get(term, 0)
        if df == 0:
            return 0.0
        n = self.document_count
        return math.log((n - df + 0.5) / (df + 0.5) + 1)

    def score(self, query_terms: Iterable[str], doc_id: str) -> float:
        """
        BM25 score of one document for a tokenized query.

        Args:
            query_terms: Terms produced by tokenize(); repeats count repeatedly
            doc_id: Indexed document to score

        Returns:
            Sum of per-term contributions (0 for unknown documents)
        """
        term_freqs = self._term_freqs.get(doc_id)
        if not term_freqs:
            return 0.0

        k1 = self.config.k1
        b = self.config.b
        doc_length = self._doc_lengths[doc_id]
        if self._avg_doc_length > 0:
            length_norm = 1 - b + b * (doc_length / self._avg_doc_length)
        else:
            length_norm = 1.0

        score = 0.0
        for term in query_terms:
            tf = term_freqs.get(term, 0)
            if tf == 0:
                continue
            score += self.idf(term) * (tf * (k1 + 1)) / (tf + k1 * length_norm)
        return score

    def _drop(self, doc_id: str) -> None:
        counts = self._term_freqs.pop(doc_id)
        for term in counts:
            remaining = self._doc_freq.get(term, 0) - 1
            if remaining > 0:
                self._doc_freq[term] = remaining
            else:
                self._doc_freq.pop(term, None)
        self._total_length -= self._doc_lengths.pop(doc_id)

    def _recompute_average(self) -> None:
        count = len(self._term_freqs)
        self._avg_doc_length = self._total_length / count if count else 0.0


__all__ = ["BM25Index"]
