"""
In-memory hybrid memory store.

Owns the entry collection and its BM25 index and answers searches by
fusing four signals with reciprocal rank fusion:

- BM25 (lexical matching)
- Vector similarity (semantic matching)
- Recency (temporal decay)
- Importance (caller-assigned priority)

Usage:
    from hybrid_memory import HashEmbeddingProvider, MemoryStore

    store = MemoryStore(HashEmbeddingProvider())
    store.add_entry("hash passwords before storage", importance=0.9)
    for result in store.search("hash passwords", limit=5):
        print(result.rank, result.scores.combined, result.entry.content)
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any

from .bm25 import BM25Index
from .config import MemoryConfig
from .embeddings import (
    EmbeddingProvider,
    check_vector,
    generate_embedding,
    generate_embeddings,
)
from .errors import NotFoundError
from .fusion import RankFusion
from .scoring import RecencyScorer, cosine_similarity
from .tokenizer import tokenize
from .types import (
    EntryMetadata,
    MemoryEntry,
    MemoryStats,
    SearchResult,
    SignalScores,
    generate_entry_id,
)

logger = logging.getLogger(__name__)

Timestamp = float | datetime


def _to_epoch(timestamp: Timestamp) -> float:
    if isinstance(timestamp, datetime):
        return timestamp.timestamp()
    return float(timestamp)


def _to_metadata(metadata: EntryMetadata | dict[str, Any] | None) -> EntryMetadata:
    if isinstance(metadata, EntryMetadata):
        return EntryMetadata.from_dict(metadata.to_dict())
    return EntryMetadata.from_dict(metadata)


class MemoryStore:
    """
    Hybrid BM25 + vector + recency + importance memory.

    All state lives in memory. A re-entrant lock serializes mutations and
    searches; embedding calls happen before state is touched, so a failing
    provider leaves the store unchanged.

    Args:
        embedding_provider: Required source of embeddings
        config: Engine configuration (defaults when omitted)
        clock: Returns "now" in epoch seconds; used for default timestamps and
            recency scoring
    """

    UPDATABLE_FIELDS = frozenset(
        {"content", "timestamp", "importance", "metadata", "tags", "embedding"}
    )

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        config: MemoryConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        if embedding_provider is None:
            raise TypeError("MemoryStore requires an embedding provider")

        self.embedding_provider = embedding_provider
        self.config = config or MemoryConfig()
        self.clock = clock

        self._entries: dict[str, MemoryEntry] = {}
        self._index = BM25Index(self.config.bm25)
        self._recency = RecencyScorer(self.config.rrf.recency_decay_factor, clock)
        self._fusion = RankFusion(self.config.rrf)
        self._lock = threading.RLock()

        logger.debug(
            "Memory store initialized (k=%s, decay=%s, dimensions=%d)",
            self.config.rrf.k,
            self.config.rrf.recency_decay_factor,
            self.dimensions,
        )

    @property
    def dimensions(self) -> int:
        return self.config.embedding.dimensions

    @property
    def index(self) -> BM25Index:
        """The BM25 index; read-only use."""
        return self._index

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._entries

    # -------------------------------------------------------------------------
    # Entry lifecycle
    # -------------------------------------------------------------------------

    def add_entry(
        self,
        content: str,
        timestamp: Timestamp | None = None,
        importance: float = 0.5,
        metadata: EntryMetadata | dict[str, Any] | None = None,
        tags: Iterable[str] | None = None,
        embedding: list[float] | None = None,
    ) -> str:
        """
        Store a new entry.

        Args:
            content: Text to index
            timestamp: Epoch seconds or datetime (defaults to now)
            importance: Priority in [0, 1]; stored as given
            metadata: Typed metadata or a plain dict
            tags: Caller-defined labels
            embedding: Precomputed embedding; generated when omitted

        Returns:
            The new entry's id

        Raises:
            EmbeddingGenerationError: If the embedding cannot be produced
        """
        vector = self._resolve_embedding(content, embedding)

        with self._lock:
            entry_id = generate_entry_id()
            while entry_id in self._entries:
                entry_id = generate_entry_id()

            entry = MemoryEntry(
                id=entry_id,
                content=content,
                timestamp=self.clock() if timestamp is None else _to_epoch(timestamp),
                importance=importance,
                embedding=vector,
                metadata=_to_metadata(metadata),
                tags=list(tags or []),
            )
            self._entries[entry_id] = entry
            self._index.index_document(entry_id, content)

        logger.debug("Memory entry added: %s (%d chars)", entry_id, len(content))
        return entry_id

    def update_entry(self, entry_id: str, **updates: Any) -> None:
        """
        Update fields of an existing entry.

        A content change re-indexes the entry and regenerates its embedding
        unless a new embedding is passed alongside.

        Args:
            entry_id: Entry to update
            **updates: Any of content, timestamp, importance, metadata, tags,
                embedding

        Raises:
            NotFoundError: If no entry has this id
            ValueError: If an unknown field is given
            EmbeddingGenerationError: If a new embedding cannot be produced
        """
        unknown = set(updates) - self.UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")

        while True:
            with self._lock:
                current = self._entries.get(entry_id)
                if current is None:
                    raise NotFoundError("Entry", entry_id)
                base_content = current.content
            content = updates.get("content", base_content)
            content_changed = content != base_content

            vector: list[float] | None = None
            if "embedding" in updates or content_changed:
                vector = self._resolve_embedding(content, updates.get("embedding"))

            with self._lock:
                entry = self._entries.get(entry_id)
                if entry is None:
                    raise NotFoundError("Entry", entry_id)
                if entry.content != base_content:
                    # Content changed while embedding; start over from the new text
                    continue

                if "timestamp" in updates:
                    entry.timestamp = _to_epoch(updates["timestamp"])
                if "importance" in updates:
                    entry.importance = updates["importance"]
                if "metadata" in updates:
                    entry.metadata = _to_metadata(updates["metadata"])
                if "tags" in updates:
                    entry.tags = list(updates["tags"] or [])
                if vector is not None:
                    entry.embedding = vector
                if content_changed:
                    entry.content = content
                    self._index.index_document(entry_id, content)
                break

        logger.debug("Memory entry updated: %s (content changed: %s)", entry_id, content_changed)

    def remove_entry(self, entry_id: str) -> bool:
        """Remove an entry. Returns False if it did not exist."""
        with self._lock:
            if self._entries.pop(entry_id, None) is None:
                return False
            self._index.remove_document(entry_id)

        logger.debug("Memory entry removed: %s", entry_id)
        return True

    def get_entry(self, entry_id: str) -> MemoryEntry | None:
        """Return a copy of an entry, or None if absent."""
        with self._lock:
            entry = self._entries.get(entry_id)
            return entry.copy() if entry is not None else None

    def clear(self) -> None:
        """Remove all entries and BM25 state."""
        with self._lock:
            self._entries.clear()
            self._index.clear()
        logger.debug("Memory cleared")

    # -------------------------------------------------------------------------
    # Search
    # -------------------------------------------------------------------------

    def search(self, query: str, limit: int = 10) -> list[SearchResult]:
        """
        Rank every live entry against the query.

        Args:
            query: Free-text query
            limit: Maximum results to return

        Returns:
            Results sorted by fused score with 1-based ranks; empty for an
            empty store

        Raises:
            EmbeddingGenerationError: If the query cannot be embedded
        """
        if limit <= 0 or not self._entries:
            return []

        query_embedding = generate_embedding(self.embedding_provider, query, self.dimensions)
        query_terms = tokenize(query)

        with self._lock:
            now = self.clock()
            candidates = [
                SearchResult(
                    entry=entry,
                    scores=SignalScores(
                        bm25=self._index.score(query_terms, entry.id),
                        vector=cosine_similarity(query_embedding, entry.embedding or []),
                        recency=self._recency.score(entry.timestamp, now),
                        importance=entry.importance,
                    ),
                )
                for entry in self._entries.values()
            ]
            results = self._fusion.fuse(candidates, limit)
            for result in results:
                result.entry = result.entry.copy()

        logger.debug(
            "Search completed: %r -> %d results (limit %d)", query, len(results), limit
        )
        return results

    # -------------------------------------------------------------------------
    # Bulk export/import
    # -------------------------------------------------------------------------

    def export_entries(self) -> list[MemoryEntry]:
        """Copies of all entries, in insertion order."""
        with self._lock:
            return [entry.copy() for entry in self._entries.values()]

    def import_entries(self, entries: Iterable[MemoryEntry | dict[str, Any]]) -> None:
        """
        Replace the store's contents with the given entries.

        Entries without an embedding are embedded in one batch before the
        current contents are cleared.

        Raises:
            ValueError: If two entries share an id
            EmbeddingGenerationError: If embeddings cannot be produced
        """
        incoming = [
            entry.copy() if isinstance(entry, MemoryEntry) else MemoryEntry.from_dict(entry)
            for entry in entries
        ]

        seen: set[str] = set()
        for entry in incoming:
            if entry.id in seen:
                raise ValueError(f"Duplicate entry id in import: {entry.id}")
            seen.add(entry.id)

        missing = []
        for entry in incoming:
            if entry.embedding is None:
                missing.append(entry)
            else:
                entry.embedding = check_vector(entry.embedding, self.dimensions)

        vectors = generate_embeddings(
            self.embedding_provider, [entry.content for entry in missing], self.dimensions
        )
        for entry, vector in zip(missing, vectors):
            entry.embedding = vector

        with self._lock:
            self._entries.clear()
            self._index.clear()
            for entry in incoming:
                self._entries[entry.id] = entry
                self._index.index_document(entry.id, entry.content)

        logger.info(
            "Entries imported: %d (%d embeddings generated)", len(incoming), len(missing)
        )

    def get_stats(self) -> MemoryStats:
        with self._lock:
            return MemoryStats(
                entry_count=len(self._entries),
                avg_doc_length=self._index.average_document_length,
                vocabulary_size=self._index.vocabulary_size,
            )

    def _resolve_embedding(self, content: str, embedding: list[float] | None) -> list[float]:
        """Validate a supplied embedding or generate one for content."""
        if embedding is None:
            return generate_embedding(self.embedding_provider, content, self.dimensions)
        return check_vector(embedding, self.dimensions)


__all__ = ["MemoryStore"]
