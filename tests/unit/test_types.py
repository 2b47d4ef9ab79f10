"""
Unit tests for core data types.
"""

import re

from hybrid_memory.types import (
    EntryMetadata,
    MemoryEntry,
    MemoryLayer,
    MemoryStats,
    MessageRole,
    SignalScores,
    generate_entry_id,
)


class TestEntryMetadata:
    """Tests for typed metadata."""

    def test_layer_coerced_from_string(self) -> None:
        metadata = EntryMetadata(layer="semantic")
        assert metadata.layer is MemoryLayer.SEMANTIC

    def test_role_enum_stored_as_value(self) -> None:
        assert EntryMetadata(role=MessageRole.USER).role == "user"

    def test_to_dict_flattens_extra(self) -> None:
        metadata = EntryMetadata(layer=MemoryLayer.WORKING, session_id="s1", extra={"file": "a.py"})
        assert metadata.to_dict() == {"layer": "working", "session_id": "s1", "file": "a.py"}

    def test_from_dict_splits_known_keys(self) -> None:
        metadata = EntryMetadata.from_dict({"layer": "episodic", "role": "user", "topic": "auth"})
        assert metadata.layer is MemoryLayer.EPISODIC
        assert metadata.role == "user"
        assert metadata.extra == {"topic": "auth"}

    def test_get(self) -> None:
        metadata = EntryMetadata(git_branch="main", extra={"x": 1})
        assert metadata.get("git_branch") == "main"
        assert metadata.get("x") == 1
        assert metadata.get("layer", "none") == "none"
        assert metadata.get("missing") is None


class TestMemoryEntry:
    """Tests for MemoryEntry."""

    def test_dict_metadata_is_coerced(self) -> None:
        entry = MemoryEntry(id="m1", content="x", metadata={"layer": "reflection"})
        assert isinstance(entry.metadata, EntryMetadata)
        assert entry.metadata.layer is MemoryLayer.REFLECTION

    def test_copy_is_independent(self) -> None:
        entry = MemoryEntry(id="m1", content="x", embedding=[1.0], tags=["a"])
        clone = entry.copy()
        clone.tags.append("b")
        clone.embedding[0] = 2.0
        clone.metadata.extra["k"] = "v"

        assert entry.tags == ["a"]
        assert entry.embedding == [1.0]
        assert entry.metadata.extra == {}

    def test_to_dict_from_dict(self) -> None:
        entry = MemoryEntry(
            id="m1",
            content="hash passwords",
            timestamp=100.0,
            importance=0.9,
            embedding=[0.1, 0.2],
            metadata=EntryMetadata(layer=MemoryLayer.SEMANTIC),
            tags=["security"],
        )
        restored = MemoryEntry.from_dict(entry.to_dict())
        assert restored == entry

    def test_from_dict_defaults(self) -> None:
        entry = MemoryEntry.from_dict({"id": "m2", "content": "c", "timestamp": 5})
        assert entry.importance == 0.5
        assert entry.embedding is None
        assert entry.tags == []
        assert entry.timestamp == 5.0


class TestMisc:
    def test_generate_entry_id_format(self) -> None:
        assert re.fullmatch(r"mem_\d+_[0-9a-f]{10}", generate_entry_id())

    def test_generate_entry_id_unique(self) -> None:
        assert len({generate_entry_id() for _ in range(100)}) == 100

    def test_signal_scores_get(self) -> None:
        scores = SignalScores(bm25=1.0, recency=0.5)
        assert scores.get("bm25") == 1.0
        assert scores.get("recency") == 0.5
        assert scores.combined == 0.0

    def test_memory_stats_to_dict(self) -> None:
        stats = MemoryStats(entry_count=2, avg_doc_length=3.5, vocabulary_size=6)
        assert stats.to_dict() == {"entry_count": 2, "avg_doc_length": 3.5, "vocabulary_size": 6}
