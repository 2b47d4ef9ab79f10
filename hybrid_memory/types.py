"""
Core data types for the hybrid memory engine.

MemoryEntry is the unit of stored knowledge; SearchResult is the ephemeral
per-query view of an entry with its four signal scores and fused rank.
"""

from __future__ import annotations

import copy
import secrets
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class MemoryLayer(str, Enum):
    """Memory layers a session tags its entries with."""

    WORKING = "working"  # current session context
    EPISODIC = "episodic"  # past experiences
    SEMANTIC = "semantic"  # facts and patterns
    REFLECTION = "reflection"  # meta-insights


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
    TOOL = "tool"


@dataclass
class Message:
    """
    A conversation message.

    content is plain text, one content block, or a list of blocks such as
    {"type": "text", "text": ...} or {"type": "tool_use", "name": ...}.
    """

    role: MessageRole | str
    content: str | list[dict[str, Any]] | dict[str, Any]
    timestamp: float | None = None


def generate_entry_id() -> str:
    """Generate a unique entry id: mem_<epoch ms>_<random suffix>."""
    return f"mem_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


@dataclass
class EntryMetadata:
    """
    Typed metadata bag for a memory entry.

    The engine never reads metadata; it exists for higher-level filtering.
    Known keys are attributes, anything else goes into extra.
    """

    layer: MemoryLayer | None = None
    session_id: str | None = None
    role: str | None = None
    git_branch: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    KNOWN_KEYS = ("layer", "session_id", "role", "git_branch")

    def __post_init__(self) -> None:
        if self.layer is not None and not isinstance(self.layer, MemoryLayer):
            self.layer = MemoryLayer(self.layer)
        if isinstance(self.role, Enum):
            self.role = self.role.value

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.KNOWN_KEYS:
            value = getattr(self, key)
            return default if value is None else value
        return self.extra.get(key, default)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        for key in self.KNOWN_KEYS:
            value = getattr(self, key)
            if value is not None:
                data[key] = value.value if isinstance(value, MemoryLayer) else value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> EntryMetadata:
        data = dict(data or {})
        known = {key: data.pop(key) for key in cls.KNOWN_KEYS if key in data}
        return cls(**known, extra=data)


@dataclass
class MemoryEntry:
    """
    A single stored piece of knowledge.

    Attributes:
        id: Unique, immutable identifier
        content: Text indexed for BM25 and embedded for vector search
        timestamp: Epoch seconds used by the recency signal
        importance: Caller-assigned priority in [0, 1]; not clamped
        embedding: Fixed-length vector, generated by the store when absent
        metadata: Typed metadata (layer, session, role, ...)
        tags: Caller-defined labels
    """

    id: str
    content: str
    timestamp: float = field(default_factory=time.time)
    importance: float = 0.5
    embedding: list[float] | None = None
    metadata: EntryMetadata = field(default_factory=EntryMetadata)
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.metadata, dict):
            self.metadata = EntryMetadata.from_dict(self.metadata)
        elif self.metadata is None:
            self.metadata = EntryMetadata()

    def copy(self) -> MemoryEntry:
        """Return an independent copy that shares no mutable state."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "content": self.content,
            "timestamp": self.timestamp,
            "importance": self.importance,
            "embedding": list(self.embedding) if self.embedding is not None else None,
            "metadata": self.metadata.to_dict(),
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryEntry:
        embedding = data.get("embedding")
        return cls(
            id=data["id"],
            content=data["content"],
            timestamp=float(data.get("timestamp", time.time())),
            importance=data.get("importance", 0.5),
            embedding=list(embedding) if embedding is not None else None,
            metadata=EntryMetadata.from_dict(data.get("metadata")),
            tags=list(data.get("tags", [])),
        )


@dataclass
class SignalScores:
    """Raw per-signal scores plus the fused RRF score."""

    bm25: float = 0.0
    vector: float = 0.0
    recency: float = 0.0
    importance: float = 0.0
    combined: float = 0.0

    def get(self, signal: str) -> float:
        return getattr(self, signal)


SIGNALS = ("bm25", "vector", "recency", "importance")


@dataclass
class SearchResult:
    """A ranked search hit. rank is 1-based and assigned after fusion."""

    entry: MemoryEntry
    scores: SignalScores
    rank: int = 0


@dataclass(frozen=True)
class MemoryStats:
    entry_count: int
    avg_doc_length: float
    vocabulary_size: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "entry_count": self.entry_count,
            "avg_doc_length": self.avg_doc_length,
            "vocabulary_size": self.vocabulary_size,
        }


__all__ = [
    "SIGNALS",
    "EntryMetadata",
    "MemoryEntry",
    "MemoryLayer",
    "MemoryStats",
    "Message",
    "MessageRole",
    "SearchResult",
    "SignalScores",
    "generate_entry_id",
]
