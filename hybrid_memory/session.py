"""
Session memory manager.

Binds one session to a MemoryStore and a CheckpointManager:
- tags every entry with its layer, session id and git branch
- checkpoints automatically every checkpoint_interval added entries
- clears only the working layer unless another layer is named
"""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from typing import Any

from .checkpoint import CheckpointManager, CheckpointMetadata
from .config import MemoryConfig, SessionConfig
from .embeddings import EmbeddingProvider
from .errors import CheckpointIOError
from .store import MemoryStore
from .types import EntryMetadata, MemoryEntry, MemoryLayer, Message, SearchResult

logger = logging.getLogger(__name__)


def extract_message_content(message: Message) -> str:
    """Flatten a message's content blocks into indexable text."""
    content = message.content
    if isinstance(content, str):
        return content
    if isinstance(content, dict):
        content = [content]

    parts = []
    for block in content:
        block_type = block.get("type")
        if block_type == "text":
            parts.append(block.get("text", ""))
        elif block_type == "tool_use":
            parts.append(f"[Tool: {block.get('name', 'unknown')}]")
        elif block_type == "tool_result":
            parts.append("[Tool Result]")
    return "\n".join(part for part in parts if part)


class SessionMemoryManager:
    """
    Conversation memory for one session.

    Args:
        config: Session identity and checkpoint policy
        store: Memory store holding the session's entries
        checkpoints: Checkpoint manager for snapshots
    """

    def __init__(
        self,
        config: SessionConfig,
        store: MemoryStore,
        checkpoints: CheckpointManager,
    ):
        self.config = config
        self.store = store
        self.checkpoints = checkpoints
        self.entries_since_checkpoint = 0

        logger.info(
            "Session memory initialized: %s (branch %s)", config.session_id, config.git_branch
        )

    @property
    def session_id(self) -> str:
        return self.config.session_id

    # -------------------------------------------------------------------------
    # Adding memory
    # -------------------------------------------------------------------------

    def add_message(
        self,
        message: Message,
        importance: float = 0.5,
        layer: MemoryLayer = MemoryLayer.WORKING,
    ) -> str:
        """Store a conversation message; returns the entry id."""
        role = message.role.value if isinstance(message.role, Enum) else message.role
        entry_id = self.store.add_entry(
            extract_message_content(message),
            timestamp=message.timestamp,
            importance=importance,
            metadata=self._metadata(layer, role=role),
            tags=[MemoryLayer(layer).value, role],
        )
        self._after_add()
        return entry_id

    def add_entry(
        self,
        content: str,
        importance: float = 0.5,
        layer: MemoryLayer = MemoryLayer.SEMANTIC,
        metadata: dict[str, Any] | None = None,
        tags: list[str] | None = None,
    ) -> str:
        """Store free-form knowledge in a layer; returns the entry id."""
        entry_id = self.store.add_entry(
            content,
            importance=importance,
            metadata=self._metadata(layer, extra=metadata),
            tags=[MemoryLayer(layer).value, *(tags or [])],
        )
        self._after_add()
        return entry_id

    # -------------------------------------------------------------------------
    # Reading memory
    # -------------------------------------------------------------------------

    def search(
        self,
        query: str,
        limit: int = 10,
        layers: list[MemoryLayer] | None = None,
        min_importance: float | None = None,
    ) -> list[SearchResult]:
        """
        Search the session's memory.

        Fusion runs over the whole store; layer and importance filters are
        applied afterwards and the survivors are re-ranked 1..n.
        """
        if limit <= 0:
            return []

        results = self.store.search(query, limit=len(self.store))

        if layers:
            wanted = {MemoryLayer(layer) for layer in layers}
            results = [r for r in results if r.entry.metadata.layer in wanted]
        if min_importance is not None:
            results = [r for r in results if r.entry.importance >= min_importance]

        results = results[:limit]
        for rank, result in enumerate(results, start=1):
            result.rank = rank
        return results

    def get_recent_entries(
        self, limit: int = 10, layer: MemoryLayer | None = None
    ) -> list[MemoryEntry]:
        """Newest entries first, optionally restricted to one layer."""
        entries = (
            self.get_entries_by_layer(layer) if layer is not None else self.store.export_entries()
        )
        entries.sort(key=lambda e: e.timestamp, reverse=True)
        return entries[:limit]

    def get_entries_by_layer(self, layer: MemoryLayer) -> list[MemoryEntry]:
        layer = MemoryLayer(layer)
        return [e for e in self.store.export_entries() if e.metadata.layer == layer]

    # -------------------------------------------------------------------------
    # Checkpoints
    # -------------------------------------------------------------------------

    def create_checkpoint(self, description: str) -> str:
        """Snapshot the store and reset the auto-checkpoint counter."""
        entries = self.store.export_entries()
        checkpoint_id = self.checkpoints.create_checkpoint(
            entries,
            description,
            git_branch=self.config.git_branch,
            git_commit=self.config.git_commit,
            session_id=self.session_id,
            config={
                "max_entries": self.config.max_entries,
                "stats": self.store.get_stats().to_dict(),
            },
        )
        self.entries_since_checkpoint = 0
        return checkpoint_id

    def restore_checkpoint(self, checkpoint_id: str) -> None:
        """Replace the store's contents with a checkpoint's entries."""
        data = self.checkpoints.restore_checkpoint(checkpoint_id)
        self.store.import_entries(data.entries)
        self.entries_since_checkpoint = 0

        logger.info(
            "Session %s restored from %s (%d entries)",
            self.session_id,
            checkpoint_id,
            len(data.entries),
        )

    def list_checkpoints(self) -> list[CheckpointMetadata]:
        return self.checkpoints.list_checkpoints()

    def delete_checkpoint(self, checkpoint_id: str) -> None:
        self.checkpoints.delete_checkpoint(checkpoint_id)

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def clear_memory(self, layer: MemoryLayer | None = None) -> int:
        """
        Remove every entry of one layer.

        Without an argument only the working layer is cleared; long-term
        layers are cleared only when named explicitly.

        Returns:
            Number of entries removed
        """
        layer = MemoryLayer.WORKING if layer is None else MemoryLayer(layer)
        removed = sum(
            1 for entry in self.get_entries_by_layer(layer) if self.store.remove_entry(entry.id)
        )
        self.entries_since_checkpoint = 0

        logger.info("%s memory cleared: %d entries removed", layer.value, removed)
        return removed

    def get_stats(self) -> dict[str, Any]:
        return {
            "memory": self.store.get_stats(),
            "session": {
                "session_id": self.session_id,
                "git_branch": self.config.git_branch,
                "entries_since_checkpoint": self.entries_since_checkpoint,
                "max_entries": self.config.max_entries,
            },
        }

    def export_memory(self) -> list[MemoryEntry]:
        return self.store.export_entries()

    def import_memory(self, entries: list[MemoryEntry]) -> None:
        self.store.import_entries(entries)
        self.entries_since_checkpoint = 0

    def _metadata(
        self,
        layer: MemoryLayer,
        role: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> EntryMetadata:
        metadata = EntryMetadata.from_dict(extra)
        return dataclasses.replace(
            metadata,
            layer=MemoryLayer(layer),
            session_id=self.session_id,
            git_branch=self.config.git_branch,
            role=role if role is not None else metadata.role,
        )

    def _after_add(self) -> None:
        self.entries_since_checkpoint += 1
        if (
            self.config.auto_checkpoint
            and self.entries_since_checkpoint >= self.config.checkpoint_interval
        ):
            count = self.entries_since_checkpoint
            try:
                checkpoint_id = self.create_checkpoint(f"Auto-checkpoint after {count} entries")
            except CheckpointIOError as e:
                # The entry is already stored; retried on the next add
                logger.warning("Auto-checkpoint failed for session %s: %s", self.session_id, e)
                return
            logger.info("Auto-checkpoint %s for session %s", checkpoint_id, self.session_id)


def create_session_memory(
    session_config: SessionConfig,
    embedding_provider: EmbeddingProvider,
    config: MemoryConfig | None = None,
) -> SessionMemoryManager:
    """Build a store and checkpoint manager and bind them to a session."""
    config = config or MemoryConfig()
    return SessionMemoryManager(
        session_config,
        MemoryStore(embedding_provider, config),
        CheckpointManager(config.checkpoint),
    )


__all__ = [
    "SessionMemoryManager",
    "create_session_memory",
    "extract_message_content",
]
