"""
Memory checkpoint/restore.

Handles:
- Snapshot the full entry set to one JSON file per checkpoint
- Restore, list, inspect and delete checkpoints
- Retention: keep only the newest max_checkpoints

Files are written with write-to-temp-then-rename so a crash never leaves a
half-written checkpoint behind.
"""

from __future__ import annotations

import json
import logging
import os
import re
import secrets
import tempfile
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import CheckpointConfig
from .errors import CheckpointIOError, NotFoundError
from .types import MemoryEntry

logger = logging.getLogger(__name__)

_CHECKPOINT_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


@dataclass
class CheckpointMetadata:
    """Descriptive header stored with every checkpoint."""

    id: str
    description: str
    timestamp: float
    entry_count: int
    git_branch: str | None = None
    git_commit: str | None = None
    session_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "timestamp": self.timestamp,
            "entry_count": self.entry_count,
            "git_branch": self.git_branch,
            "git_commit": self.git_commit,
            "session_id": self.session_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckpointMetadata:
        return cls(
            id=data["id"],
            description=data.get("description", ""),
            timestamp=float(data["timestamp"]),
            entry_count=int(data.get("entry_count", 0)),
            git_branch=data.get("git_branch"),
            git_commit=data.get("git_commit"),
            session_id=data.get("session_id"),
        )


@dataclass
class CheckpointData:
    """A full checkpoint: metadata, entries and an optional config blob."""

    metadata: CheckpointMetadata
    entries: list[MemoryEntry] = field(default_factory=list)
    config: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "metadata": self.metadata.to_dict(),
            "entries": [entry.to_dict() for entry in self.entries],
            "config": self.config,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckpointData:
        return cls(
            metadata=CheckpointMetadata.from_dict(data["metadata"]),
            entries=[MemoryEntry.from_dict(e) for e in data.get("entries", [])],
            config=data.get("config"),
        )


@dataclass(frozen=True)
class CheckpointStats:
    total_checkpoints: int
    total_size: int
    oldest: float | None
    newest: float | None


class CheckpointManager:
    """
    Creates, lists and restores memory checkpoints.

    Checkpoints live in config.checkpoint_dir as <checkpoint id>.json.
    """

    def __init__(
        self,
        config: CheckpointConfig | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the checkpoint manager.

        Args:
            config: Checkpoint configuration
            clock: Returns "now" in epoch seconds
        """
        self.config = config or CheckpointConfig()
        self.clock = clock
        self.checkpoint_dir = self.config.path
        self._last_timestamp = 0.0

        try:
            self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CheckpointIOError(
                f"Cannot create checkpoint directory {self.checkpoint_dir}: {e}"
            ) from e

        logger.debug("Checkpoint manager initialized at %s", self.checkpoint_dir)

    def get_checkpoint_path(self, checkpoint_id: str) -> Path:
        """Get file path for a checkpoint id."""
        return self.checkpoint_dir / f"{checkpoint_id}.json"

    def create_checkpoint(
        self,
        entries: Iterable[MemoryEntry],
        description: str,
        git_branch: str | None = None,
        git_commit: str | None = None,
        session_id: str | None = None,
        config: dict[str, Any] | None = None,
    ) -> str:
        """
        Write a snapshot of entries.

        Args:
            entries: Entries to snapshot (typically MemoryStore.export_entries())
            description: Human-readable label
            git_branch: Branch to record
            git_commit: Commit to record
            session_id: Owning session
            config: Free-form config blob stored alongside the entries

        Returns:
            The new checkpoint's id

        Raises:
            CheckpointIOError: If the file cannot be written
        """
        entries = list(entries)
        checkpoint_id = self._generate_checkpoint_id()

        data = CheckpointData(
            metadata=CheckpointMetadata(
                id=checkpoint_id,
                description=description,
                timestamp=self._next_timestamp(),
                entry_count=len(entries),
                git_branch=git_branch,
                git_commit=git_commit,
                session_id=session_id,
            ),
            entries=entries,
            config=config,
        )

        try:
            self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
            self._atomic_json_write(self.get_checkpoint_path(checkpoint_id), data.to_dict())
        except (OSError, TypeError, ValueError) as e:
            raise CheckpointIOError(f"Failed to write checkpoint {checkpoint_id}: {e}") from e

        logger.info(
            "Checkpoint created: %s (%r, %d entries)", checkpoint_id, description, len(entries)
        )

        if self.config.auto_cleanup:
            self.cleanup_old_checkpoints()

        return checkpoint_id

    def restore_checkpoint(self, checkpoint_id: str) -> CheckpointData:
        """
        Load a checkpoint.

        Raises:
            NotFoundError: If no checkpoint has this id
            CheckpointIOError: If the file cannot be read or parsed
        """
        raw = self._read_checkpoint(checkpoint_id)
        try:
            data = CheckpointData.from_dict(raw)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CheckpointIOError(f"Malformed checkpoint file {checkpoint_id}: {e!r}") from e
        logger.info("Checkpoint restored: %s (%d entries)", checkpoint_id, len(data.entries))
        return data

    def get_checkpoint_metadata(self, checkpoint_id: str) -> CheckpointMetadata:
        """Metadata of one checkpoint (NotFoundError if absent)."""
        raw = self._read_checkpoint(checkpoint_id)
        try:
            return CheckpointMetadata.from_dict(raw["metadata"])
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CheckpointIOError(f"Malformed checkpoint file {checkpoint_id}: {e!r}") from e

    def list_checkpoints(self) -> list[CheckpointMetadata]:
        """
        Metadata of all readable checkpoints, newest first.

        Unreadable or corrupt files are skipped with a warning.

        Raises:
            CheckpointIOError: If the directory itself cannot be read
        """
        try:
            files = sorted(
                path
                for path in self.checkpoint_dir.iterdir()
                if path.suffix == ".json" and path.is_file()
            )
        except FileNotFoundError:
            return []
        except OSError as e:
            raise CheckpointIOError(
                f"Cannot read checkpoint directory {self.checkpoint_dir}: {e}"
            ) from e

        checkpoints: list[CheckpointMetadata] = []
        for path in files:
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f)
                checkpoints.append(CheckpointMetadata.from_dict(data["metadata"]))
            except (OSError, ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning("Skipping unreadable checkpoint %s: %s", path.name, e)

        checkpoints.sort(key=lambda m: (m.timestamp, m.id), reverse=True)
        return checkpoints

    def delete_checkpoint(self, checkpoint_id: str) -> None:
        """
        Delete a checkpoint.

        Raises:
            NotFoundError: If no checkpoint has this id
            CheckpointIOError: If the file cannot be removed
        """
        path = self._existing_path(checkpoint_id)
        try:
            path.unlink()
        except FileNotFoundError as e:
            raise NotFoundError("Checkpoint", checkpoint_id) from e
        except OSError as e:
            raise CheckpointIOError(f"Failed to delete checkpoint {checkpoint_id}: {e}") from e

        logger.info("Checkpoint deleted: %s", checkpoint_id)

    def cleanup_old_checkpoints(self) -> int:
        """
        Delete checkpoints beyond max_checkpoints, oldest first.

        Returns:
            Number of checkpoints deleted
        """
        checkpoints = self.list_checkpoints()
        to_delete = checkpoints[self.config.max_checkpoints :]
        if not to_delete:
            return 0

        deleted = 0
        for checkpoint in to_delete:
            try:
                self.delete_checkpoint(checkpoint.id)
                deleted += 1
            except (NotFoundError, CheckpointIOError) as e:
                logger.warning("Failed to clean up checkpoint %s: %s", checkpoint.id, e)

        logger.info(
            "Checkpoint cleanup complete: %d deleted, %d kept",
            deleted,
            len(checkpoints) - deleted,
        )
        return deleted

    def get_stats(self) -> CheckpointStats:
        checkpoints = self.list_checkpoints()

        total_size = 0
        for checkpoint in checkpoints:
            try:
                total_size += self.get_checkpoint_path(checkpoint.id).stat().st_size
            except OSError:
                # Deleted between listing and stat
                continue

        return CheckpointStats(
            total_checkpoints=len(checkpoints),
            total_size=total_size,
            oldest=checkpoints[-1].timestamp if checkpoints else None,
            newest=checkpoints[0].timestamp if checkpoints else None,
        )

    def _existing_path(self, checkpoint_id: str) -> Path:
        if not _CHECKPOINT_ID_RE.match(checkpoint_id):
            raise NotFoundError("Checkpoint", checkpoint_id)
        path = self.get_checkpoint_path(checkpoint_id)
        if not path.is_file():
            raise NotFoundError("Checkpoint", checkpoint_id)
        return path

    def _read_checkpoint(self, checkpoint_id: str) -> dict[str, Any]:
        path = self._existing_path(checkpoint_id)
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise NotFoundError("Checkpoint", checkpoint_id) from e
        except (OSError, json.JSONDecodeError) as e:
            raise CheckpointIOError(f"Failed to read checkpoint {checkpoint_id}: {e}") from e

        if not isinstance(data, dict) or "metadata" not in data:
            raise CheckpointIOError(f"Malformed checkpoint file: {path.name}")
        return data

    def _atomic_json_write(self, target_path: Path, data: dict[str, Any]) -> None:
        """
        Write JSON atomically using temp file + rename.

        The temp file lives in the target directory so the rename stays on
        one filesystem; its .tmp suffix keeps it out of listings.
        """
        fd, temp_path = tempfile.mkstemp(
            suffix=".tmp",
            prefix=target_path.stem + "_",
            dir=target_path.parent,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(temp_path, target_path)
        except BaseException:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def _generate_checkpoint_id(self) -> str:
        checkpoint_id = f"CP-{int(self.clock() * 1000)}-{secrets.token_hex(3)}"
        while self.get_checkpoint_path(checkpoint_id).exists():
            checkpoint_id = f"CP-{int(self.clock() * 1000)}-{secrets.token_hex(3)}"
        return checkpoint_id

    def _next_timestamp(self) -> float:
        # Strictly increasing within one manager, even if the clock stalls
        timestamp = max(self.clock(), self._last_timestamp + 1e-6)
        self._last_timestamp = timestamp
        return timestamp


__all__ = [
    "CheckpointData",
    "CheckpointManager",
    "CheckpointMetadata",
    "CheckpointStats",
]
