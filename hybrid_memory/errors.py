"""
Error types for the hybrid memory engine.

Read-only lookups report a missing id by returning None; mutating operations
on a missing id raise NotFoundError.
"""

from __future__ import annotations


class HybridMemoryError(Exception):
    """Base exception for all hybrid memory errors."""


class NotFoundError(HybridMemoryError, KeyError):
    """An entry or checkpoint id does not exist."""

    def __init__(self, kind: str, item_id: str):
        self.kind = kind
        self.item_id = item_id
        super().__init__(f"{kind} not found: {item_id}")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0])


class EmbeddingGenerationError(HybridMemoryError):
    """The embedding provider failed or returned an unusable vector."""


class CheckpointIOError(HybridMemoryError):
    """A checkpoint file or directory could not be read or written."""


class ConfigurationError(HybridMemoryError, ValueError):
    """Invalid construction parameters."""


__all__ = [
    "CheckpointIOError",
    "ConfigurationError",
    "EmbeddingGenerationError",
    "HybridMemoryError",
    "NotFoundError",
]
