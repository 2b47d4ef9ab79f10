"""
Configuration management for the hybrid memory engine.

Every section is a dataclass with defaults and validates itself on
construction. MemoryConfig reads and writes the sections as one JSON file.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

CONFIG_ENV_VAR = "HYBRID_MEMORY_CONFIG"
DEFAULT_CHECKPOINT_DIR = os.path.join(".hybrid-memory", "checkpoints")


def _require_number(section: str, name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{section}.{name} must be a number, got {value!r}")


def default_config_path() -> Path:
    """Resolve the config file location (env var wins over the home default)."""
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".hybrid-memory" / "config.json"


@dataclass
class SignalWeights:
    """Per-signal weights applied to each reciprocal-rank contribution."""

    bm25: float = 1.0
    vector: float = 1.0
    recency: float = 1.0
    importance: float = 1.0

    def __post_init__(self) -> None:
        for name, value in self.as_dict().items():
            _require_number("weights", name, value)
            if value < 0:
                raise ConfigurationError(f"weight for {name!r} must be >= 0, got {value}")

    def as_dict(self) -> dict[str, float]:
        return {
            "bm25": self.bm25,
            "vector": self.vector,
            "recency": self.recency,
            "importance": self.importance,
        }


@dataclass
class RRFConfig:
    """
    Configuration for reciprocal rank fusion.

    Attributes:
        k: RRF constant added to each 0-based rank position
        weights: Per-signal multipliers
        recency_decay_factor: Decay per day of age in the recency signal
    """

    k: float = 60
    weights: SignalWeights = field(default_factory=SignalWeights)
    recency_decay_factor: float = 0.1

    def __post_init__(self) -> None:
        if isinstance(self.weights, dict):
            self.weights = _section(SignalWeights, self.weights)
        elif not isinstance(self.weights, SignalWeights):
            raise ConfigurationError("weights must be an object")
        _require_number("rrf", "k", self.k)
        _require_number("rrf", "recency_decay_factor", self.recency_decay_factor)
        if self.k <= 0:
            raise ConfigurationError(f"RRF constant k must be > 0, got {self.k}")
        if self.recency_decay_factor < 0:
            raise ConfigurationError(
                f"recency_decay_factor must be >= 0, got {self.recency_decay_factor}"
            )


@dataclass
class BM25Config:
    """BM25 term-saturation (k1) and length-normalization (b) parameters."""

    k1: float = 1.5
    b: float = 0.75

    def __post_init__(self) -> None:
        _require_number("bm25", "k1", self.k1)
        _require_number("bm25", "b", self.b)
        if self.k1 < 0:
            raise ConfigurationError(f"BM25 k1 must be >= 0, got {self.k1}")
        if not 0.0 <= self.b <= 1.0:
            raise ConfigurationError(f"BM25 b must be within [0, 1], got {self.b}")


@dataclass
class EmbeddingConfig:
    """Embedding dimensionality expected from the provider."""

    dimensions: int = 384
    model: str = "all-MiniLM-L6-v2"

    def __post_init__(self) -> None:
        if isinstance(self.dimensions, bool) or not isinstance(self.dimensions, int):
            raise ConfigurationError(f"dimensions must be an integer, got {self.dimensions!r}")
        if self.dimensions <= 0:
            raise ConfigurationError(f"dimensions must be > 0, got {self.dimensions}")


@dataclass
class CheckpointConfig:
    """Where checkpoints live and how many are kept."""

    checkpoint_dir: str = DEFAULT_CHECKPOINT_DIR
    max_checkpoints: int = 10
    auto_cleanup: bool = True

    def __post_init__(self) -> None:
        if not isinstance(self.checkpoint_dir, (str, os.PathLike)):
            raise ConfigurationError(f"checkpoint_dir must be a path, got {self.checkpoint_dir!r}")
        if isinstance(self.max_checkpoints, bool) or not isinstance(self.max_checkpoints, int):
            raise ConfigurationError(
                f"max_checkpoints must be an integer, got {self.max_checkpoints!r}"
            )
        if self.max_checkpoints < 1:
            raise ConfigurationError(
                f"max_checkpoints must be >= 1, got {self.max_checkpoints}"
            )

    @property
    def path(self) -> Path:
        return Path(self.checkpoint_dir).expanduser()


@dataclass
class SessionConfig:
    """
    Configuration for one session's memory.

    Attributes:
        session_id: Identity stamped into every entry the session creates
        git_branch: Branch recorded in entry metadata and checkpoints
        git_commit: Commit recorded in checkpoints
        max_entries: Capacity hint reported in stats and checkpoint config
        auto_checkpoint: Checkpoint automatically every checkpoint_interval entries
        checkpoint_interval: Entries added between automatic checkpoints
    """

    session_id: str
    git_branch: str | None = None
    git_commit: str | None = None
    max_entries: int = 1000
    auto_checkpoint: bool = True
    checkpoint_interval: int = 10

    def __post_init__(self) -> None:
        if not self.session_id:
            raise ConfigurationError("session_id must be a non-empty string")
        if self.checkpoint_interval < 1:
            raise ConfigurationError(
                f"checkpoint_interval must be >= 1, got {self.checkpoint_interval}"
            )
        if self.max_entries < 1:
            raise ConfigurationError(f"max_entries must be >= 1, got {self.max_entries}")


def _section(cls: type, data: Any) -> Any:
    """Build a config section, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigurationError(f"{cls.__name__} section must be an object")
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError(f"unknown {cls.__name__} keys: {sorted(unknown)}")
    try:
        return cls(**data)
    except TypeError as e:
        raise ConfigurationError(f"invalid {cls.__name__} section: {e}") from e


@dataclass
class MemoryConfig:
    """Complete engine configuration."""

    rrf: RRFConfig = field(default_factory=RRFConfig)
    bm25: BM25Config = field(default_factory=BM25Config)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig)
    checkpoint: CheckpointConfig = field(default_factory=CheckpointConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MemoryConfig:
        return cls(
            rrf=_section(RRFConfig, data.get("rrf")),
            bm25=_section(BM25Config, data.get("bm25")),
            embedding=_section(EmbeddingConfig, data.get("embedding")),
            checkpoint=_section(CheckpointConfig, data.get("checkpoint")),
        )

    @classmethod
    def load(cls, path: Path | str | None = None) -> MemoryConfig:
        """
        Load configuration from a JSON file.

        Args:
            path: Config file; defaults to $HYBRID_MEMORY_CONFIG or
                ~/.hybrid-memory/config.json

        Returns:
            Loaded configuration, or defaults if the file does not exist

        Raises:
            ConfigurationError: If the file is not valid JSON or holds bad values
        """
        path = Path(path) if path is not None else default_config_path()

        if not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"invalid config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigurationError(f"config file {path} must hold a JSON object")

        return cls.from_dict(data)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def save(self, path: Path | str | None = None) -> None:
        """Save configuration to file."""
        path = Path(path) if path is not None else default_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2)


__all__ = [
    "BM25Config",
    "CONFIG_ENV_VAR",
    "CheckpointConfig",
    "EmbeddingConfig",
    "MemoryConfig",
    "RRFConfig",
    "SessionConfig",
    "SignalWeights",
    "default_config_path",
]
