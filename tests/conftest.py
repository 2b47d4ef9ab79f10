"""
Pytest configuration and fixtures for hybrid-memory tests.
"""

import os
import sys
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

# Add project root to path so the package imports without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

# -----------------------------------------------------------------------------
# Hypothesis Profiles for Test Performance
# -----------------------------------------------------------------------------
# Usage: HYPOTHESIS_PROFILE=fast pytest tests/
#
# Profiles:
#   fast   - 10 examples, minimal phases (quick iteration)
#   dev    - 50 examples, standard phases (default for local development)
#   ci     - 100 examples, all phases, no deadline (thorough CI testing)
#
# Individual tests may override with @settings(max_examples=N)
# -----------------------------------------------------------------------------

settings.register_profile(
    "fast",
    max_examples=10,
    phases=[Phase.generate],  # Skip shrinking for speed
    verbosity=Verbosity.quiet,
    deadline=None,
)

settings.register_profile(
    "dev",
    max_examples=50,
    phases=[Phase.generate, Phase.target, Phase.shrink],
    verbosity=Verbosity.normal,
    deadline=None,
)

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.generate, Phase.target, Phase.shrink, Phase.explain],
    verbosity=Verbosity.normal,
    deadline=None,  # CI machines vary in speed
)

# Load profile from environment, default to 'dev'
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))

from hybrid_memory.checkpoint import CheckpointManager
from hybrid_memory.config import CheckpointConfig, MemoryConfig, SessionConfig
from hybrid_memory.embeddings import HashEmbeddingProvider
from hybrid_memory.session import SessionMemoryManager
from hybrid_memory.store import MemoryStore

# 2026-01-01T00:00:00Z
BASE_TIME = 1_767_225_600.0


class FrozenClock:
    """Manually advanced clock for deterministic recency scoring."""

    def __init__(self, now: float = BASE_TIME):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Provide a frozen clock."""
    return FrozenClock()


@pytest.fixture
def provider():
    """Provide a deterministic 64-dimensional embedding provider."""
    return HashEmbeddingProvider(dimensions=64)


@pytest.fixture
def memory_config(tmp_path):
    """Provide a config matching the provider fixture, checkpointing under tmp_path."""
    return MemoryConfig.from_dict(
        {
            "embedding": {"dimensions": 64},
            "checkpoint": {"checkpoint_dir": str(tmp_path / "checkpoints")},
        }
    )


@pytest.fixture
def store(provider, memory_config, clock):
    """Provide an empty store on a frozen clock."""
    return MemoryStore(provider, memory_config, clock=clock)


@pytest.fixture
def checkpoint_manager(tmp_path, clock):
    """Provide a checkpoint manager writing to a temp directory."""
    return CheckpointManager(
        CheckpointConfig(checkpoint_dir=str(tmp_path / "checkpoints"), max_checkpoints=5),
        clock=clock,
    )


@pytest.fixture
def session_config():
    """Provide a session config with auto-checkpointing off."""
    return SessionConfig(
        session_id="session-1",
        git_branch="main",
        git_commit="abc1234",
        auto_checkpoint=False,
    )


@pytest.fixture
def session(session_config, store, checkpoint_manager):
    """Provide a session manager wired to the store and checkpoint fixtures."""
    return SessionMemoryManager(session_config, store, checkpoint_manager)


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "hypothesis: property-based tests")
    config.addinivalue_line("markers", "slow: tests that take >1s")
