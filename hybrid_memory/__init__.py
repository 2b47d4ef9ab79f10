"""
hybrid-memory: reciprocal-rank-fusion memory search.

Combines BM25, vector similarity, recency and importance into one ranking,
with JSON checkpoints and per-session memory layers on top.
"""

from .bm25 import BM25Index
from .checkpoint import CheckpointData, CheckpointManager, CheckpointMetadata, CheckpointStats
from .config import (
    BM25Config,
    CheckpointConfig,
    EmbeddingConfig,
    MemoryConfig,
    RRFConfig,
    SessionConfig,
    SignalWeights,
)
from .embeddings import CallableEmbeddingProvider, EmbeddingProvider, HashEmbeddingProvider
from .errors import (
    CheckpointIOError,
    ConfigurationError,
    EmbeddingGenerationError,
    HybridMemoryError,
    NotFoundError,
)
from .fusion import RankFusion
from .scoring import RecencyScorer, cosine_similarity
from .session import SessionMemoryManager, create_session_memory
from .store import MemoryStore
from .tokenizer import tokenize
from .types import (
    EntryMetadata,
    MemoryEntry,
    MemoryLayer,
    MemoryStats,
    Message,
    MessageRole,
    SearchResult,
    SignalScores,
)

__version__ = "0.1.0"

__all__ = [
    # Engine
    "BM25Index",
    "MemoryStore",
    "RankFusion",
    "RecencyScorer",
    "cosine_similarity",
    "tokenize",
    # Checkpoints and sessions
    "CheckpointData",
    "CheckpointManager",
    "CheckpointMetadata",
    "CheckpointStats",
    "SessionMemoryManager",
    "create_session_memory",
    # Embeddings
    "CallableEmbeddingProvider",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    # Configuration
    "BM25Config",
    "CheckpointConfig",
    "EmbeddingConfig",
    "MemoryConfig",
    "RRFConfig",
    "SessionConfig",
    "SignalWeights",
    # Types
    "EntryMetadata",
    "MemoryEntry",
    "MemoryLayer",
    "MemoryStats",
    "Message",
    "MessageRole",
    "SearchResult",
    "SignalScores",
    # Errors
    "CheckpointIOError",
    "ConfigurationError",
    "EmbeddingGenerationError",
    "HybridMemoryError",
    "NotFoundError",
]
