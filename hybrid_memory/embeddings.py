"""
Embedding providers.

The engine never computes embeddings itself: a provider is a required
dependency of MemoryStore. This module defines the provider interface, an
adapter for plain functions, and a deterministic feature-hashing provider
for tests and offline use.
"""

from __future__ import annotations

import hashlib
import math
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence

from .errors import EmbeddingGenerationError
from .tokenizer import tokenize


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    @abstractmethod
    def embed(self, text: str) -> list[float]:
        """Compute embedding for single text."""

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Compute embeddings for batch of texts."""
        return [self.embed(text) for text in texts]


class CallableEmbeddingProvider(EmbeddingProvider):
    """
    Adapt a plain ``embed(text) -> vector`` function to the provider interface.

    Args:
        embed_fn: Function mapping text to a vector
        batch_fn: Optional function embedding a list of texts in one call
    """

    def __init__(
        self,
        embed_fn: Callable[[str], Sequence[float]],
        batch_fn: Callable[[list[str]], Sequence[Sequence[float]]] | None = None,
    ):
        self._embed_fn = embed_fn
        self._batch_fn = batch_fn

    def embed(self, text: str) -> list[float]:
        return list(self._embed_fn(text))

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if self._batch_fn is None:
            return super().embed_batch(texts)
        return [list(vector) for vector in self._batch_fn(texts)]


class HashEmbeddingProvider(EmbeddingProvider):
    """
    Deterministic bag-of-words embeddings via feature hashing.

    Each token is hashed to a signed bucket and the resulting vector is
    normalized, so texts sharing words have positive cosine similarity.
    Text with no tokens embeds to the zero vector.
    """

    def __init__(self, dimensions: int = 384):
        self.dimensions = dimensions
        self.embed_call_count = 0
        self.batch_call_count = 0

    def embed(self, text: str) -> list[float]:
        self.embed_call_count += 1
        return self._generate_embedding(text)

    def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.batch_call_count += 1
        return [self._generate_embedding(text) for text in texts]

    def _generate_embedding(self, text: str) -> list[float]:
        vector = [0.0] * self.dimensions
        for token in tokenize(text):
            digest = hashlib.sha256(token.encode()).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimensions
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign

        magnitude = math.sqrt(sum(x * x for x in vector))
        if magnitude > 0:
            return [x / magnitude for x in vector]
        return vector

    def reset_counts(self) -> None:
        """Reset call counters."""
        self.embed_call_count = 0
        self.batch_call_count = 0


def check_vector(vector: Sequence[float], dimensions: int) -> list[float]:
    """Coerce a vector to floats; EmbeddingGenerationError unless it is finite and sized."""
    try:
        values = [float(x) for x in vector]
    except (TypeError, ValueError) as e:
        raise EmbeddingGenerationError(f"embedding is not a numeric vector: {e}") from e
    if len(values) != dimensions:
        raise EmbeddingGenerationError(
            f"embedding has {len(values)} dimensions, expected {dimensions}"
        )
    if not all(math.isfinite(x) for x in values):
        raise EmbeddingGenerationError("embedding contains non-finite values")
    return values


def generate_embedding(provider: EmbeddingProvider, text: str, dimensions: int) -> list[float]:
    """
    Embed one text and check the result.

    Raises:
        EmbeddingGenerationError: If the provider fails or returns a vector of
            the wrong dimensionality
    """
    try:
        vector = provider.embed(text)
    except EmbeddingGenerationError:
        raise
    except Exception as e:
        raise EmbeddingGenerationError(f"embedding provider failed: {e}") from e
    return check_vector(vector, dimensions)


def generate_embeddings(
    provider: EmbeddingProvider, texts: list[str], dimensions: int
) -> list[list[float]]:
    """Batch counterpart of generate_embedding."""
    if not texts:
        return []
    try:
        vectors = provider.embed_batch(texts)
    except EmbeddingGenerationError:
        raise
    except Exception as e:
        raise EmbeddingGenerationError(f"embedding provider failed: {e}") from e

    vectors = list(vectors)
    if len(vectors) != len(texts):
        raise EmbeddingGenerationError(
            f"provider returned {len(vectors)} embeddings for {len(texts)} texts"
        )
    return [check_vector(vector, dimensions) for vector in vectors]


__all__ = [
    "CallableEmbeddingProvider",
    "EmbeddingProvider",
    "HashEmbeddingProvider",
    "check_vector",
    "generate_embedding",
    "generate_embeddings",
]
