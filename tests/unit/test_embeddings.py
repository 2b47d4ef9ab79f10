"""
Unit tests for embedding providers and checked generation.
"""

import math

import pytest

from hybrid_memory.embeddings import (
    CallableEmbeddingProvider,
    EmbeddingProvider,
    HashEmbeddingProvider,
    check_vector,
    generate_embedding,
    generate_embeddings,
)
from hybrid_memory.errors import EmbeddingGenerationError
from hybrid_memory.scoring import cosine_similarity


class TestHashEmbeddingProvider:
    """Tests for the deterministic feature-hashing provider."""

    def test_dimensions(self) -> None:
        provider = HashEmbeddingProvider(dimensions=32)
        assert len(provider.embed("hello world")) == 32

    def test_deterministic(self) -> None:
        a = HashEmbeddingProvider(dimensions=64).embed("hash passwords")
        b = HashEmbeddingProvider(dimensions=64).embed("hash passwords")
        assert a == b

    def test_normalized(self) -> None:
        vector = HashEmbeddingProvider().embed("some text to embed")
        assert math.sqrt(sum(x * x for x in vector)) == pytest.approx(1.0)

    def test_empty_text_is_zero_vector(self) -> None:
        vector = HashEmbeddingProvider(dimensions=8).embed("!!!")
        assert vector == [0.0] * 8

    def test_shared_words_are_similar(self) -> None:
        provider = HashEmbeddingProvider(dimensions=256)
        query = provider.embed("hash passwords")
        related = provider.embed("hash passwords before storage")
        assert cosine_similarity(query, related) > 0.4

    def test_case_insensitive(self) -> None:
        provider = HashEmbeddingProvider()
        assert provider.embed("Hash") == provider.embed("hash")

    def test_call_counts(self) -> None:
        provider = HashEmbeddingProvider()
        provider.embed("a")
        provider.embed_batch(["b", "c"])
        assert provider.embed_call_count == 1
        assert provider.batch_call_count == 1

        provider.reset_counts()
        assert provider.embed_call_count == 0
        assert provider.batch_call_count == 0


class TestCallableEmbeddingProvider:
    """Tests for the function adapter."""

    def test_wraps_function(self) -> None:
        provider = CallableEmbeddingProvider(lambda text: (float(len(text)), 1.0))
        assert provider.embed("abc") == [3.0, 1.0]

    def test_batch_falls_back_to_embed(self) -> None:
        provider = CallableEmbeddingProvider(lambda text: [float(len(text))])
        assert provider.embed_batch(["a", "bb"]) == [[1.0], [2.0]]

    def test_batch_function_used_when_given(self) -> None:
        calls = []

        def batch(texts):
            calls.append(list(texts))
            return [[0.0] for _ in texts]

        provider = CallableEmbeddingProvider(lambda text: [1.0], batch_fn=batch)
        assert provider.embed_batch(["a", "b"]) == [[0.0], [0.0]]
        assert calls == [["a", "b"]]

    def test_is_provider(self) -> None:
        assert isinstance(CallableEmbeddingProvider(lambda t: [0.0]), EmbeddingProvider)


class TestGenerateEmbedding:
    """Tests for checked embedding generation."""

    def test_returns_floats(self) -> None:
        provider = CallableEmbeddingProvider(lambda text: [1, 2])
        assert generate_embedding(provider, "x", 2) == [1.0, 2.0]

    def test_wrong_dimensions(self) -> None:
        provider = CallableEmbeddingProvider(lambda text: [1.0, 2.0])
        with pytest.raises(EmbeddingGenerationError, match="expected 3"):
            generate_embedding(provider, "x", 3)

    def test_non_finite_values(self) -> None:
        provider = CallableEmbeddingProvider(lambda text: [float("nan")])
        with pytest.raises(EmbeddingGenerationError, match="non-finite"):
            generate_embedding(provider, "x", 1)

    def test_provider_exception_is_wrapped(self) -> None:
        def boom(text):
            raise RuntimeError("model offline")

        with pytest.raises(EmbeddingGenerationError, match="model offline") as exc_info:
            generate_embedding(CallableEmbeddingProvider(boom), "x", 1)
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    def test_batch_empty_skips_provider(self) -> None:
        provider = HashEmbeddingProvider()
        assert generate_embeddings(provider, [], 384) == []
        assert provider.batch_call_count == 0

    def test_batch_count_mismatch(self) -> None:
        provider = CallableEmbeddingProvider(lambda t: [0.0], batch_fn=lambda texts: [[0.0]])
        with pytest.raises(EmbeddingGenerationError, match="2 texts"):
            generate_embeddings(provider, ["a", "b"], 1)

    def test_batch_checks_each_vector(self) -> None:
        provider = CallableEmbeddingProvider(
            lambda t: [0.0], batch_fn=lambda texts: [[0.0], [0.0, 1.0]]
        )
        with pytest.raises(EmbeddingGenerationError):
            generate_embeddings(provider, ["a", "b"], 1)


class TestCheckVector:
    """Tests for validation of caller-supplied vectors."""

    def test_coerces_to_floats(self) -> None:
        assert check_vector([1, 2], 2) == [1.0, 2.0]

    def test_non_numeric(self) -> None:
        with pytest.raises(EmbeddingGenerationError, match="not a numeric vector"):
            check_vector(["a", "b"], 2)

    def test_non_finite(self) -> None:
        with pytest.raises(EmbeddingGenerationError, match="non-finite"):
            check_vector([1.0, float("-inf")], 2)
