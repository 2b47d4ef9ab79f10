"""
Unit tests for the tokenizer.
"""

from hybrid_memory.tokenizer import tokenize


class TestTokenize:
    """Tests for tokenize()."""

    def test_lowercases_and_splits(self) -> None:
        """Splits on non-alphanumerics and lowercases."""
        assert tokenize("Hash Passwords, before-storage!") == [
            "hash",
            "passwords",
            "before",
            "storage",
        ]

    def test_keeps_digits(self) -> None:
        assert tokenize("sha256 v2") == ["sha256", "v2"]

    def test_preserves_order_and_duplicates(self) -> None:
        """Repeated terms stay repeated so term frequency can be counted."""
        assert tokenize("a b a") == ["a", "b", "a"]

    def test_empty_and_punctuation_only(self) -> None:
        assert tokenize("") == []
        assert tokenize("  ...!?  ") == []

    def test_non_ascii_letters_are_separators(self) -> None:
        """Only [a-z0-9] survive; accented letters split tokens."""
        assert tokenize("café") == ["caf"]
        assert tokenize("naïve") == ["na", "ve"]

    def test_underscore_splits(self) -> None:
        assert tokenize("snake_case_name") == ["snake", "case", "name"]
