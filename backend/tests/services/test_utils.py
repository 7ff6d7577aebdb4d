"""Tests for service layer utility functions."""
import pytest

from services.utils import escape_like, estimate_tokens, normalize_tag_name, slugify


class TestSlugify:
    """Tests for slugify."""

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Coding", "coding"),
            ("Code Review & Refactoring", "code-review-refactoring"),
            ("  padded  name  ", "padded-name"),
            ("snake_case_name", "snake-case-name"),
            ("already-hyphenated", "already-hyphenated"),
            ("--edges--", "edges"),
            ("Café Notes", "caf-notes"),
            ("GPT-4 prompts!", "gpt-4-prompts"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, name: str, expected: str) -> None:
        """Names become lowercase hyphenated slugs."""
        assert slugify(name) == expected

    def test_slugify_is_idempotent(self) -> None:
        """Slugifying a slug changes nothing."""
        slug = slugify("Data Science & ML")
        assert slugify(slug) == slug


class TestEstimateTokens:
    """Tests for estimate_tokens."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [(None, 0), ("", 0), ("a", 1), ("abcd", 1), ("abcde", 2), ("x" * 400, 100)],
    )
    def test_estimate_tokens(self, text: str | None, expected: int) -> None:
        """Token estimate is ceil(len / 4)."""
        assert estimate_tokens(text) == expected


class TestEscapeLike:
    """Tests for escape_like."""

    def test_escapes_wildcards(self) -> None:
        """% and _ are escaped."""
        assert escape_like("100%_done") == "100\\%\\_done"

    def test_escapes_backslash_first(self) -> None:
        """Existing backslashes are doubled before wildcards are escaped."""
        assert escape_like("a\\b%") == "a\\\\b\\%"

    def test_plain_text_unchanged(self) -> None:
        """Text without special characters passes through."""
        assert escape_like("refactor") == "refactor"


def test_normalize_tag_name() -> None:
    """Tag names are trimmed and lowercased."""
    assert normalize_tag_name("  Machine-Learning ") == "machine-learning"
