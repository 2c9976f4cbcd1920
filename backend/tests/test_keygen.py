"""
Tests for short code and slug generation.
"""

import random
import re

import pytest

from shortener.services import keygen
from shortener.services.keygen import (
    ALPHABET,
    CollisionExhausted,
    generate_random_key,
    generate_slug_from_title,
    generate_unique_key,
    generate_unique_slug,
)


class _Everything:
    """A key set that claims to contain every key."""

    def __contains__(self, item):
        return True


class _ShortKeysTaken:
    """Every key shorter than ``length`` is taken."""

    def __init__(self, length):
        self.length = length

    def __contains__(self, item):
        return len(item) < self.length


class TestRandomKey:
    def test_length_and_alphabet(self):
        key = generate_random_key(12, random.Random(1))
        assert len(key) == 12
        assert set(key) <= set(ALPHABET)

    def test_alphabet_is_62_symbols(self):
        assert len(set(ALPHABET)) == 62

    @pytest.mark.parametrize("length", [0, -3])
    def test_rejects_non_positive_length(self, length):
        with pytest.raises(ValueError):
            generate_random_key(length)


class TestUniqueKey:
    def test_never_returns_existing_key(self):
        rng = random.Random(42)
        existing = set()
        # Seed the space densely at length 2 so collisions actually happen
        for _ in range(10_000):
            key = generate_unique_key(existing, length=2, max_attempts=3, rng=rng)
            assert key not in existing
            assert len(key) >= 2
            existing.add(key)

    def test_grows_length_after_repeated_collisions(self):
        key = generate_unique_key(_ShortKeysTaken(9), length=6, max_attempts=2)
        assert len(key) == 9

    def test_gives_up_past_max_key_length(self):
        with pytest.raises(CollisionExhausted):
            generate_unique_key(_Everything(), length=keygen.MAX_KEY_LENGTH - 1, max_attempts=1)

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            generate_unique_key(set(), max_attempts=0)


class TestSlugFromTitle:
    @pytest.mark.parametrize(
        "title, expected",
        [
            ("Hello World", "hello-world"),
            ("  Spaces   everywhere  ", "spaces-everywhere"),
            ("Test!!", "test"),
            ("a -- b", "a-b"),
            ("-leading and trailing-", "leading-and-trailing"),
            ("Ünïcödé ok", "ncd-ok"),
        ],
    )
    def test_transform(self, title, expected):
        assert generate_slug_from_title(title) == expected

    def test_truncates(self):
        slug = generate_slug_from_title("word " * 40, max_length=50)
        assert len(slug) <= 50
        assert not slug.endswith("-")

    def test_no_trailing_hyphen_after_truncation(self):
        assert generate_slug_from_title("abcd efgh", max_length=5) == "abcd"

    def test_only_slug_characters(self):
        slug = generate_slug_from_title("What's new in 2026? (Part #3)")
        assert re.fullmatch(r"[a-z0-9-]+", slug)


class TestUniqueSlug:
    def test_base_when_free(self):
        assert generate_unique_slug("Test!!", set()) == "test"

    def test_numbered_suffix(self):
        assert generate_unique_slug("Test!!", {"test", "test-2", "test-3"}) == "test-4"

    def test_timestamp_fallback_when_numbers_exhausted(self, monkeypatch):
        monkeypatch.setattr(keygen.time, "time_ns", lambda: 1_700_000_000_123_456_789)
        taken = {"test"} | {f"test-{i}" for i in range(2, 4)}
        assert generate_unique_slug("Test", taken, max_attempts=2) == "test-1700000000123"

    def test_empty_title_uses_fallback_base(self):
        assert generate_unique_slug("!!!", set()) == keygen.EMPTY_SLUG_FALLBACK
