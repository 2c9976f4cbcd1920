"""
Short code and slug generation.

Both generators follow the same pattern: try a candidate, check it against
the existing keys, retry a bounded number of times, then widen the space.

  • Short codes: random alphanumerics; after KEY_MAX_ATTEMPTS collisions the
    length grows by one and the attempt counter resets.
  • Slugs: deterministic base derived from the title, then base-2, base-3 …
    and finally base-<epoch ms> as the last resort.

Codes use the `random` module on purpose — they are identifiers, not
secrets, and only need to be uniformly distributed.
"""

from __future__ import annotations

import logging
import random
import re
import string
import time
from collections.abc import Container

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_letters + string.digits  # 62 symbols

DEFAULT_LENGTH = 6
DEFAULT_MAX_ATTEMPTS = 10
MAX_KEY_LENGTH = 32
SLUG_MAX_LENGTH = 50
EMPTY_SLUG_FALLBACK = "post"

_SLUG_STRIP = re.compile(r"[^a-z0-9 -]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")


class CollisionExhausted(Exception):
    """Raised when no free key exists up to MAX_KEY_LENGTH."""


def generate_random_key(length: int, rng: random.Random | None = None) -> str:
    """Draw ``length`` characters uniformly from the 62-symbol alphabet."""
    if length <= 0:
        raise ValueError("length must be positive")
    chooser = rng or random
    return "".join(chooser.choice(ALPHABET) for _ in range(length))


def generate_unique_key(
    existing_keys: Container[str],
    length: int = DEFAULT_LENGTH,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    rng: random.Random | None = None,
) -> str:
    """
    Return a random key of at least ``length`` characters not in ``existing_keys``.

    Raises:
        CollisionExhausted: if every length up to MAX_KEY_LENGTH collided
            ``max_attempts`` times in a row.
    """
    if max_attempts <= 0:
        raise ValueError("max_attempts must be positive")

    current = length
    while current <= MAX_KEY_LENGTH:
        for _ in range(max_attempts):
            key = generate_random_key(current, rng)
            if key not in existing_keys:
                return key
        logger.debug("No free key of length %d after %d attempts", current, max_attempts)
        current += 1

    raise CollisionExhausted(
        f"No free key found between length {length} and {MAX_KEY_LENGTH}"
    )


def generate_slug_from_title(title: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """
    Lossy, deterministic title → slug transform.

    lowercase → drop anything outside [a-z0-9 -] → whitespace runs to "-"
    → collapse "-" runs → trim "-" → truncate.
    """
    slug = _SLUG_STRIP.sub("", title.lower())
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    # Truncation can expose a hyphen, so trim again afterwards
    return slug.strip("-")[:max_length].strip("-")


def generate_unique_slug(
    title: str,
    existing_slugs: Container[str],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    max_length: int = SLUG_MAX_LENGTH,
) -> str:
    """
    Return a slug for ``title`` that is not in ``existing_slugs``.

    Never fails: after base, base-2 … base-(max_attempts + 1) all collide,
    falls back to base-<current epoch milliseconds>.
    """
    base = generate_slug_from_title(title, max_length) or EMPTY_SLUG_FALLBACK

    if base not in existing_slugs:
        return base

    for i in range(2, max_attempts + 2):
        candidate = f"{base}-{i}"
        if candidate not in existing_slugs:
            return candidate

    fallback = f"{base}-{time.time_ns() // 1_000_000}"
    logger.info("Slug %r exhausted numbered variants, using %r", base, fallback)
    return fallback
