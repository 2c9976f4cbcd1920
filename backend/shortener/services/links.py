"""
In-memory link store.

Creation rules:
  • URL must be http(s) with a host.
  • A custom code must match ^[a-zA-Z0-9]{3,20}$ and be free (conflict otherwise).
  • Without a custom code, a URL that was already shortened returns its
    existing code — looked up through a reverse index, not a scan.
  • Otherwise a fresh code comes from generate_unique_key().
"""

from __future__ import annotations

import enum
import logging
import re
import threading
from dataclasses import dataclass
from urllib.parse import urlparse

from shortener.core.clock import ClockPort
from shortener.models.link import Link
from shortener.services.keygen import DEFAULT_LENGTH, DEFAULT_MAX_ATTEMPTS, generate_unique_key

logger = logging.getLogger(__name__)

CUSTOM_CODE_PATTERN = re.compile(r"^[a-zA-Z0-9]{3,20}$")


class ShortenError(str, enum.Enum):
    INVALID_URL = "Please provide a valid URL"
    INVALID_CUSTOM_CODE = (
        "Custom code must be 3-20 characters long and contain only letters and numbers"
    )
    CODE_TAKEN = "Custom code already exists. Please choose a different one."


@dataclass(frozen=True, slots=True)
class ShortenResult:
    link: Link | None = None
    existing: bool = False
    error: ShortenError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def is_valid_url(value: str) -> bool:
    try:
        parsed = urlparse(value.strip())
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


class LinkStore:
    """Short code → Link, plus the reverse URL → code index."""

    def __init__(
        self,
        clock: ClockPort,
        code_length: int = DEFAULT_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._clock = clock
        self._code_length = code_length
        self._max_attempts = max_attempts
        self._links: dict[str, Link] = {}
        self._by_url: dict[str, str] = {}
        self._lock = threading.Lock()

    def create(self, original_url: str, custom_code: str | None = None) -> ShortenResult:
        """
        Shorten ``original_url``.

        Raises:
            CollisionExhausted: propagated from key generation (practically unreachable).
        """
        original_url = original_url.strip()
        if not is_valid_url(original_url):
            return ShortenResult(error=ShortenError.INVALID_URL)

        with self._lock:
            if custom_code:
                if not CUSTOM_CODE_PATTERN.match(custom_code):
                    return ShortenResult(error=ShortenError.INVALID_CUSTOM_CODE)
                if custom_code in self._links:
                    return ShortenResult(error=ShortenError.CODE_TAKEN)
                return ShortenResult(link=self._store(custom_code, original_url, is_custom=True))

            existing_code = self._by_url.get(original_url)
            if existing_code is not None:
                return ShortenResult(link=self._links[existing_code], existing=True)

            code = generate_unique_key(self._links, self._code_length, self._max_attempts)
            return ShortenResult(link=self._store(code, original_url, is_custom=False))

    def _store(self, code: str, original_url: str, is_custom: bool) -> Link:
        link = Link(
            code=code,
            original_url=original_url,
            created_at=self._clock.now(),
            is_custom=is_custom,
        )
        self._links[code] = link
        # Custom codes do not claim the reverse index for auto-generated lookups
        if not is_custom:
            self._by_url[original_url] = code
        logger.info("Created link %s (custom=%s)", code, is_custom)
        return link

    def get(self, code: str) -> Link | None:
        with self._lock:
            return self._links.get(code)

    def list(self) -> list[Link]:
        """Newest first."""
        with self._lock:
            links = list(self._links.values())
        return sorted(links, key=lambda link: link.created_at, reverse=True)

    def __contains__(self, code: object) -> bool:
        with self._lock:
            return code in self._links

    def __len__(self) -> int:
        with self._lock:
            return len(self._links)
