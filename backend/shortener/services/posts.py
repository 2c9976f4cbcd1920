"""In-memory blog post store, keyed by id and by slug."""

from __future__ import annotations

import logging
import secrets
import threading

from shortener.core.clock import ClockPort
from shortener.models.post import Post
from shortener.services.keygen import DEFAULT_MAX_ATTEMPTS, SLUG_MAX_LENGTH, generate_unique_slug

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200


def make_excerpt(content: str) -> str:
    if len(content) <= EXCERPT_LENGTH:
        return content
    return content[:EXCERPT_LENGTH] + "..."


class PostStore:
    def __init__(
        self,
        clock: ClockPort,
        slug_max_length: int = SLUG_MAX_LENGTH,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ) -> None:
        self._clock = clock
        self._slug_max_length = slug_max_length
        self._max_attempts = max_attempts
        self._posts: dict[str, Post] = {}
        self._by_slug: dict[str, str] = {}
        self._lock = threading.Lock()

    def create(self, title: str, content: str, author: str | None = None) -> Post:
        with self._lock:
            slug = generate_unique_slug(
                title,
                self._by_slug,
                max_attempts=self._max_attempts,
                max_length=self._slug_max_length,
            )
            post = Post(
                id=f"post_{secrets.token_hex(6)}",
                slug=slug,
                title=title.strip(),
                content=content,
                excerpt=make_excerpt(content),
                created_at=self._clock.now(),
                author=author,
            )
            self._posts[post.id] = post
            self._by_slug[slug] = post.id

        logger.info("Created post %s with slug %r", post.id, slug)
        return post

    def get(self, post_id: str) -> Post | None:
        with self._lock:
            return self._posts.get(post_id)

    def get_by_slug(self, slug: str) -> Post | None:
        with self._lock:
            post_id = self._by_slug.get(slug)
            return self._posts.get(post_id) if post_id else None

    def list(self) -> list[Post]:
        """Newest first."""
        with self._lock:
            posts = list(self._posts.values())
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    def __len__(self) -> int:
        with self._lock:
            return len(self._posts)
