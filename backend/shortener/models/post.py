"""
Blog post model — the second kind of tracked item, keyed by slug.
"""

import datetime
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Post:
    """A published blog post."""

    id: str
    slug: str
    title: str
    content: str
    excerpt: str
    created_at: datetime.datetime
    author: str | None = None

    def __repr__(self) -> str:
        return f"<Post id={self.id} slug={self.slug!r}>"
