"""
Link model — one short code mapped to one destination URL.

The code is immutable once assigned. Links are never deleted; state lives
in process memory and is lost on restart.
"""

import datetime
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Link:
    """A shortened URL."""

    code: str
    original_url: str
    created_at: datetime.datetime
    is_custom: bool = False

    def __repr__(self) -> str:
        return f"<Link code={self.code!r} custom={self.is_custom}>"
