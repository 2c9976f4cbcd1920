"""
Pydantic v2 schemas for link shortening.

Separation:
  • ShortenRequest  — what the CLIENT sends.
  • ShortenResponse — what the SERVER returns (code is always server-decided
    unless a valid, free custom code was requested).
"""

from __future__ import annotations

import datetime

from pydantic import ConfigDict, Field

from shortener.schemas.base import CamelModel


# ── Request schema ──────────────────────────────────────────
class ShortenRequest(CamelModel):
    """Payload accepted by POST /shorten."""

    model_config = ConfigDict(extra="forbid")

    original_url: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        examples=["https://example.com/a/very/long/path"],
        description="Destination URL (http or https).",
    )
    custom_code: str | None = Field(
        default=None,
        examples=["launch2026"],
        description="Optional 3-20 character alphanumeric code.",
    )


# ── Response schemas ────────────────────────────────────────
class LinkOut(CamelModel):
    short_code: str
    original_url: str
    created_at: datetime.datetime
    is_custom: bool


class ShortenResponse(LinkOut):
    """Returned by POST /shorten."""

    existing: bool = Field(
        default=False,
        description="True when the URL had already been shortened.",
    )
