"""Pydantic v2 schemas for blog posts."""

from __future__ import annotations

import datetime

from pydantic import ConfigDict, Field

from shortener.schemas.base import CamelModel


class PostCreate(CamelModel):
    """Payload accepted by POST /admin/api/blog."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=200, examples=["Hello World"])
    content: str = Field(..., min_length=1)
    author: str | None = Field(default=None, max_length=100)


class PostSummaryOut(CamelModel):
    id: str
    slug: str
    title: str
    excerpt: str
    created_at: datetime.datetime
    author: str | None = None


class PostOut(PostSummaryOut):
    content: str
