"""
Pydantic v2 response schemas for analytics endpoints.

All schemas read the in-memory dataclasses via from_attributes, so an
AggregateStats or HistoryEntry maps across without manual conversion.
"""

from __future__ import annotations

import datetime

from shortener.schemas.base import CamelModel


class AggregateStatsOut(CamelModel):
    """Summary across one collection. All zeros for an empty collection."""

    total: int
    average: float
    max: int
    min: int
    recent_count: int
    count: int
    computed_at: datetime.datetime


class HistoryEntryOut(CamelModel):
    timestamp: datetime.datetime
    client_identity: str
    user_agent: str


class ItemAnalyticsOut(CamelModel):
    """Counters and recent history for one short code or slug."""

    key: str
    kind: str
    count: int
    recent_count: int
    daily_count: int
    first_event_at: datetime.datetime | None = None
    last_event_at: datetime.datetime | None = None
    history: list[HistoryEntryOut]


class SystemStatsOut(CamelModel):
    total_urls: int
    total_clicks: int
    recent_urls: int
    recent_clicks: int
    total_posts: int
    total_views: int


class DashboardOut(CamelModel):
    urls: AggregateStatsOut
    blog: AggregateStatsOut
    system: SystemStatsOut
