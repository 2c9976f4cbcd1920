"""
Analytics report builders for the admin dashboard.

Deterministic read-only views over the stores: nothing here mutates
state or touches the aggregator cache.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any

from shortener.services.aggregator import count_recent_events
from shortener.services.history import AnalyticsStore

if TYPE_CHECKING:
    from shortener.core.context import ServiceContext

HOUR = datetime.timedelta(hours=1)
DAY = datetime.timedelta(days=1)

# How many history entries the per-item view returns
_HISTORY_TAIL = 10


def build_item_report(
    store: AnalyticsStore,
    key: str,
    now: datetime.datetime,
) -> dict[str, Any]:
    """
    Counters for one key: total, last hour, last 24h, first/last event,
    and the most recent history entries (oldest first).

    A key that exists but was never hit gets an all-zero report.
    """
    record = store.get_record(key)
    if record is None:
        return {
            "key": key,
            "kind": store.kind.value,
            "count": 0,
            "recent_count": 0,
            "daily_count": 0,
            "first_event_at": None,
            "last_event_at": None,
            "history": [],
        }

    with store.locked():
        return {
            "key": key,
            "kind": record.kind.value,
            "count": record.count,
            "recent_count": count_recent_events(record.history, HOUR, now),
            "daily_count": count_recent_events(record.history, DAY, now),
            "first_event_at": record.first_event_at,
            "last_event_at": record.last_event_at,
            "history": record.recent_history(_HISTORY_TAIL),
        }


def build_system_stats(context: ServiceContext) -> dict[str, int]:
    """Totals across links, posts, clicks and views; 'recent' means last 24h."""
    now = context.clock.now()
    cutoff = now - DAY

    links = context.links.list()
    recent_urls = sum(1 for link in links if link.created_at >= cutoff)

    with context.clicks.locked() as click_records:
        total_clicks = sum(r.count for r in click_records)
        recent_clicks = sum(count_recent_events(r.history, DAY, now) for r in click_records)

    with context.views.locked() as view_records:
        total_views = sum(r.count for r in view_records)

    return {
        "total_urls": len(links),
        "total_clicks": total_clicks,
        "recent_urls": recent_urls,
        "recent_clicks": recent_clicks,
        "total_posts": len(context.posts),
        "total_views": total_views,
    }
