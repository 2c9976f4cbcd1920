"""
Aggregate statistics over an analytics collection, with a short-lived cache.

Stats are cheap to recompute but the dashboard polls them constantly, so
each collection ("urls", "blog") keeps one cached AggregateStats for
ANALYTICS_CACHE_MS.

CACHE COHERENCE:
  Any recorded event anywhere clears every cached entry (coarse-grained),
  and bumps a generation counter. A computation that started before an
  invalidation never writes its result back, so a stale snapshot cannot
  be re-cached after the event that made it stale.
"""

from __future__ import annotations

import datetime
import logging
import threading
from collections.abc import Reversible, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from shortener.core.clock import ClockPort
from shortener.models.analytics import HistoryEntry

if TYPE_CHECKING:
    from shortener.services.history import AnalyticsStore

logger = logging.getLogger(__name__)

RECENT_WINDOW = datetime.timedelta(hours=24)


@dataclass(frozen=True, slots=True)
class AggregateStats:
    """Summary across every record of one collection."""

    total: int
    average: float
    max: int
    min: int
    recent_count: int
    count: int
    computed_at: datetime.datetime


def count_recent_events(
    history: Reversible[HistoryEntry],
    window: datetime.timedelta,
    now: datetime.datetime,
) -> int:
    """
    Count entries with ``timestamp >= now - window``.

    Walks from the newest entry backwards and stops at the first one older
    than the cutoff. Correct only because history is chronological.
    """
    cutoff = now - window
    count = 0
    for entry in reversed(history):
        if entry.timestamp < cutoff:
            break
        count += 1
    return count


def _empty_stats(now: datetime.datetime) -> AggregateStats:
    return AggregateStats(
        total=0, average=0.0, max=0, min=0, recent_count=0, count=0, computed_at=now,
    )


class AnalyticsAggregator:
    """Computes and caches AggregateStats per collection."""

    def __init__(
        self,
        clock: ClockPort,
        cache_duration: datetime.timedelta = datetime.timedelta(seconds=10),
        recent_window: datetime.timedelta = RECENT_WINDOW,
    ) -> None:
        self._clock = clock
        self._cache_duration = cache_duration
        self._recent_window = recent_window
        self._cache: dict[str, AggregateStats] = {}
        self._generation = 0
        self._lock = threading.Lock()

    # ── Cache ───────────────────────────────────────────────
    def invalidate(self) -> None:
        """Drop every cached entry. Called synchronously on each recorded event."""
        with self._lock:
            self._cache.clear()
            self._generation += 1

    def cached(self, collection_id: str) -> AggregateStats | None:
        """Return the cached stats for a collection if still fresh."""
        with self._lock:
            stats = self._cache.get(collection_id)
            if stats is None:
                return None
            if self._clock.now() - stats.computed_at >= self._cache_duration:
                del self._cache[collection_id]
                return None
            return stats

    # ── Computation ─────────────────────────────────────────
    def compute_stats(self, store: AnalyticsStore, use_cache: bool = True) -> AggregateStats:
        """
        Return stats for ``store``'s collection.

        Empty collections short-circuit to an all-zero result instead of
        reducing over nothing (min would otherwise stay at +infinity).
        """
        collection_id = store.collection_id

        if use_cache:
            hit = self.cached(collection_id)
            if hit is not None:
                logger.debug("Stats cache hit for %s", collection_id)
                return hit

        with self._lock:
            generation = self._generation

        now = self._clock.now()
        with store.locked() as records:
            stats = self._reduce(records, now) if records else _empty_stats(now)

        if use_cache:
            with self._lock:
                if generation == self._generation:
                    self._cache[collection_id] = stats
                else:
                    logger.debug("Discarding stats for %s computed across an invalidation", collection_id)

        return stats

    def _reduce(self, records: Sequence, now: datetime.datetime) -> AggregateStats:
        """Single pass over a non-empty list of records."""
        total = 0
        count = 0
        recent = 0
        highest = 0
        lowest = float("inf")

        for record in records:
            total += record.count
            count += 1
            highest = max(highest, record.count)
            lowest = min(lowest, record.count)
            recent += count_recent_events(record.history, self._recent_window, now)

        return AggregateStats(
            total=total,
            average=total / count,
            max=highest,
            min=int(lowest),
            recent_count=recent,
            count=count,
            computed_at=now,
        )
