"""
Bounded per-key event history.

One AnalyticsStore per collection: clicks on short links ("urls") and
views of blog posts ("blog"). Records are created lazily on the first
event for a key and never removed.

Every recorded event synchronously calls ``on_change`` — wired to
AnalyticsAggregator.invalidate — before returning.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager

from shortener.core.clock import ClockPort
from shortener.models.analytics import AnalyticsRecord, EventKind, HistoryEntry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


def _noop() -> None:
    return None


class AnalyticsStore:
    """Analytics records for one collection, keyed by short code or slug."""

    def __init__(
        self,
        collection_id: str,
        kind: EventKind,
        clock: ClockPort,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        on_change: Callable[[], None] = _noop,
    ) -> None:
        if history_limit <= 0:
            raise ValueError("history_limit must be positive")
        self.collection_id = collection_id
        self.kind = kind
        self._clock = clock
        self._history_limit = history_limit
        self._on_change = on_change
        self._records: dict[str, AnalyticsRecord] = {}
        self._lock = threading.RLock()

    @property
    def history_limit(self) -> int:
        return self._history_limit

    def record_event(
        self,
        key: str,
        client_identity: str,
        user_agent: str,
        kind: EventKind | None = None,
    ) -> AnalyticsRecord:
        """
        Count one event against ``key`` and append it to the bounded history.

        ``kind`` defaults to the store's kind; a mismatch is a programming
        error (a view recorded into the click store).
        """
        if kind is not None and kind is not self.kind:
            raise ValueError(f"{self.collection_id} records {self.kind.value} events, got {kind.value}")

        with self._lock:
            # Read under the lock so appends stay chronological
            now = self._clock.now()
            record = self._records.get(key)
            if record is None:
                record = AnalyticsRecord(key=key, kind=self.kind, history_limit=self._history_limit)
                self._records[key] = record
            record.add(HistoryEntry(timestamp=now, client_identity=client_identity, user_agent=user_agent))
            self._on_change()

        return record

    def get_record(self, key: str) -> AnalyticsRecord | None:
        with self._lock:
            return self._records.get(key)

    @contextmanager
    def locked(self) -> Iterator[list[AnalyticsRecord]]:
        """Hold the store lock while the caller reads every record."""
        with self._lock:
            yield list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._records
