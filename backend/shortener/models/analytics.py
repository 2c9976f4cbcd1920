"""
Analytics record — one per tracked item (short link or blog post).

Each record carries a cumulative counter plus a bounded, chronologically
ordered history window. The counter never decreases; the history keeps
only the most recent HISTORY_LIMIT events, evicting the oldest one at a
time.

Invariant:
  len(history) <= min(count, history limit)
"""

from __future__ import annotations

import datetime
import enum
from collections import deque
from dataclasses import dataclass, field
from typing import Deque


class EventKind(str, enum.Enum):
    """What a recorded interaction was."""

    CLICK = "click"
    VIEW = "view"


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """One recorded interaction."""

    timestamp: datetime.datetime
    client_identity: str
    user_agent: str


@dataclass(slots=True)
class AnalyticsRecord:
    """Counter + bounded history for one key.

    Attributes:
        key:            Short code or slug this record belongs to.
        kind:           CLICK for links, VIEW for posts.
        count:          Cumulative number of events ever recorded.
        first_event_at: Set on the first event, never overwritten.
        last_event_at:  Timestamp of the most recent event.
        history:        Most recent events, oldest first.
    """

    key: str
    kind: EventKind
    history_limit: int
    count: int = 0
    first_event_at: datetime.datetime | None = None
    last_event_at: datetime.datetime | None = None
    history: Deque[HistoryEntry] = field(init=False)

    def __post_init__(self) -> None:
        if self.history_limit <= 0:
            raise ValueError("history_limit must be positive")
        # maxlen drops exactly one entry from the left per overflowing append
        self.history = deque(maxlen=self.history_limit)

    def add(self, entry: HistoryEntry) -> None:
        self.count += 1
        self.last_event_at = entry.timestamp
        if self.first_event_at is None:
            self.first_event_at = entry.timestamp
        self.history.append(entry)

    def recent_history(self, n: int) -> list[HistoryEntry]:
        """Return the last ``n`` entries, oldest first."""
        if n <= 0:
            return []
        return list(self.history)[-n:]
