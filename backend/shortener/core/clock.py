"""Clock port and implementations.

Every core service asks a clock for "now" instead of calling
datetime.now() directly, so window and cache arithmetic can be driven
by a ManualClock in tests.
"""

from __future__ import annotations

import datetime
from typing import Protocol, runtime_checkable


@runtime_checkable
class ClockPort(Protocol):
    """Provide the current timezone-aware UTC timestamp."""

    def now(self) -> datetime.datetime: ...


class SystemClock:
    """Wall-clock time."""

    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)


class ManualClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime.datetime | None = None) -> None:
        self._now = start or datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)

    def now(self) -> datetime.datetime:
        return self._now

    def advance(self, delta: datetime.timedelta | None = None, **kwargs: float) -> datetime.datetime:
        """Move forward by ``delta`` or by ``timedelta(**kwargs)``."""
        self._now += delta if delta is not None else datetime.timedelta(**kwargs)
        return self._now

    def set(self, value: datetime.datetime) -> None:
        self._now = value
