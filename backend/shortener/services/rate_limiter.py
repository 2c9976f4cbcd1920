"""
In-memory sliding-window rate limiter for admin automation.

Enforces per-client limits (client = IP address as seen by the boundary):
  • MAX_OPERATIONS_PER_HOUR     — every gated operation, bulk included
  • MAX_BULK_OPERATIONS_PER_DAY — bulk operations only
  • BULK_COOLDOWN               — minimum gap between two bulk operations

Design decisions:
  • Check BEFORE record — every limit is evaluated against the pruned
    windows first; timestamps are appended only when the operation is
    admitted. A rejected bulk request never consumes bulk quota.
  • Bulk operations also consume hourly quota.
  • Windows are deques of timestamps in arrival order; pruning pops from
    the left until the head is inside the window.
  • Idle trackers are swept so the map does not grow with every
    client that ever called.

Never raises for a rejected operation — callers get a RateLimitDecision
and decide how to surface it (the HTTP layer maps it to 429).
"""

from __future__ import annotations

import datetime
import logging
import math
import threading
from collections import deque
from dataclasses import dataclass
from typing import Deque

from shortener.core.clock import ClockPort
from shortener.models.rate_limit import RateLimitTracker

logger = logging.getLogger(__name__)

# ── Defaults ────────────────────────────────────────────────
MAX_OPERATIONS_PER_HOUR = 50
MAX_BULK_OPERATIONS_PER_DAY = 10
BULK_COOLDOWN = datetime.timedelta(minutes=5)
PROGRESSIVE_DELAY_FACTOR = 1.5
MAX_DELAY_MULTIPLIER = 5
OPERATIONS_PER_DELAY_STEP = 10

HOUR = datetime.timedelta(hours=1)
DAY = datetime.timedelta(days=1)

# Operation types
OP_NORMAL = "normal"
OP_BULK = "bulk"


@dataclass(frozen=True, slots=True)
class RateLimitDecision:
    """Outcome of one admission check.

    Attributes:
        allowed:        True when the operation was admitted and recorded.
        reason:         Human-readable rejection reason.
        remaining_time: Seconds (rounded up) until a retry can succeed,
                        only known for cooldown rejections.
    """

    allowed: bool
    reason: str | None = None
    remaining_time: int | None = None


@dataclass(frozen=True, slots=True)
class TrackerSnapshot:
    """Read-only view of one client's windows."""

    identity: str
    operations_last_hour: int
    bulk_operations_last_day: int
    cooldown_remaining: int
    warning_count: int


_ALLOWED = RateLimitDecision(allowed=True)


def _prune(window: Deque[datetime.datetime], cutoff: datetime.datetime) -> None:
    """Keep timestamps >= cutoff, preserving order."""
    while window and window[0] < cutoff:
        window.popleft()


class RateLimiter:
    """Per-identity hourly/daily counters with bulk cooldown."""

    def __init__(
        self,
        clock: ClockPort,
        max_operations_per_hour: int = MAX_OPERATIONS_PER_HOUR,
        max_bulk_operations_per_day: int = MAX_BULK_OPERATIONS_PER_DAY,
        bulk_cooldown: datetime.timedelta = BULK_COOLDOWN,
        progressive_delay_factor: float = PROGRESSIVE_DELAY_FACTOR,
        tracker_idle_ttl: datetime.timedelta = DAY,
        sweep_interval: datetime.timedelta = datetime.timedelta(minutes=10),
    ) -> None:
        self._clock = clock
        self.max_operations_per_hour = max_operations_per_hour
        self.max_bulk_operations_per_day = max_bulk_operations_per_day
        self.bulk_cooldown = bulk_cooldown
        self.progressive_delay_factor = progressive_delay_factor
        self._tracker_idle_ttl = tracker_idle_ttl
        self._sweep_interval = sweep_interval
        self._trackers: dict[str, RateLimitTracker] = {}
        self._last_sweep = clock.now()
        self._lock = threading.Lock()

    # ── Admission ───────────────────────────────────────────
    def check_rate_limit(self, identity: str, operation_type: str = OP_NORMAL) -> RateLimitDecision:
        """
        Decide whether ``identity`` may perform one ``operation_type`` now.

        Evaluation order: bulk cooldown → daily bulk cap → hourly cap.
        State is committed only when all checks pass.
        """
        with self._lock:
            # Read under the lock so window appends stay chronological
            now = self._clock.now()
            self._maybe_sweep(now)
            tracker = self._tracker(identity, now)
            tracker.last_seen = now
            _prune(tracker.operations_last_hour, now - HOUR)
            _prune(tracker.bulk_operations_last_day, now - DAY)

            is_bulk = operation_type == OP_BULK

            # ── Check limits (read-only) ────────────────────────
            if is_bulk:
                remaining = self._cooldown_remaining(tracker, now)
                if remaining > 0:
                    return RateLimitDecision(
                        allowed=False,
                        reason=f"Bulk operation cooldown active. Please wait {remaining} seconds.",
                        remaining_time=remaining,
                    )

                if len(tracker.bulk_operations_last_day) >= self.max_bulk_operations_per_day:
                    return RateLimitDecision(
                        allowed=False,
                        reason=(
                            f"Daily bulk operation limit reached "
                            f"({self.max_bulk_operations_per_day}). Try again tomorrow."
                        ),
                    )

            if len(tracker.operations_last_hour) >= self.max_operations_per_hour:
                tracker.warning_count += 1
                logger.warning(
                    "Hourly limit reached for %s (warning #%d)", identity, tracker.warning_count,
                )
                return RateLimitDecision(
                    allowed=False,
                    reason=(
                        f"Hourly operation limit reached ({self.max_operations_per_hour}). "
                        "Please wait before performing more operations."
                    ),
                )

            # ── Record (only after all checks pass) ─────────────
            if is_bulk:
                tracker.bulk_operations_last_day.append(now)
                tracker.last_bulk_operation_at = now
                logger.info("Bulk operation admitted for %s", identity)
            tracker.operations_last_hour.append(now)

        return _ALLOWED

    # ── Pacing ──────────────────────────────────────────────
    def calculate_progressive_delay(self, identity: str, base_delay: float) -> float:
        """
        Scale ``base_delay`` by factor ** (recent ops // 10), capped at 5x.

        Advisory only — callers pace themselves with the result.
        """
        with self._lock:
            tracker = self._trackers.get(identity)
            if tracker is None:
                return base_delay
            _prune(tracker.operations_last_hour, self._clock.now() - HOUR)
            recent = len(tracker.operations_last_hour)

        multiplier = self.progressive_delay_factor ** (recent // OPERATIONS_PER_DELAY_STEP)
        return min(base_delay * multiplier, base_delay * MAX_DELAY_MULTIPLIER)

    # ── Introspection ───────────────────────────────────────
    def snapshot(self, identity: str) -> TrackerSnapshot:
        with self._lock:
            now = self._clock.now()
            tracker = self._trackers.get(identity)
            if tracker is None:
                return TrackerSnapshot(identity, 0, 0, 0, 0)
            _prune(tracker.operations_last_hour, now - HOUR)
            _prune(tracker.bulk_operations_last_day, now - DAY)
            return TrackerSnapshot(
                identity=identity,
                operations_last_hour=len(tracker.operations_last_hour),
                bulk_operations_last_day=len(tracker.bulk_operations_last_day),
                cooldown_remaining=self._cooldown_remaining(tracker, now),
                warning_count=tracker.warning_count,
            )

    def tracked_identities(self) -> list[str]:
        with self._lock:
            return list(self._trackers)

    # ── Eviction ────────────────────────────────────────────
    def sweep(self) -> int:
        """Drop trackers idle longer than the TTL. Returns how many were removed."""
        with self._lock:
            return self._sweep(self._clock.now())

    # ── Internal helpers ────────────────────────────────────
    def _tracker(self, identity: str, now: datetime.datetime) -> RateLimitTracker:
        tracker = self._trackers.get(identity)
        if tracker is None:
            tracker = RateLimitTracker(
                identity=identity,
                last_seen=now,
                operations_last_hour=deque(),
                bulk_operations_last_day=deque(),
            )
            self._trackers[identity] = tracker
        return tracker

    def _cooldown_remaining(self, tracker: RateLimitTracker, now: datetime.datetime) -> int:
        """Whole seconds (rounded up) left on the bulk cooldown, 0 when none."""
        if tracker.last_bulk_operation_at is None:
            return 0
        left = self.bulk_cooldown - (now - tracker.last_bulk_operation_at)
        if left <= datetime.timedelta(0):
            return 0
        return math.ceil(left.total_seconds())

    def _maybe_sweep(self, now: datetime.datetime) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        self._sweep(now)

    def _sweep(self, now: datetime.datetime) -> int:
        self._last_sweep = now
        cutoff = now - self._tracker_idle_ttl
        stale = [k for k, t in self._trackers.items() if t.last_seen < cutoff]
        for k in stale:
            del self._trackers[k]
        if stale:
            logger.debug("Swept %d idle rate-limit trackers", len(stale))
        return len(stale)
