"""
Per-client rate limit tracker.

One tracker per client identity (usually the IP address). Both windows
hold timestamps in arrival order, so pruning only ever pops from the left.

  • operations_last_hour  — every admitted operation (bulk included)
  • bulk_operations_last_day — admitted bulk operations only
"""

import datetime
from collections import deque
from dataclasses import dataclass, field
from typing import Deque


@dataclass(slots=True)
class RateLimitTracker:
    """Sliding-window state for one client identity."""

    identity: str
    last_seen: datetime.datetime
    operations_last_hour: Deque[datetime.datetime] = field(default_factory=deque)
    bulk_operations_last_day: Deque[datetime.datetime] = field(default_factory=deque)
    last_bulk_operation_at: datetime.datetime | None = None
    warning_count: int = 0
