"""
Service context — owns every piece of process-wide state.

Rules enforced:
  • No module-level singletons for mutable state. The lifespan builds one
    ServiceContext and stores it on app.state; handlers reach it through
    Depends(get_context).
  • Tests build their own context (fresh stores, ManualClock, tight limits)
    and inject it with app.dependency_overrides[get_context].
  • Both analytics stores invalidate the same aggregator cache.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass

from fastapi import Request

from shortener.core.clock import ClockPort, SystemClock
from shortener.core.config import Settings, settings as default_settings
from shortener.models.analytics import EventKind
from shortener.services.admin_gate import AdminGate, OperationLog
from shortener.services.aggregator import AnalyticsAggregator
from shortener.services.history import AnalyticsStore
from shortener.services.links import LinkStore
from shortener.services.load_test import LoadTestRunner
from shortener.services.posts import PostStore
from shortener.services.rate_limiter import RateLimiter
from shortener.services.scheduler import Scheduler

URLS = "urls"
BLOG = "blog"


def _ms(value: int) -> datetime.timedelta:
    return datetime.timedelta(milliseconds=value)


@dataclass(slots=True)
class ServiceContext:
    """Everything a request handler may touch."""

    settings: Settings
    clock: ClockPort
    links: LinkStore
    posts: PostStore
    aggregator: AnalyticsAggregator
    clicks: AnalyticsStore
    views: AnalyticsStore
    rate_limiter: RateLimiter
    gate: AdminGate
    scheduler: Scheduler
    load_tests: LoadTestRunner

    @classmethod
    def from_settings(
        cls,
        config: Settings | None = None,
        clock: ClockPort | None = None,
        scheduler: Scheduler | None = None,
    ) -> ServiceContext:
        config = config or default_settings
        clock = clock or SystemClock()
        scheduler = scheduler or Scheduler()

        aggregator = AnalyticsAggregator(clock, cache_duration=_ms(config.ANALYTICS_CACHE_MS))
        rate_limiter = RateLimiter(
            clock,
            max_operations_per_hour=config.MAX_OPERATIONS_PER_HOUR,
            max_bulk_operations_per_day=config.MAX_BULK_OPERATIONS_PER_DAY,
            bulk_cooldown=_ms(config.BULK_COOLDOWN_MS),
            progressive_delay_factor=config.PROGRESSIVE_DELAY_FACTOR,
            tracker_idle_ttl=_ms(config.TRACKER_IDLE_TTL_MS),
            sweep_interval=_ms(config.TRACKER_SWEEP_INTERVAL_MS),
        )

        return cls(
            settings=config,
            clock=clock,
            links=LinkStore(
                clock,
                code_length=config.SHORT_CODE_LENGTH,
                max_attempts=config.KEY_MAX_ATTEMPTS,
            ),
            posts=PostStore(
                clock,
                slug_max_length=config.SLUG_MAX_LENGTH,
                max_attempts=config.KEY_MAX_ATTEMPTS,
            ),
            aggregator=aggregator,
            clicks=AnalyticsStore(
                URLS, EventKind.CLICK, clock,
                history_limit=config.HISTORY_LIMIT,
                on_change=aggregator.invalidate,
            ),
            views=AnalyticsStore(
                BLOG, EventKind.VIEW, clock,
                history_limit=config.HISTORY_LIMIT,
                on_change=aggregator.invalidate,
            ),
            rate_limiter=rate_limiter,
            gate=AdminGate(
                config.ADMIN_TOKEN,
                clock,
                operation_log=OperationLog(config.OPERATION_LOG_LIMIT),
            ),
            scheduler=scheduler,
            load_tests=LoadTestRunner(
                clock, rate_limiter, scheduler, job_limit=config.LOAD_TEST_JOB_LIMIT,
            ),
        )


# ── Dependency ──────────────────────────────────────────────
def get_context(request: Request) -> ServiceContext:
    """Return the context the lifespan attached to the app."""
    return request.app.state.context
