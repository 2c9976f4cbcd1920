"""
Cooperative scheduler for paced background jobs.

Jobs await ``scheduler.sleep()`` between steps instead of asyncio.sleep()
directly, so tests can swap in VirtualScheduler: it records each requested
delay and advances a ManualClock without waiting.

Spawned tasks are tracked until they finish; the app lifespan cancels
whatever is still running on shutdown.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from typing import Any

from shortener.core.clock import ManualClock

logger = logging.getLogger(__name__)


class Scheduler:
    """Real-time scheduler backed by the running event loop."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)

    def spawn(self, coro: Coroutine[Any, Any, Any], name: str | None = None) -> asyncio.Task[Any]:
        """Start ``coro`` as a tracked, cancellable task."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def cancel_all(self) -> None:
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
            logger.info("Cancelled %d scheduled task(s)", len(tasks))

    async def drain(self) -> None:
        """Wait for every tracked task to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


class VirtualScheduler(Scheduler):
    """Scheduler on virtual time: sleeps advance a ManualClock instantly."""

    def __init__(self, clock: ManualClock) -> None:
        super().__init__()
        self._clock = clock
        self.delays: list[float] = []

    async def sleep(self, seconds: float) -> None:
        self.delays.append(seconds)
        self._clock.advance(seconds=seconds)
        # Still yield so other tasks interleave as they would in real time
        await asyncio.sleep(0)
