"""
Shared test fixtures — manual clock, virtual scheduler, isolated service
context, FastAPI test client.
"""

import threading

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from shortener.core.clock import ManualClock
from shortener.core.config import Settings
from shortener.core.context import ServiceContext, get_context
from shortener.main import app
from shortener.services.scheduler import VirtualScheduler

ADMIN_TOKEN = "test-admin-token"
AUTH = {"Authorization": f"Bearer {ADMIN_TOKEN}"}

# ASGITransport reports this peer address for every request
TEST_CLIENT_IP = "127.0.0.1"


# ── Time ────────────────────────────────────────────────

@pytest.fixture()
def clock():
    return ManualClock()


@pytest.fixture()
def scheduler(clock):
    return VirtualScheduler(clock)


class LockCheckingClock(ManualClock):
    """ManualClock that notes, on every read, whether ``lock`` is held."""

    def __init__(self):
        super().__init__()
        self.lock = None
        self.reads_under_lock = []

    def now(self):
        if self.lock is not None:
            self.reads_under_lock.append(_held_by_another_thread(self.lock))
        return super().now()


def _held_by_another_thread(lock):
    """True if a second thread cannot take ``lock`` right now."""
    acquired = []

    def attempt():
        if lock.acquire(blocking=False):
            lock.release()
            acquired.append(True)

    worker = threading.Thread(target=attempt)
    worker.start()
    worker.join()
    return not acquired


@pytest.fixture()
def lock_checking_clock():
    return LockCheckingClock()


# ── Service context ─────────────────────────────────────

@pytest.fixture()
def test_settings():
    """Tight limits so every rejection path is reachable in a few requests."""
    return Settings(
        _env_file=None,
        ADMIN_TOKEN=ADMIN_TOKEN,
        MAX_OPERATIONS_PER_HOUR=5,
        MAX_BULK_OPERATIONS_PER_DAY=2,
        BULK_COOLDOWN_MS=300_000,
        OPERATION_LOG_LIMIT=50,
        BULK_EVENT_LIMIT=5,
        BULK_VIEW_LIMIT=3,
    )


@pytest.fixture()
def context(test_settings, clock, scheduler):
    return ServiceContext.from_settings(test_settings, clock=clock, scheduler=scheduler)


# ── HTTP client ─────────────────────────────────────────

@pytest_asyncio.fixture()
async def client(context):
    """FastAPI test client with the isolated context injected."""
    app.dependency_overrides[get_context] = lambda: context

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await context.scheduler.cancel_all()
    app.dependency_overrides.clear()


@pytest.fixture()
def auth():
    """Valid admin Authorization header."""
    return dict(AUTH)
