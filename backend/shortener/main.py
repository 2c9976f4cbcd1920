"""
FastAPI application entrypoint.

Lifespan:
  • On startup: build the ServiceContext (stores, limiter, gate) onto app.state.
  • On shutdown: cancel any load-test jobs still running.

Routers:
  • /blog — public blog
  • /admin/api — analytics, blog management, automation (admin gate)
  • /health — shallow liveness probe
  • /shorten, /preview/{code}, /{code} — links (catch-all, mounted last)
"""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from shortener.core.config import settings
from shortener.core.context import ServiceContext
from shortener.routers.admin import router as admin_router
from shortener.routers.analytics import router as analytics_router
from shortener.routers.blog import router as blog_router
from shortener.routers.links import router as links_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""

    context = ServiceContext.from_settings(settings)
    app.state.context = context
    if settings.ADMIN_TOKEN == "admin123":
        logger.warning(
            "ADMIN_TOKEN is the built-in default. "
            "Set ADMIN_TOKEN in .env before exposing the admin API."
        )
    logger.info("Service context ready (%s) ✓", settings.ENVIRONMENT)

    yield  # ← application runs here

    # Shutdown: stop paced background jobs
    await context.scheduler.cancel_all()
    logger.info("Scheduler drained ✓")


# ── App ─────────────────────────────────────────────────────
app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    description=(
        "URL shortener with per-link click analytics, a small blog, "
        "and a gated, rate-limited admin automation API."
    ),
    lifespan=lifespan,
)

# Mount routers
app.include_router(blog_router, prefix="/blog")
app.include_router(analytics_router, prefix="/admin/api")
app.include_router(admin_router, prefix="/admin/api")


# ── Health check ────────────────────────────────────────────
@app.get(
    "/health",
    tags=["System"],
    summary="Liveness probe",
)
async def health_check() -> dict[str, str]:
    """Shallow health check — confirms the process is alive."""
    return {"status": "healthy"}


# Catch-all /{code} goes after every fixed path
app.include_router(links_router)
