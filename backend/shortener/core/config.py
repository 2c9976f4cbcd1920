"""
Application settings loaded from environment variables.

Uses pydantic-settings so that every config value is validated at startup.
The admin token stays in .env on the server — never in frontend code.

All durations are expressed in milliseconds, matching the values operators
already know from the dashboard ("cooldown 300000 ms").
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Central configuration.

    Only ServiceContext.from_settings() reads these values; the core
    services take explicit constructor arguments so tests can build
    isolated instances with tighter limits.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # ── App ─────────────────────────────────────────────────
    APP_NAME: str = "Shortener"
    DEBUG: bool = False
    ENVIRONMENT: str = "dev"

    # ── Admin ───────────────────────────────────────────────
    # Shared-secret bearer token. Override in every non-dev environment.
    ADMIN_TOKEN: str = "admin123"

    # ── Analytics ───────────────────────────────────────────
    HISTORY_LIMIT: int = 100
    ANALYTICS_CACHE_MS: int = 10_000

    # ── Admin security ──────────────────────────────────────
    OPERATION_LOG_LIMIT: int = 1_000
    MAX_OPERATIONS_PER_HOUR: int = 50
    MAX_BULK_OPERATIONS_PER_DAY: int = 10
    BULK_COOLDOWN_MS: int = 300_000
    PROGRESSIVE_DELAY_FACTOR: float = 1.5
    TRACKER_IDLE_TTL_MS: int = 86_400_000
    TRACKER_SWEEP_INTERVAL_MS: int = 600_000

    # ── Keys ────────────────────────────────────────────────
    SHORT_CODE_LENGTH: int = 6
    KEY_MAX_ATTEMPTS: int = 10
    SLUG_MAX_LENGTH: int = 50

    # ── Load test pacing ────────────────────────────────────
    BULK_EVENT_LIMIT: int = 50
    BULK_VIEW_LIMIT: int = 30
    CLICK_BASE_DELAY_MS: int = 200
    VIEW_BASE_DELAY_MS: int = 300
    LOAD_TEST_JOB_LIMIT: int = 100


# Imported everywhere as `from shortener.core.config import settings`
settings = Settings()
