"""
Pydantic v2 schemas for the admin automation surface.
"""

from __future__ import annotations

import datetime
import uuid
from typing import Any, Literal

from pydantic import ConfigDict, Field

from shortener.schemas.base import CamelModel


class EmergencyStopRequest(CamelModel):
    model_config = ConfigDict(extra="forbid")

    reason: str = Field(default="manual", max_length=500)


class EmergencyStatusOut(CamelModel):
    active: bool
    reason: str | None = None


class OperationLogEntryOut(CamelModel):
    id: uuid.UUID
    timestamp: datetime.datetime
    operation: str
    client_identity: str
    details: dict[str, Any]


class RateLimitStatusOut(CamelModel):
    """The caller's own rate-limit windows."""

    identity: str
    operations_last_hour: int
    bulk_operations_last_day: int
    cooldown_remaining: int = Field(description="Seconds until the next bulk operation may start.")
    warning_count: int
    max_operations_per_hour: int
    max_bulk_operations_per_day: int
    next_click_delay_ms: float
    next_view_delay_ms: float


class LoadTestRequest(CamelModel):
    """Payload accepted by POST /admin/api/automation/load-test."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(..., min_length=1, description="Short code (click) or slug (view).")
    kind: Literal["click", "view"] = "click"
    count: int = Field(..., ge=1, description="Number of synthetic events; capped per kind.")


class LoadTestJobOut(CamelModel):
    id: str
    key: str
    collection_id: str
    requested: int
    recorded: int
    status: str
    started_at: datetime.datetime
    finished_at: datetime.datetime | None = None
