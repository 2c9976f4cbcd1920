"""
Rate limit enforcement at the HTTP boundary.

  • enforce_rate_limit — dependency for ordinary gated admin operations
  • admit              — explicit check, used by bulk routes once their
                         payload has been validated (a request rejected
                         with 404/422 must not consume bulk quota)

Both run after require_admin (the gate).
Order in request pipeline: GATE → [validation] → RATE LIMIT → ROUTER LOGIC.

On limit exceeded, returns 429 with the limiter's reason. Cooldown
rejections also carry Retry-After so automation can back off precisely.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, status

from shortener.auth.dependencies import AdminContext, require_admin
from shortener.core.context import ServiceContext, get_context
from shortener.services.rate_limiter import OP_NORMAL, RateLimitDecision


def _rate_limited(decision: RateLimitDecision) -> HTTPException:
    headers = None
    if decision.remaining_time is not None:
        headers = {"Retry-After": str(decision.remaining_time)}
    return HTTPException(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        detail={
            "error": decision.reason or "Rate limit exceeded. Please try again later.",
            "remainingTime": decision.remaining_time,
        },
        headers=headers,
    )


def admit(context: ServiceContext, admin: AdminContext, operation_type: str) -> None:
    """Run the rate limiter for ``admin``; raise 429 if the operation is refused."""
    decision = context.rate_limiter.check_rate_limit(admin.client_identity, operation_type)
    if not decision.allowed:
        raise _rate_limited(decision)


async def enforce_rate_limit(
    admin: Annotated[AdminContext, Depends(require_admin)],
    context: Annotated[ServiceContext, Depends(get_context)],
) -> AdminContext:
    """Enforce the hourly cap for a normal admin operation."""
    admit(context, admin, OP_NORMAL)
    return admin
