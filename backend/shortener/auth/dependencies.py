"""
FastAPI dependencies for the admin gate.

Flow:
  1. Resolve the client identity (first X-Forwarded-For hop, else peer)
  2. Extract the Bearer token from the Authorization header
  3. AdminGate.authorize(): emergency stop → credential → AUTH_CHECK log
  4. Return AdminContext (identity for the rate limiter and route logs)

Security:
  • Generic 401 for every credential failure (missing, malformed, wrong)
  • 503 with code EMERGENCY_STOP while the kill switch is set — checked
    before the credential, so nothing else is consulted
  • Raw tokens are NEVER logged
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from shortener.auth.errors import AuthFailure
from shortener.core.context import ServiceContext, get_context

UNKNOWN_CLIENT = "unknown"

# Generic 401, same message for every credential failure
_AUTH_FAILED = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Unauthorized",
    headers={"WWW-Authenticate": "Bearer"},
)

_EMERGENCY_STOPPED = HTTPException(
    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    detail={
        "error": "All automation operations are temporarily suspended for security reasons.",
        "code": AuthFailure.EMERGENCY_STOP.value,
    },
)


@dataclass(frozen=True, slots=True)
class AdminContext:
    """Authenticated admin request context.

    Attributes:
        client_identity: Who is calling — the key for rate limiting and
                         the operation log.
    """

    client_identity: str


def client_identity(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or "Unknown"


def bearer_token(authorization: str | None) -> str | None:
    """Return the token from 'Bearer <token>', or None if malformed."""
    if not authorization:
        return None
    parts = authorization.split(" ", maxsplit=1)
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


async def require_admin(
    request: Request,
    context: Annotated[ServiceContext, Depends(get_context)],
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AdminContext:
    """
    FastAPI dependency — runs the admin gate.

    Raises 503 (emergency stop) or 401 (credential).
    """
    identity = client_identity(request)
    result = context.gate.authorize(
        bearer_token(authorization),
        identity,
        {"path": request.url.path, "userAgent": user_agent(request)},
    )

    if result.failure is AuthFailure.EMERGENCY_STOP:
        raise _EMERGENCY_STOPPED
    if not result.allowed:
        raise _AUTH_FAILED

    return AdminContext(client_identity=identity)


async def require_admin_credential(
    request: Request,
    context: Annotated[ServiceContext, Depends(get_context)],
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AdminContext:
    """Credential check only — used by the resume endpoint, which must work during a stop."""
    if not context.gate.verify_credential(bearer_token(authorization)):
        raise _AUTH_FAILED
    return AdminContext(client_identity=client_identity(request))
