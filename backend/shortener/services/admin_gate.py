"""
Admin gate — the single entry check for sensitive admin operations.

Per-request flow:
  1. Emergency stop set?  → EMERGENCY_STOP (nothing else consulted)
  2. Credential mismatch? → UNAUTHORIZED
  3. Log an AUTH_CHECK entry, admit.

Rate limiting is NOT bundled here. The HTTP layer runs the gate first and
the RateLimiter second, as two explicit steps.

The operation log is a single bounded deque: once OPERATION_LOG_LIMIT is
reached, each new entry evicts the oldest one.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque

from shortener.auth.errors import AuthFailure
from shortener.auth.hashing import hash_token, token_matches
from shortener.core.clock import ClockPort
from shortener.models.operation_log import OperationLogEntry

logger = logging.getLogger(__name__)

OPERATION_LOG_LIMIT = 1_000

OP_AUTH_CHECK = "AUTH_CHECK"
OP_EMERGENCY_STOP = "EMERGENCY_STOP"
OP_EMERGENCY_RESUME = "EMERGENCY_RESUME"


@dataclass(frozen=True, slots=True)
class AuthResult:
    """Outcome of AdminGate.authorize()."""

    allowed: bool
    failure: AuthFailure | None = None


class EmergencyStop:
    """Process-wide kill switch for gated operations."""

    def __init__(self) -> None:
        self._active = False
        self._reason: str | None = None
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    @property
    def reason(self) -> str | None:
        return self._reason

    def activate(self, reason: str) -> None:
        with self._lock:
            self._active = True
            self._reason = reason

    def release(self) -> None:
        with self._lock:
            self._active = False
            self._reason = None


class OperationLog:
    """Bounded audit log, oldest entries evicted first."""

    def __init__(self, limit: int = OPERATION_LOG_LIMIT) -> None:
        if limit <= 0:
            raise ValueError("limit must be positive")
        self._entries: Deque[OperationLogEntry] = deque(maxlen=limit)
        self._lock = threading.Lock()

    @property
    def limit(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: OperationLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def recent(self, limit: int | None = None) -> list[OperationLogEntry]:
        """Newest first."""
        with self._lock:
            entries = list(self._entries)
        entries.reverse()
        return entries if limit is None else entries[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class AdminGate:
    """Emergency stop + shared-secret check + operation logging."""

    def __init__(
        self,
        admin_token: str,
        clock: ClockPort,
        operation_log: OperationLog | None = None,
        emergency_stop: EmergencyStop | None = None,
    ) -> None:
        if not admin_token:
            raise ValueError("admin_token must not be empty")
        self._token_hash = hash_token(admin_token)
        self._clock = clock
        self.operation_log = operation_log or OperationLog()
        self.emergency_stop = emergency_stop or EmergencyStop()

    def verify_credential(self, credential: str | None) -> bool:
        """Credential check alone, ignoring the emergency stop."""
        return token_matches(credential, self._token_hash)

    def authorize(
        self,
        credential: str | None,
        client_identity: str,
        details: dict[str, Any] | None = None,
    ) -> AuthResult:
        """Run the gate for one request. Never raises for a refusal."""
        if self.emergency_stop.active:
            return AuthResult(allowed=False, failure=AuthFailure.EMERGENCY_STOP)

        if not self.verify_credential(credential):
            logger.warning("Rejected admin credential from %s", client_identity)
            return AuthResult(allowed=False, failure=AuthFailure.UNAUTHORIZED)

        self.log_operation(OP_AUTH_CHECK, client_identity, details)
        return AuthResult(allowed=True)

    def log_operation(
        self,
        operation: str,
        client_identity: str,
        details: dict[str, Any] | None = None,
    ) -> OperationLogEntry:
        entry = OperationLogEntry(
            timestamp=self._clock.now(),
            operation=operation,
            client_identity=client_identity,
            details=dict(details or {}),
        )
        self.operation_log.append(entry)
        return entry

    def activate_emergency_stop(self, reason: str, client_identity: str) -> OperationLogEntry:
        self.emergency_stop.activate(reason)
        logger.error("Emergency stop activated by %s: %s", client_identity, reason)
        return self.log_operation(OP_EMERGENCY_STOP, client_identity, {"reason": reason})

    def release_emergency_stop(self, client_identity: str) -> OperationLogEntry:
        self.emergency_stop.release()
        logger.warning("Emergency stop released by %s", client_identity)
        return self.log_operation(OP_EMERGENCY_RESUME, client_identity)
