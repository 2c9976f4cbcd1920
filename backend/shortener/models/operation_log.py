"""
Operation log entry — audit trail for gated admin operations.

Entries live in a single bounded log (oldest evicted first).
"""

import datetime
import uuid
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class OperationLogEntry:
    """One admin operation attempt or outcome."""

    timestamp: datetime.datetime
    operation: str
    client_identity: str
    details: dict[str, Any] = field(default_factory=dict)
    id: uuid.UUID = field(default_factory=uuid.uuid4)

    def __repr__(self) -> str:
        return (
            f"<OperationLogEntry id={self.id!s:.8} op={self.operation} "
            f"client={self.client_identity}>"
        )
