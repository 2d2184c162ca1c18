from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Optional


class AuditAction(str, enum.Enum):
    CREATE_STARTED = "CREATE_STARTED"
    CREATE_FAILED = "CREATE_FAILED"
    CREATE_DB_FAILED = "CREATE_DB_FAILED"
    CREATE_SUCCESS = "CREATE_SUCCESS"
    CREATE_ERROR = "CREATE_ERROR"
    DELETE_STARTED = "DELETE_STARTED"
    DELETE_SUCCESS = "DELETE_SUCCESS"
    DELETE_FAILED = "DELETE_FAILED"


@dataclass(frozen=True)
class AuditEvent:
    """One lifecycle transition attempt. Never mutated once appended."""

    action: AuditAction
    tenant_name: Optional[str] = None
    namespace: Optional[str] = None
    engine: Optional[str] = None
    status: Optional[str] = None
    message: Optional[str] = None
    caller_address: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: Optional[int] = None
