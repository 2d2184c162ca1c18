"""Emits lifecycle audit events on behalf of the sagas."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Callable, Optional

from domain.models.audit import AuditAction, AuditEvent
from domain.models.tenant import Tenant, TenantStatus

from application.ports import AuditRepository

logger = logging.getLogger(__name__)


class AuditRecorder:
    """Builds :class:`AuditEvent` values and appends them to the sink.

    A sink failure is logged and swallowed: losing one audit line must not
    turn a completed cluster mutation into a reported failure.
    """

    def __init__(
        self,
        audit_repo: AuditRepository,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._audit_repo = audit_repo
        self._clock = clock

    def record(
        self,
        action: AuditAction,
        *,
        tenant_name: Optional[str],
        namespace: Optional[str] = None,
        engine: Optional[str] = None,
        status: TenantStatus | str | None = None,
        message: Optional[str] = None,
        caller_address: Optional[str] = None,
    ) -> Optional[AuditEvent]:
        event = AuditEvent(
            action=action,
            tenant_name=tenant_name,
            namespace=namespace,
            engine=engine,
            status=status.value if isinstance(status, TenantStatus) else status,
            message=message,
            caller_address=caller_address,
            timestamp=self._clock(),
        )
        try:
            return self._audit_repo.append(event)
        except Exception:
            logger.exception("Failed to append audit event %s for %s", action.value, tenant_name)
            return None

    def record_for(
        self,
        action: AuditAction,
        tenant: Tenant,
        *,
        status: TenantStatus | str | None = None,
        message: Optional[str] = None,
        caller_address: Optional[str] = None,
    ) -> Optional[AuditEvent]:
        return self.record(
            action,
            tenant_name=tenant.name,
            namespace=tenant.namespace,
            engine=tenant.engine.value,
            status=status if status is not None else tenant.status,
            message=message,
            caller_address=caller_address,
        )
