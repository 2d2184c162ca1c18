"""In-memory implementations of the tenant store and audit log ports.

Used by the unit tests and for wiring checks without a database. They follow
the same contracts as the SQL repositories: unique tenant names, newest-first
listings, and an identity sequence that restarts on ``delete_all``.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Optional

from domain.exceptions import TenantAlreadyExistsError
from domain.models.audit import AuditEvent
from domain.models.tenant import Tenant, TenantStatus


class InMemoryTenantRepository:
    """Thread-safe in-memory tenant store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[int, Tenant] = {}
        self._next_id = 1

    def insert(self, tenant: Tenant) -> Tenant:
        with self._lock:
            if any(t.name == tenant.name for t in self._store.values()):
                raise TenantAlreadyExistsError(identifier=tenant.name)
            saved = replace(tenant, id=self._next_id)
            self._store[saved.id] = saved
            self._next_id += 1
            return replace(saved)

    def update_status(self, name: str, status: TenantStatus) -> None:
        with self._lock:
            for tenant_id, tenant in self._store.items():
                if tenant.name == name:
                    self._store[tenant_id] = replace(tenant, status=status)

    def find_by_name_or_namespace(self, key: str) -> Optional[Tenant]:
        with self._lock:
            for tenant_id in sorted(self._store):
                tenant = self._store[tenant_id]
                if key in (tenant.name, tenant.namespace):
                    return replace(tenant)
            return None

    def delete_by_id(self, tenant_id: int) -> bool:
        with self._lock:
            return self._store.pop(tenant_id, None) is not None

    def list_all(self) -> list[Tenant]:
        with self._lock:
            items = sorted(self._store.values(), key=lambda t: (t.created_at, t.id or 0), reverse=True)
            return [replace(t) for t in items]

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._next_id = 1
            return count


class InMemoryAuditRepository:
    """Thread-safe in-memory audit log."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: list[AuditEvent] = []

    @property
    def events(self) -> list[AuditEvent]:
        with self._lock:
            return list(self._events)

    def append(self, event: AuditEvent) -> AuditEvent:
        with self._lock:
            saved = replace(event, id=len(self._events) + 1)
            self._events.append(saved)
            return saved

    def list_recent(self, limit: int = 50, tenant_name: Optional[str] = None) -> list[AuditEvent]:
        with self._lock:
            events = [e for e in self._events if tenant_name is None or e.tenant_name == tenant_name]
        events.sort(key=lambda e: (e.timestamp, e.id or 0), reverse=True)
        return events[:limit]

    def delete_all(self) -> int:
        with self._lock:
            count = len(self._events)
            self._events.clear()
            return count
