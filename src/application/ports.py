"""Port interfaces the orchestrator drives (dependency inversion).

Every collaborator is passed in at construction time. Implementations are
expected to be safe for concurrent use: none of them may keep per-tenant
mutable state between calls.
"""

from __future__ import annotations

from typing import Optional, Protocol

from domain.models.audit import AuditEvent
from domain.models.cluster import CommandResult, PodInfo, ReleaseRequest
from domain.models.tenant import Tenant, TenantStatus


class ClusterGateway(Protocol):
    """Port: namespace and pod operations against the control plane.

    ``create_namespace`` raises :class:`ResourceConflictError` when the
    namespace already exists and ``delete_namespace`` raises
    :class:`ResourceMissingError` when it is already gone. Any other failure
    is an :class:`InfrastructureError`.
    """

    def create_namespace(self, name: str, labels: Optional[dict[str, str]] = None) -> None: ...

    def delete_namespace(self, name: str) -> None: ...

    def list_pods(self, namespace: str) -> list[PodInfo]: ...

    def close(self) -> None: ...


class DeploymentRunner(Protocol):
    """Port: runs the packaging tool as an external process.

    A non-zero exit is reported through :class:`CommandResult`, not raised.
    :class:`DeploymentError` is raised only when the process cannot be
    launched at all.
    """

    def run(self, request: ReleaseRequest) -> CommandResult: ...


class TenantRepository(Protocol):
    """Port: durable tenant records keyed by unique name."""

    def insert(self, tenant: Tenant) -> Tenant: ...

    def update_status(self, name: str, status: TenantStatus) -> None: ...

    def find_by_name_or_namespace(self, key: str) -> Optional[Tenant]: ...

    def delete_by_id(self, tenant_id: int) -> bool: ...

    def list_all(self) -> list[Tenant]: ...

    def delete_all(self) -> int: ...


class AuditRepository(Protocol):
    """Port: append-only lifecycle event log."""

    def append(self, event: AuditEvent) -> AuditEvent: ...

    def list_recent(self, limit: int = 50, tenant_name: Optional[str] = None) -> list[AuditEvent]: ...

    def delete_all(self) -> int: ...
