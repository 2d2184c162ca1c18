from domain.models.audit import AuditAction, AuditEvent
from domain.models.cluster import (
    CommandResult,
    ContainerState,
    PodInfo,
    PodRole,
    ReleaseCommand,
    ReleaseRequest,
)
from domain.models.tenant import Engine, Tenant, TenantStatus, build_host, derive_namespace

__all__ = [
    "AuditAction",
    "AuditEvent",
    "CommandResult",
    "ContainerState",
    "Engine",
    "PodInfo",
    "PodRole",
    "ReleaseCommand",
    "ReleaseRequest",
    "Tenant",
    "TenantStatus",
    "build_host",
    "derive_namespace",
]
