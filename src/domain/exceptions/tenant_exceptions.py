from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for all domain-layer exceptions.

    Carries HTTP-mapping metadata and a machine-readable ``category`` so an
    outer transport layer can render failures without knowing exception
    internals.
    """

    category: str = "error"

    def __init__(
        self,
        detail: str = "",
        *,
        title: str = "Domain Error",
        status_code: int = 400,
        error_type: str = "about:blank",
    ) -> None:
        super().__init__(detail)
        self.detail = detail
        self.title = title
        self.status_code = status_code
        self.error_type = error_type

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "error": self.category, "details": self.detail}


class InfrastructureError(DomainError):
    category = "infrastructure"

    def __init__(self, operation: str = "", reason: str = "", *, status: int | None = None) -> None:
        self.operation = operation
        self.reason = reason
        self.status = status
        super().__init__(
            detail=f"Cluster operation '{operation}' failed: {reason}",
            title="Cluster Operation Failed",
            status_code=502,
            error_type="https://api.tenant-orchestrator.example/problems/infrastructure",
        )


class ResourceConflictError(InfrastructureError):
    """The cluster reported that the resource already exists."""


class ResourceMissingError(InfrastructureError):
    """The cluster reported that the resource does not exist."""


class DeploymentError(DomainError):
    category = "deployment"

    def __init__(self, release_name: str = "", reason: str = "", exit_code: int | None = None) -> None:
        self.release_name = release_name
        self.reason = reason
        self.exit_code = exit_code
        super().__init__(
            detail=f"Deployment of release '{release_name}' failed: {reason}",
            title="Deployment Failed",
            status_code=500,
            error_type="https://api.tenant-orchestrator.example/problems/deployment",
        )


class PersistenceError(DomainError):
    category = "persistence"

    def __init__(self, reason: str = "", *, warning: str | None = None) -> None:
        self.reason = reason
        self.warning = warning
        super().__init__(
            detail=f"Tenant store operation failed: {reason}",
            title="Persistence Failed",
            status_code=500,
            error_type="https://api.tenant-orchestrator.example/problems/persistence",
        )

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.warning:
            payload["warning"] = self.warning
        return payload


class TenantNotFoundError(DomainError):
    category = "not_found"

    def __init__(self, identifier: str = "") -> None:
        self.identifier = identifier
        super().__init__(
            detail=f"Tenant not found: {identifier}",
            title="Tenant Not Found",
            status_code=404,
            error_type="https://api.tenant-orchestrator.example/problems/tenant-not-found",
        )


class TenantAlreadyExistsError(DomainError):
    category = "conflict"

    def __init__(self, identifier: str = "") -> None:
        self.identifier = identifier
        super().__init__(
            detail=f"Tenant already exists: {identifier}",
            title="Tenant Conflict",
            status_code=409,
            error_type="https://api.tenant-orchestrator.example/problems/tenant-conflict",
        )


class ValidationError(DomainError):
    category = "validation"

    def __init__(self, field_name: str = "", reason: str = "") -> None:
        self.field_name = field_name
        self.reason = reason
        super().__init__(
            detail=f"Invalid {field_name}: {reason}",
            title="Validation Failed",
            status_code=422,
            error_type="https://api.tenant-orchestrator.example/problems/validation",
        )


class OrchestrationError(DomainError):
    category = "internal"

    def __init__(self, operation: str = "", reason: str = "") -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(
            detail=f"{operation} failed unexpectedly: {reason}",
            title="Orchestration Failed",
            status_code=500,
            error_type="about:blank",
        )
