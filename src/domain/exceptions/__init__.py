from domain.exceptions.tenant_exceptions import (
    DeploymentError,
    DomainError,
    InfrastructureError,
    OrchestrationError,
    PersistenceError,
    ResourceConflictError,
    ResourceMissingError,
    TenantAlreadyExistsError,
    TenantNotFoundError,
    ValidationError,
)

__all__ = [
    "DeploymentError",
    "DomainError",
    "InfrastructureError",
    "OrchestrationError",
    "PersistenceError",
    "ResourceConflictError",
    "ResourceMissingError",
    "TenantAlreadyExistsError",
    "TenantNotFoundError",
    "ValidationError",
]
