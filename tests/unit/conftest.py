"""Shared fixtures for unit tests."""

from __future__ import annotations

import sys
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import pytest

# Ensure src is importable
sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from application.services.audit_recorder import AuditRecorder
from application.services.deprovisioning_saga import DeprovisioningSaga
from application.services.provisioning_saga import ProvisioningSaga
from application.services.release_planner import ReleasePlanner
from application.services.status_reconciler import StatusReconciler
from application.services.tenant_locks import TenantLockRegistry
from application.services.tenant_service import TenantService
from domain.exceptions import InfrastructureError, ResourceConflictError, ResourceMissingError
from domain.models.cluster import CommandResult, ContainerState, PodInfo, ReleaseRequest
from domain.models.tenant import Engine, Tenant, TenantStatus
from domain.services.tenant_lifecycle import TenantLifecycleService
from infrastructure.adapters import InMemoryAuditRepository, InMemoryTenantRepository

NOW = datetime(2026, 2, 17, 12, 0, 0, tzinfo=timezone.utc)
CHART = "charts/store-chart"


# ------------------------------------------------------------------
# Fakes
# ------------------------------------------------------------------


class FakeClusterGateway:
    """Records namespace calls and serves canned pod listings.

    Set ``create_error`` / ``delete_error`` / ``list_error`` to an exception
    instance to make the corresponding call raise it.
    """

    def __init__(self) -> None:
        self.namespaces: set[str] = set()
        self.created: list[str] = []
        self.deleted: list[str] = []
        self.pods: dict[str, list[PodInfo]] = {}
        self.create_error: Optional[Exception] = None
        self.delete_error: Optional[Exception] = None
        self.list_error: Optional[Exception] = None
        self.closed = False

    def create_namespace(self, name: str, labels: Optional[dict[str, str]] = None) -> None:
        self.created.append(name)
        if self.create_error is not None:
            raise self.create_error
        if name in self.namespaces:
            raise ResourceConflictError("create_namespace", "AlreadyExists", status=409)
        self.namespaces.add(name)

    def delete_namespace(self, name: str) -> None:
        self.deleted.append(name)
        if self.delete_error is not None:
            raise self.delete_error
        if name not in self.namespaces:
            raise ResourceMissingError("delete_namespace", "NotFound", status=404)
        self.namespaces.discard(name)

    def list_pods(self, namespace: str) -> list[PodInfo]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.pods.get(namespace, []))

    def close(self) -> None:
        self.closed = True


class FakeDeploymentRunner:
    """Returns queued results per command; succeeds by default."""

    def __init__(self) -> None:
        self.requests: list[ReleaseRequest] = []
        self.results: dict[str, CommandResult] = {}
        self.errors: dict[str, Exception] = {}

    def run(self, request: ReleaseRequest) -> CommandResult:
        self.requests.append(request)
        command = request.command.value
        if command in self.errors:
            raise self.errors[command]
        return self.results.get(command, CommandResult(exit_code=0, stdout=f"{command} ok"))

    def commands(self) -> list[str]:
        return [r.command.value for r in self.requests]


def make_pod(
    name: str,
    *,
    phase: str = "Running",
    ready: bool = True,
    labels: Optional[dict[str, str]] = None,
    containers: Optional[int] = 1,
) -> PodInfo:
    return PodInfo(
        name=name,
        phase=phase,
        containers=tuple(ContainerState(name=f"c{i}", ready=ready) for i in range(containers or 0)),
        labels=labels or {},
    )


# ------------------------------------------------------------------
# Fixtures
# ------------------------------------------------------------------


@pytest.fixture
def pod_factory():
    return make_pod


@pytest.fixture
def cluster() -> FakeClusterGateway:
    return FakeClusterGateway()


@pytest.fixture
def runner() -> FakeDeploymentRunner:
    return FakeDeploymentRunner()


@pytest.fixture
def tenant_repo() -> InMemoryTenantRepository:
    return InMemoryTenantRepository()


@pytest.fixture
def audit_repo() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def audit(audit_repo) -> AuditRecorder:
    return AuditRecorder(audit_repo, clock=lambda: NOW)


@pytest.fixture
def planner() -> ReleasePlanner:
    return ReleasePlanner(chart_path=CHART)


@pytest.fixture
def locks() -> TenantLockRegistry:
    return TenantLockRegistry()


@pytest.fixture
def lock_is_free(locks):
    """Returns a check that another thread can take a key within ``timeout`` seconds."""

    def check(key: str, timeout: float = 1.0) -> bool:
        acquired = threading.Event()

        def take():
            with locks.hold(key):
                acquired.set()

        threading.Thread(target=take, daemon=True).start()
        return acquired.wait(timeout)

    return check


@pytest.fixture
def lifecycle_service() -> TenantLifecycleService:
    return TenantLifecycleService()


@pytest.fixture
def provisioning(cluster, runner, tenant_repo, audit, planner, locks) -> ProvisioningSaga:
    return ProvisioningSaga(
        cluster=cluster,
        runner=runner,
        tenant_repo=tenant_repo,
        audit=audit,
        planner=planner,
        locks=locks,
        clock=lambda: NOW,
    )


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def deprovisioning(cluster, runner, tenant_repo, audit, planner, locks, sleeps) -> DeprovisioningSaga:
    return DeprovisioningSaga(
        cluster=cluster,
        runner=runner,
        tenant_repo=tenant_repo,
        audit=audit,
        planner=planner,
        locks=locks,
        settle_seconds=2.0,
        sleep=sleeps.append,
    )


@pytest.fixture
def reconciler(cluster, tenant_repo, lifecycle_service) -> StatusReconciler:
    return StatusReconciler(cluster=cluster, tenant_repo=tenant_repo, lifecycle_service=lifecycle_service)


@pytest.fixture
def tenant_service(provisioning, deprovisioning, reconciler, tenant_repo, audit_repo) -> TenantService:
    return TenantService(
        provisioning=provisioning,
        deprovisioning=deprovisioning,
        reconciler=reconciler,
        tenant_repo=tenant_repo,
        audit_repo=audit_repo,
    )


@pytest.fixture
def sample_tenant() -> Tenant:
    return Tenant(
        name="acme",
        engine=Engine.WOOCOMMERCE,
        namespace="store-acme",
        status=TenantStatus.PROVISIONING,
        url="http://acme.local",
        created_at=NOW,
    )


@pytest.fixture
def stored_tenant(tenant_repo, cluster, sample_tenant) -> Tenant:
    """A tracked tenant whose namespace exists in the fake cluster."""
    cluster.namespaces.add(sample_tenant.namespace)
    return tenant_repo.insert(sample_tenant)


@pytest.fixture
def infra_error() -> InfrastructureError:
    return InfrastructureError("list_pods", "connection refused", status=503)
