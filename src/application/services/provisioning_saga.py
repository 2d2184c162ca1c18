"""Provisioning saga: namespace, release install, then the tenant record.

The tenant record is written only after the release is installed, so the
store never tracks a tenant whose workload does not exist in the cluster.
A failed install compensates by removing the namespace; a failed write
after a successful install is reported but never rolled back on the
cluster side, because the workload is real and functioning.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Callable, Optional

from domain.exceptions import (
    DeploymentError,
    DomainError,
    InfrastructureError,
    OrchestrationError,
    PersistenceError,
    ResourceConflictError,
    ResourceMissingError,
    TenantAlreadyExistsError,
)
from domain.models.audit import AuditAction
from domain.models.tenant import Engine, Tenant, TenantStatus, derive_namespace
from domain.services.tenant_lifecycle import parse_engine, validate_tenant_name
from infrastructure.observability import metrics
from infrastructure.observability.logging_config import get_logger

from application.ports import ClusterGateway, DeploymentRunner, TenantRepository
from application.schemas.results import ProvisionResult
from application.services.audit_recorder import AuditRecorder
from application.services.release_planner import ReleasePlanner
from application.services.saga import SagaResult, SagaRunner, SagaStep, StepResult
from application.services.tenant_locks import TenantLockRegistry

SAGA_NAME = "provision"

STEP_CREATE_NAMESPACE = "create_namespace"
STEP_INSTALL_RELEASE = "install_release"
STEP_PERSIST_RECORD = "persist_record"

UNTRACKED_WARNING = "Store may be running in cluster but not tracked in DB"


@dataclass
class ProvisionContext:
    name: str
    engine: Engine
    namespace: str
    url: str
    caller_address: Optional[str] = None
    created_at: Optional[datetime] = None
    namespace_existed: bool = False
    tenant: Optional[Tenant] = None


class ProvisioningSaga:
    """Creates one tenant end-to-end, compensating on install failure."""

    def __init__(
        self,
        cluster: ClusterGateway,
        runner: DeploymentRunner,
        tenant_repo: TenantRepository,
        audit: AuditRecorder,
        planner: ReleasePlanner,
        locks: TenantLockRegistry,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._cluster = cluster
        self._runner = runner
        self._tenant_repo = tenant_repo
        self._audit = audit
        self._planner = planner
        self._locks = locks
        self._clock = clock
        self._saga: SagaRunner[ProvisionContext] = SagaRunner(
            SAGA_NAME,
            [
                SagaStep(STEP_CREATE_NAMESPACE, self._create_namespace, self._delete_namespace),
                SagaStep(STEP_INSTALL_RELEASE, self._install_release),
                SagaStep(STEP_PERSIST_RECORD, self._persist_record),
            ],
        )

    # -- public API -------------------------------------------------------

    def provision(
        self,
        name: str,
        engine: Engine | str,
        caller_address: Optional[str] = None,
    ) -> ProvisionResult:
        """Provision tenant *name* running *engine*.

        Raises :class:`ValidationError` or :class:`TenantAlreadyExistsError`
        before touching the cluster or the audit log, and
        :class:`InfrastructureError`, :class:`DeploymentError`,
        :class:`PersistenceError` or :class:`OrchestrationError` after an
        audited failure.
        """
        name = validate_tenant_name(name)
        engine = parse_engine(engine)
        namespace = derive_namespace(name)

        with self._locks.hold(namespace):
            context = ProvisionContext(
                name=name,
                engine=engine,
                namespace=namespace,
                url=self._planner.url_for(name),
                caller_address=caller_address,
                created_at=self._clock(),
            )
            self._check_untracked(context)
            return self._execute(context)

    # -- saga boundary ----------------------------------------------------

    def _execute(self, context: ProvisionContext) -> ProvisionResult:
        log = get_logger(__name__, saga=SAGA_NAME, tenant=context.name, namespace=context.namespace)
        log.info("provisioning_started", engine=context.engine.value)
        self._record(AuditAction.CREATE_STARTED, context, TenantStatus.PROVISIONING, "Store creation initiated")

        started = time.perf_counter()
        try:
            result = self._saga.run(context)
        except Exception as exc:
            log.exception("provisioning_unexpected_error")
            self._record(
                AuditAction.CREATE_ERROR,
                context,
                TenantStatus.FAILED,
                f"Unexpected error: {exc}",
            )
            metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="error").inc()
            raise OrchestrationError("Store provisioning", str(exc)) from exc
        finally:
            metrics.saga_duration_seconds.labels(saga=SAGA_NAME).observe(time.perf_counter() - started)

        if result.success:
            log.info("provisioning_succeeded", url=context.url)
            self._record(
                AuditAction.CREATE_SUCCESS,
                context,
                TenantStatus.PROVISIONING,
                "Store successfully provisioned via Helm",
            )
            metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="success").inc()
            return ProvisionResult(
                name=context.name,
                namespace=context.namespace,
                url=context.url,
                status=TenantStatus.PROVISIONING.value,
                engine=context.engine.value,
            )

        raise self._fail(context, result)

    def _fail(self, context: ProvisionContext, result: SagaResult) -> DomainError:
        failed = result.failed_step
        if failed is None or failed.error is None:
            return OrchestrationError("Store provisioning", "saga stopped without a failed step")
        log = get_logger(__name__, saga=SAGA_NAME, tenant=context.name, namespace=context.namespace)
        log.error(
            "provisioning_failed",
            step=failed.step,
            reason=failed.detail,
            compensated=result.compensated,
        )

        if failed.step == STEP_PERSIST_RECORD:
            action = AuditAction.CREATE_DB_FAILED
            message = f"DB save failed after Helm install: {failed.detail}"
        elif failed.step == STEP_INSTALL_RELEASE:
            action = AuditAction.CREATE_FAILED
            message = f"Helm install failed: {failed.detail}"
            if context.namespace_existed:
                message += (
                    f" (namespace {context.namespace} existed before this request"
                    " and was targeted by compensation)"
                )
        else:
            action = AuditAction.CREATE_FAILED
            message = f"Namespace creation failed: {failed.detail}"

        self._record(action, context, TenantStatus.FAILED, message)
        metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="failed").inc()
        return failed.error

    # -- steps ------------------------------------------------------------

    def _create_namespace(self, context: ProvisionContext) -> StepResult:
        labels = {
            "app.kubernetes.io/managed-by": "tenant-orchestrator",
            "tenant-orchestrator/name": context.name,
            "tenant-orchestrator/engine": context.engine.value,
        }
        try:
            self._cluster.create_namespace(context.namespace, labels)
        except ResourceConflictError:
            context.namespace_existed = True
            return StepResult.ok(STEP_CREATE_NAMESPACE, f"Namespace {context.namespace} already exists")
        except InfrastructureError as exc:
            return StepResult.fatal(STEP_CREATE_NAMESPACE, exc)
        return StepResult.ok(STEP_CREATE_NAMESPACE, f"Namespace {context.namespace} created")

    def _install_release(self, context: ProvisionContext) -> StepResult:
        request = self._planner.install_request(context.name, context.namespace, context.engine)
        try:
            outcome = self._runner.run(request)
        except DeploymentError as exc:
            return StepResult.compensate(STEP_INSTALL_RELEASE, exc)

        if not outcome.succeeded:
            reason = "timed out" if outcome.timed_out else (outcome.stderr.strip() or f"exit code {outcome.exit_code}")
            return StepResult.compensate(
                STEP_INSTALL_RELEASE,
                DeploymentError(request.release_name, reason, exit_code=outcome.exit_code),
            )
        return StepResult.ok(STEP_INSTALL_RELEASE, outcome.stdout.strip())

    def _persist_record(self, context: ProvisionContext) -> StepResult:
        tenant = Tenant(
            name=context.name,
            engine=context.engine,
            namespace=context.namespace,
            status=TenantStatus.PROVISIONING,
            url=context.url,
            created_at=context.created_at or self._clock(),
        )
        try:
            context.tenant = self._tenant_repo.insert(tenant)
        except (PersistenceError, TenantAlreadyExistsError) as exc:
            reason = exc.reason if isinstance(exc, PersistenceError) else exc.detail
            return StepResult.fatal(
                STEP_PERSIST_RECORD,
                PersistenceError(reason, warning=UNTRACKED_WARNING),
            )
        return StepResult.ok(STEP_PERSIST_RECORD, f"Tenant record {context.tenant.id} saved")

    # -- compensation -----------------------------------------------------

    def _delete_namespace(self, context: ProvisionContext) -> None:
        log = get_logger(__name__, saga=SAGA_NAME, tenant=context.name, namespace=context.namespace)
        try:
            self._cluster.delete_namespace(context.namespace)
        except ResourceMissingError:
            log.info("compensation_namespace_already_gone")
            return
        log.info("compensation_namespace_deleted", pre_existing=context.namespace_existed)

    # -- helpers ----------------------------------------------------------

    def _check_untracked(self, context: ProvisionContext) -> None:
        try:
            self._ensure_untracked(context.name, context.namespace)
        except TenantAlreadyExistsError:
            raise
        except Exception as exc:
            log = get_logger(__name__, saga=SAGA_NAME, tenant=context.name, namespace=context.namespace)
            log.exception("duplicate_check_failed")
            self._record(
                AuditAction.CREATE_ERROR,
                context,
                TenantStatus.FAILED,
                f"Duplicate check failed: {exc}",
            )
            metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="error").inc()
            raise OrchestrationError("Store provisioning", str(exc)) from exc

    def _ensure_untracked(self, name: str, namespace: str) -> None:
        existing = self._tenant_repo.find_by_name_or_namespace(name)
        if existing is None:
            existing = self._tenant_repo.find_by_name_or_namespace(namespace)
        if existing is not None:
            raise TenantAlreadyExistsError(identifier=name)

    def _record(
        self,
        action: AuditAction,
        context: ProvisionContext,
        status: TenantStatus,
        message: str,
    ) -> None:
        self._audit.record(
            action,
            tenant_name=context.name,
            namespace=context.namespace,
            engine=context.engine.value,
            status=status,
            message=message,
            caller_address=context.caller_address,
        )
