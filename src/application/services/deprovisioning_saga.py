"""Deprovisioning saga: release uninstall, namespace delete, record removal.

The two cluster steps are best-effort and only contribute warnings. Removing
the tenant record is the single step that decides success: a tenant that
leaves an orphaned cluster resource behind but is no longer tracked is
preferable to one stuck in the tracked set forever. Orphans surface through
the returned warnings for out-of-band cleanup.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional

from domain.exceptions import (
    DeploymentError,
    InfrastructureError,
    OrchestrationError,
    PersistenceError,
    ResourceMissingError,
    TenantNotFoundError,
)
from domain.models.audit import AuditAction
from domain.models.tenant import Tenant
from infrastructure.observability import metrics
from infrastructure.observability.logging_config import get_logger

from application.ports import ClusterGateway, DeploymentRunner, TenantRepository
from application.schemas.results import DeprovisionResult
from application.services.audit_recorder import AuditRecorder
from application.services.release_planner import ReleasePlanner
from application.services.saga import SagaRunner, SagaStep, StepResult
from application.services.tenant_locks import TenantLockRegistry

SAGA_NAME = "deprovision"

STEP_UNINSTALL_RELEASE = "uninstall_release"
STEP_DELETE_NAMESPACE = "delete_namespace"
STEP_REMOVE_RECORD = "remove_record"

DELETED_STATUS = "Deleted"

DEFAULT_SETTLE_SECONDS = 2.0


@dataclass
class DeprovisionContext:
    tenant: Tenant
    caller_address: Optional[str] = None
    namespace_already_gone: bool = False


class DeprovisioningSaga:
    """Removes one tenant, accumulating cluster-side failures as warnings."""

    def __init__(
        self,
        cluster: ClusterGateway,
        runner: DeploymentRunner,
        tenant_repo: TenantRepository,
        audit: AuditRecorder,
        planner: ReleasePlanner,
        locks: TenantLockRegistry,
        settle_seconds: float = DEFAULT_SETTLE_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._cluster = cluster
        self._runner = runner
        self._tenant_repo = tenant_repo
        self._audit = audit
        self._planner = planner
        self._locks = locks
        self._settle_seconds = settle_seconds
        self._sleep = sleep
        self._saga: SagaRunner[DeprovisionContext] = SagaRunner(
            SAGA_NAME,
            [
                SagaStep(STEP_UNINSTALL_RELEASE, self._uninstall_release),
                SagaStep(STEP_DELETE_NAMESPACE, self._delete_namespace),
                SagaStep(STEP_REMOVE_RECORD, self._remove_record),
            ],
        )

    # -- public API -------------------------------------------------------

    def deprovision(self, key: str, caller_address: Optional[str] = None) -> DeprovisionResult:
        """Remove the tenant whose name or namespace equals *key*.

        Raises :class:`TenantNotFoundError` without any side effect when no
        tenant matches, :class:`PersistenceError` when the record could not
        be removed, and :class:`OrchestrationError` for unexpected faults.
        """
        tenant = self._resolve(key)

        with self._locks.hold(tenant.namespace):
            # A concurrent deletion may have won the race for the lock.
            tenant = self._resolve(tenant.name)
            return self._execute(DeprovisionContext(tenant=tenant, caller_address=caller_address))

    # -- saga boundary ----------------------------------------------------

    def _execute(self, context: DeprovisionContext) -> DeprovisionResult:
        tenant = context.tenant
        log = get_logger(__name__, saga=SAGA_NAME, tenant=tenant.name, namespace=tenant.namespace)
        log.info("deprovisioning_started", tenant_id=tenant.id)
        self._audit.record_for(
            AuditAction.DELETE_STARTED,
            tenant,
            message="Delete initiated",
            caller_address=context.caller_address,
        )

        started = time.perf_counter()
        try:
            result = self._saga.run(context)
        except Exception as exc:
            log.exception("deprovisioning_unexpected_error")
            self._audit.record_for(
                AuditAction.DELETE_FAILED,
                tenant,
                status=DELETED_STATUS,
                message=f"Delete failed: unexpected error: {exc}",
                caller_address=context.caller_address,
            )
            metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="error").inc()
            raise OrchestrationError("Store deletion", str(exc)) from exc
        finally:
            metrics.saga_duration_seconds.labels(saga=SAGA_NAME).observe(time.perf_counter() - started)

        if result.warnings:
            metrics.saga_warnings_total.labels(saga=SAGA_NAME).inc(len(result.warnings))

        if result.success:
            suffix = " with warnings" if result.warnings else ""
            log.info(
                "deprovisioning_succeeded",
                warnings=result.warnings,
                namespace_already_gone=context.namespace_already_gone,
            )
            self._audit.record_for(
                AuditAction.DELETE_SUCCESS,
                tenant,
                status=DELETED_STATUS,
                message=f"Store deleted successfully{suffix}",
                caller_address=context.caller_address,
            )
            metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="success").inc()
            return DeprovisionResult(
                name=tenant.name,
                namespace=tenant.namespace,
                warnings=list(result.warnings),
            )

        failed = result.failed_step
        reasons = [*result.warnings, failed.detail if failed else "record removal failed"]
        log.error("deprovisioning_failed", reasons=reasons)
        self._audit.record_for(
            AuditAction.DELETE_FAILED,
            tenant,
            status=DELETED_STATUS,
            message=f"Delete failed: {', '.join(reasons)}",
            caller_address=context.caller_address,
        )
        metrics.saga_runs_total.labels(saga=SAGA_NAME, outcome="failed").inc()
        error = result.error
        if isinstance(error, PersistenceError):
            raise error
        raise PersistenceError(", ".join(reasons))

    # -- steps ------------------------------------------------------------

    def _uninstall_release(self, context: DeprovisionContext) -> StepResult:
        tenant = context.tenant
        request = self._planner.uninstall_request(tenant.name, tenant.namespace)
        try:
            outcome = self._runner.run(request)
        except DeploymentError as exc:
            return StepResult.warn(STEP_UNINSTALL_RELEASE, f"Helm uninstall failed: {exc.reason}")

        if not outcome.succeeded:
            reason = "timed out" if outcome.timed_out else (outcome.stderr.strip() or f"exit code {outcome.exit_code}")
            return StepResult.warn(STEP_UNINSTALL_RELEASE, f"Helm uninstall failed: {reason}")
        return StepResult.ok(STEP_UNINSTALL_RELEASE, outcome.stdout.strip())

    def _delete_namespace(self, context: DeprovisionContext) -> StepResult:
        namespace = context.tenant.namespace
        try:
            self._cluster.delete_namespace(namespace)
        except ResourceMissingError:
            context.namespace_already_gone = True
            return StepResult.ok(STEP_DELETE_NAMESPACE, f"Namespace {namespace} already gone")
        except InfrastructureError as exc:
            return StepResult.warn(STEP_DELETE_NAMESPACE, f"Namespace deletion failed: {exc.reason}")

        # Advisory pause so the control plane starts reclaiming resources.
        if self._settle_seconds > 0:
            self._sleep(self._settle_seconds)
        return StepResult.ok(STEP_DELETE_NAMESPACE, f"Namespace {namespace} deletion initiated")

    def _remove_record(self, context: DeprovisionContext) -> StepResult:
        tenant = context.tenant
        try:
            removed = self._tenant_repo.delete_by_id(tenant.id)  # type: ignore[arg-type]
        except PersistenceError as exc:
            return StepResult.fatal(
                STEP_REMOVE_RECORD,
                PersistenceError(f"Database deletion failed: {exc.reason}"),
            )
        if not removed:
            get_logger(__name__, saga=SAGA_NAME, tenant=tenant.name).warning(
                "tenant_record_already_removed", tenant_id=tenant.id
            )
        return StepResult.ok(STEP_REMOVE_RECORD, f"Tenant record {tenant.id} removed")

    # -- helpers ----------------------------------------------------------

    def _resolve(self, key: str) -> Tenant:
        tenant = self._tenant_repo.find_by_name_or_namespace(key) if key else None
        if tenant is None:
            raise TenantNotFoundError(identifier=key)
        return tenant
