"""Pull-based status reconciliation for a single tenant."""

from __future__ import annotations

import logging

from domain.exceptions import InfrastructureError, TenantNotFoundError
from domain.services.tenant_lifecycle import TenantLifecycleService
from infrastructure.observability import metrics

from application.ports import ClusterGateway, TenantRepository
from application.schemas.results import ERROR_STATUS, PodSummary, ReadinessDetails, ReconcileResult

logger = logging.getLogger(__name__)


class StatusReconciler:
    """Derives a tenant's status from live pods and persists changes.

    The stored status is written only when it differs from the derived one,
    so repeated polling does not produce redundant writes. A failed pod
    listing is reported as an ``Error`` result and leaves the stored status
    untouched: a transient read failure must never downgrade a known-good
    status.
    """

    def __init__(
        self,
        cluster: ClusterGateway,
        tenant_repo: TenantRepository,
        lifecycle_service: TenantLifecycleService,
    ) -> None:
        self._cluster = cluster
        self._tenant_repo = tenant_repo
        self._lifecycle = lifecycle_service

    def reconcile(self, key: str) -> ReconcileResult:
        tenant = self._tenant_repo.find_by_name_or_namespace(key) if key else None
        if tenant is None:
            raise TenantNotFoundError(identifier=key)

        try:
            pods = self._cluster.list_pods(tenant.namespace)
        except InfrastructureError as exc:
            logger.error("Pod listing failed for %s: %s", tenant.namespace, exc.reason)
            metrics.reconciliations_total.labels(status=ERROR_STATUS).inc()
            return ReconcileResult(
                status=ERROR_STATUS,
                namespace=tenant.namespace,
                message=exc.detail,
            )

        assessment = self._lifecycle.assess(pods, tenant.engine)
        if self._lifecycle.needs_update(tenant.status, assessment.status):
            self._tenant_repo.update_status(tenant.name, assessment.status)
            metrics.status_writes_total.labels(status=assessment.status.value).inc()
            logger.info(
                "Tenant %s status %s -> %s",
                tenant.name,
                tenant.status.value,
                assessment.status.value,
            )
        metrics.reconciliations_total.labels(status=assessment.status.value).inc()

        if not pods:
            return ReconcileResult(status=assessment.status.value, namespace=tenant.namespace)

        return ReconcileResult(
            status=assessment.status.value,
            namespace=tenant.namespace,
            pods_found=[
                PodSummary(name=pod.name, phase=pod.phase, ready=pod.all_containers_ready)
                for pod in pods
            ],
            details=ReadinessDetails(
                workload_ready=assessment.workload_ready,
                dependency_ready=assessment.dependency_ready,
            ),
        )
