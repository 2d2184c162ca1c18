"""Service container for the tenant lifecycle orchestrator.

Builds every adapter and service explicitly from :class:`AppSettings`.
Collaborators can be injected (tests, alternative backends); anything not
injected is created from settings. ``start()`` prepares the store and
``close()`` releases the database pool and the cluster client.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.engine import Engine

from application.ports import AuditRepository, ClusterGateway, DeploymentRunner, TenantRepository
from application.services.audit_recorder import AuditRecorder
from application.services.deprovisioning_saga import DeprovisioningSaga
from application.services.provisioning_saga import ProvisioningSaga
from application.services.release_planner import ReleasePlanner
from application.services.status_reconciler import StatusReconciler
from application.services.tenant_locks import TenantLockRegistry
from application.services.tenant_service import TenantService
from domain.services.tenant_lifecycle import TenantLifecycleService
from infrastructure.cluster.kubernetes_gateway import KubernetesClusterGateway, build_api_client
from infrastructure.database.engine import (
    build_engine,
    build_session_factory,
    create_tables,
    dispose_engine,
)
from infrastructure.database.repository import SqlAuditRepository, SqlTenantRepository
from infrastructure.deployment.helm_runner import HelmDeploymentRunner
from infrastructure.observability.logging_config import setup_logging
from infrastructure.settings import AppSettings, get_settings

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Owns the process-wide collaborators and the services built on them."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        cluster: Optional[ClusterGateway] = None,
        runner: Optional[DeploymentRunner] = None,
        tenant_repo: Optional[TenantRepository] = None,
        audit_repo: Optional[AuditRepository] = None,
    ) -> None:
        self.settings = settings or get_settings()
        s = self.settings

        self._engine: Optional[Engine] = None
        if tenant_repo is None or audit_repo is None:
            self._engine = build_engine(s.database_url, echo=s.database_echo)
            session_factory = build_session_factory(self._engine)
            tenant_repo = tenant_repo or SqlTenantRepository(session_factory)
            audit_repo = audit_repo or SqlAuditRepository(session_factory)

        self.tenant_repo = tenant_repo
        self.audit_repo = audit_repo
        self.cluster = cluster or KubernetesClusterGateway(
            build_api_client(
                in_cluster=s.kube_in_cluster,
                kubeconfig_path=s.kubeconfig_path,
                context=s.kube_context,
            )
        )
        self.runner = runner or HelmDeploymentRunner(
            binary=s.helm_binary,
            timeout_seconds=s.helm_timeout_seconds,
        )

        # Domain services
        self.lifecycle_service = TenantLifecycleService(role_label_key=s.pod_role_label_key)

        # Application services
        self.locks = TenantLockRegistry()
        self.audit = AuditRecorder(self.audit_repo)
        self.planner = ReleasePlanner(
            chart_path=s.helm_chart_path,
            production=s.is_production,
            base_domain=s.ingress_base_domain,
            local_suffix=s.local_host_suffix,
            url_scheme=s.url_scheme,
            role_label_key=s.pod_role_label_key,
            engine_charts=dict(s.helm_engine_charts),
        )
        self.provisioning = ProvisioningSaga(
            cluster=self.cluster,
            runner=self.runner,
            tenant_repo=self.tenant_repo,
            audit=self.audit,
            planner=self.planner,
            locks=self.locks,
        )
        self.deprovisioning = DeprovisioningSaga(
            cluster=self.cluster,
            runner=self.runner,
            tenant_repo=self.tenant_repo,
            audit=self.audit,
            planner=self.planner,
            locks=self.locks,
            settle_seconds=s.namespace_settle_seconds,
        )
        self.reconciler = StatusReconciler(
            cluster=self.cluster,
            tenant_repo=self.tenant_repo,
            lifecycle_service=self.lifecycle_service,
        )
        self.tenant_service = TenantService(
            provisioning=self.provisioning,
            deprovisioning=self.deprovisioning,
            reconciler=self.reconciler,
            tenant_repo=self.tenant_repo,
            audit_repo=self.audit_repo,
        )

        logger.info("ServiceContainer initialized (environment=%s)", s.environment)

    # -- lifecycle --------------------------------------------------------

    def start(self, *, configure_logging: bool = True) -> ServiceContainer:
        """Configure logging and create the store tables if needed."""
        if configure_logging:
            setup_logging(self.settings.log_level)
        if self._engine is not None:
            create_tables(self._engine)
        logger.info("Tenant orchestrator started")
        return self

    def close(self) -> None:
        """Release the cluster client and the database pool."""
        try:
            self.cluster.close()
        finally:
            if self._engine is not None:
                dispose_engine(self._engine)
                self._engine = None
        logger.info("Tenant orchestrator stopped")

    def __enter__(self) -> ServiceContainer:
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.close()
