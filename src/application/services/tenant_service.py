"""Application service exposing the tenant lifecycle operations.

``TenantService`` is the surface an outer transport layer calls. It hands
create and delete intents to the sagas, status queries to the reconciler,
and serves the read and administrative operations on the tenant store and
audit log directly.
"""

from __future__ import annotations

import logging
from typing import Optional

from domain.models.audit import AuditEvent
from domain.models.tenant import Engine, Tenant

from application.ports import AuditRepository, TenantRepository
from application.schemas.results import DeprovisionResult, ProvisionResult, ReconcileResult
from application.services.deprovisioning_saga import DeprovisioningSaga
from application.services.provisioning_saga import ProvisioningSaga
from application.services.status_reconciler import StatusReconciler

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_LIMIT = 50


class TenantService:
    """Orchestrates tenant provisioning, deletion and status queries."""

    def __init__(
        self,
        provisioning: ProvisioningSaga,
        deprovisioning: DeprovisioningSaga,
        reconciler: StatusReconciler,
        tenant_repo: TenantRepository,
        audit_repo: AuditRepository,
    ) -> None:
        self._provisioning = provisioning
        self._deprovisioning = deprovisioning
        self._reconciler = reconciler
        self._tenant_repo = tenant_repo
        self._audit_repo = audit_repo

    # -- lifecycle --------------------------------------------------------

    def provision(
        self,
        name: str,
        engine: Engine | str,
        caller_address: Optional[str] = None,
    ) -> ProvisionResult:
        return self._provisioning.provision(name, engine, caller_address)

    def deprovision(self, key: str, caller_address: Optional[str] = None) -> DeprovisionResult:
        return self._deprovisioning.deprovision(key, caller_address)

    def reconcile(self, key: str) -> ReconcileResult:
        return self._reconciler.reconcile(key)

    # -- reads ------------------------------------------------------------

    def list_tenants(self) -> list[Tenant]:
        """Return every tracked tenant, newest first."""
        return self._tenant_repo.list_all()

    def recent_audit_events(
        self,
        limit: int = DEFAULT_AUDIT_LIMIT,
        tenant_name: Optional[str] = None,
    ) -> list[AuditEvent]:
        limit = limit if limit > 0 else DEFAULT_AUDIT_LIMIT
        return self._audit_repo.list_recent(limit=limit, tenant_name=tenant_name)

    # -- administration ---------------------------------------------------

    def reset(self) -> dict[str, int]:
        """Clear every tenant record and the whole audit log.

        Cluster resources are left untouched. The tenant identity sequence
        restarts so the next insert receives id 1.
        """
        tenants = self._tenant_repo.delete_all()
        events = self._audit_repo.delete_all()
        logger.warning("Administrative reset removed %d tenants and %d audit events", tenants, events)
        return {"tenants": tenants, "audit_events": events}
