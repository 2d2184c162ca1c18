from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from domain.exceptions import ValidationError
from domain.models.cluster import PodInfo, PodRole
from domain.models.tenant import Engine, TenantStatus

MAX_TENANT_NAME_LENGTH = 53

_TENANT_NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")


@dataclass(frozen=True)
class EngineProfile:
    engine: Engine
    workload_fragments: tuple[str, ...]
    dependency_fragments: tuple[str, ...]


ENGINE_PROFILES: dict[Engine, EngineProfile] = {
    Engine.WOOCOMMERCE: EngineProfile(
        engine=Engine.WOOCOMMERCE,
        workload_fragments=("wordpress", "store-chart"),
        dependency_fragments=("mysql", "mariadb"),
    ),
    Engine.MEDUSA: EngineProfile(
        engine=Engine.MEDUSA,
        workload_fragments=("medusa", "storefront"),
        dependency_fragments=("postgres",),
    ),
}


@dataclass(frozen=True)
class ReadinessAssessment:
    status: TenantStatus
    workload_ready: bool
    dependency_ready: bool


def validate_tenant_name(name: Optional[str]) -> str:
    if not name:
        raise ValidationError("name", "must not be empty")
    if len(name) > MAX_TENANT_NAME_LENGTH:
        raise ValidationError("name", f"must be at most {MAX_TENANT_NAME_LENGTH} characters")
    if not _TENANT_NAME_PATTERN.match(name):
        raise ValidationError(
            "name",
            "must contain only lowercase letters, digits and inner hyphens",
        )
    return name


def parse_engine(engine: Engine | str | None) -> Engine:
    if isinstance(engine, Engine):
        return engine
    try:
        return Engine(engine)
    except ValueError:
        supported = ", ".join(e.value for e in Engine)
        raise ValidationError("engine", f"{engine!r} is not one of: {supported}") from None


class TenantLifecycleService:
    """Pure decisions about a tenant's lifecycle state.

    Knows how to classify pods into the workload and dependency roles and
    how to derive a status from them. Holds no I/O.
    """

    def __init__(self, role_label_key: str = "tenant-orchestrator/role") -> None:
        self._role_label_key = role_label_key

    def classify_pod(self, pod: PodInfo, engine: Engine) -> Optional[PodRole]:
        label = pod.labels.get(self._role_label_key)
        if label is not None:
            try:
                return PodRole(label)
            except ValueError:
                return None

        profile = ENGINE_PROFILES[engine]
        pod_name = pod.name.lower()
        if any(fragment in pod_name for fragment in profile.workload_fragments):
            return PodRole.WORKLOAD
        if any(fragment in pod_name for fragment in profile.dependency_fragments):
            return PodRole.DEPENDENCY
        return None

    def assess(self, pods: Iterable[PodInfo], engine: Engine) -> ReadinessAssessment:
        """Derive a status from the pods currently in a tenant's namespace.

        No pods at all means the release has not materialised yet
        (``Provisioning``). Otherwise the tenant is ``Ready`` once at least
        one workload pod and one dependency pod are ready; an unhealthy
        replica is ignored as long as a sibling of the same role is ready.
        """
        pods = list(pods)
        if not pods:
            return ReadinessAssessment(
                status=TenantStatus.PROVISIONING,
                workload_ready=False,
                dependency_ready=False,
            )

        workload_ready = False
        dependency_ready = False
        for pod in pods:
            if not pod.is_ready:
                continue
            role = self.classify_pod(pod, engine)
            if role is PodRole.WORKLOAD:
                workload_ready = True
            elif role is PodRole.DEPENDENCY:
                dependency_ready = True

        status = TenantStatus.READY if workload_ready and dependency_ready else TenantStatus.INSTALLING
        return ReadinessAssessment(
            status=status,
            workload_ready=workload_ready,
            dependency_ready=dependency_ready,
        )

    def needs_update(self, current: TenantStatus, derived: TenantStatus) -> bool:
        return current != derived
