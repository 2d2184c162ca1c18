"""Structured values returned by the orchestrator entry points.

Each result exposes ``success`` and ``to_payload()`` so the outer transport
layer can render it without reaching into domain objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Optional

ERROR_STATUS = "Error"


@dataclass(frozen=True)
class ProvisionResult:
    name: str
    namespace: str
    url: str
    status: str
    engine: str
    success: bool = True

    def to_payload(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "status": self.status,
            "storeName": self.name,
            "namespace": self.namespace,
            "url": self.url,
        }


@dataclass(frozen=True)
class DeprovisionResult:
    name: str
    namespace: str
    warnings: List[str] = field(default_factory=list)
    success: bool = True

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": self.success,
            "message": f"Store {self.name} deleted",
            "deletedStore": {"name": self.name, "namespace": self.namespace},
        }
        if self.warnings:
            payload["warnings"] = list(self.warnings)
        return payload


@dataclass(frozen=True)
class PodSummary:
    name: str
    phase: Optional[str]
    ready: bool


@dataclass(frozen=True)
class ReadinessDetails:
    workload_ready: bool
    dependency_ready: bool


@dataclass(frozen=True)
class ReconcileResult:
    status: str
    namespace: str
    pods_found: List[PodSummary] = field(default_factory=list)
    details: Optional[ReadinessDetails] = None
    message: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status != ERROR_STATUS

    def to_payload(self) -> dict[str, Any]:
        if not self.success:
            return {"status": self.status, "message": self.message}
        payload: dict[str, Any] = {
            "status": self.status,
            "namespace": self.namespace,
            "podsFound": [
                {"name": pod.name, "phase": pod.phase, "ready": pod.ready}
                for pod in self.pods_found
            ],
        }
        if self.details is not None:
            payload["details"] = {
                "workloadReady": self.details.workload_ready,
                "dependencyReady": self.details.dependency_ready,
            }
        return payload
