"""
Cluster gateway backed by the official Kubernetes Python client.

Each gateway owns its own :class:`ApiClient` built from either the
in-cluster service account or a kubeconfig file, instead of mutating the
client library's global default configuration. ``ApiException`` statuses
409 (create) and 404 (delete) are mapped to the idempotent conflict and
missing signals; everything else becomes an :class:`InfrastructureError`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from domain.exceptions import InfrastructureError, ResourceConflictError, ResourceMissingError
from domain.models.cluster import ContainerState, PodInfo

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409


def _reason(exc: ApiException) -> str:
    return exc.reason or str(exc)


def build_api_client(
    *,
    in_cluster: bool = False,
    kubeconfig_path: Optional[str] = None,
    context: Optional[str] = None,
) -> client.ApiClient:
    """Return an :class:`ApiClient` for the configured control plane."""
    if in_cluster:
        configuration = client.Configuration()
        config.load_incluster_config(client_configuration=configuration)
        logger.info("Using in-cluster Kubernetes configuration")
        return client.ApiClient(configuration)

    api_client = config.new_client_from_config(config_file=kubeconfig_path, context=context)
    logger.info(
        "Using kubeconfig %s (context=%s) against %s",
        kubeconfig_path or "default",
        context or "current",
        api_client.configuration.host,
    )
    return api_client


class KubernetesClusterGateway:
    """Namespace and pod operations through ``CoreV1Api``."""

    def __init__(self, api_client: client.ApiClient) -> None:
        self._api_client = api_client
        self._core = client.CoreV1Api(api_client)

    # ------------------------------------------------------------------
    # Namespaces
    # ------------------------------------------------------------------

    def create_namespace(self, name: str, labels: Optional[dict[str, str]] = None) -> None:
        body = client.V1Namespace(metadata=client.V1ObjectMeta(name=name, labels=labels or None))
        try:
            self._core.create_namespace(body=body)
        except ApiException as exc:
            if exc.status == HTTP_CONFLICT:
                logger.info("Namespace %s already exists", name)
                raise ResourceConflictError("create_namespace", _reason(exc), status=exc.status) from exc
            raise InfrastructureError("create_namespace", _reason(exc), status=exc.status) from exc
        except Exception as exc:
            raise InfrastructureError("create_namespace", str(exc)) from exc
        logger.info("Namespace %s created", name)

    def delete_namespace(self, name: str) -> None:
        try:
            self._core.delete_namespace(name=name)
        except ApiException as exc:
            if exc.status == HTTP_NOT_FOUND:
                logger.info("Namespace %s already gone", name)
                raise ResourceMissingError("delete_namespace", _reason(exc), status=exc.status) from exc
            raise InfrastructureError("delete_namespace", _reason(exc), status=exc.status) from exc
        except Exception as exc:
            raise InfrastructureError("delete_namespace", str(exc)) from exc
        logger.info("Namespace %s deletion initiated", name)

    # ------------------------------------------------------------------
    # Pods
    # ------------------------------------------------------------------

    def list_pods(self, namespace: str) -> list[PodInfo]:
        try:
            response = self._core.list_namespaced_pod(namespace=namespace)
        except ApiException as exc:
            raise InfrastructureError("list_pods", _reason(exc), status=exc.status) from exc
        except Exception as exc:
            raise InfrastructureError("list_pods", str(exc)) from exc
        return [self._to_pod_info(pod) for pod in (response.items or [])]

    @staticmethod
    def _to_pod_info(pod: Any) -> PodInfo:
        metadata = pod.metadata
        status = pod.status
        statuses = (status.container_statuses if status is not None else None) or []
        return PodInfo(
            name=metadata.name,
            phase=status.phase if status is not None else None,
            containers=tuple(ContainerState(name=cs.name, ready=bool(cs.ready)) for cs in statuses),
            labels=dict(metadata.labels or {}),
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._api_client.close()
