"""Tests for infrastructure.cluster.kubernetes_gateway."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from domain.exceptions import InfrastructureError, ResourceConflictError, ResourceMissingError
from infrastructure.cluster.kubernetes_gateway import KubernetesClusterGateway, build_api_client

MODULE = "infrastructure.cluster.kubernetes_gateway"

# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------


@pytest.fixture
def core_api():
    with patch(f"{MODULE}.client.CoreV1Api") as core_cls:
        yield core_cls.return_value


@pytest.fixture
def api_client():
    return MagicMock()


@pytest.fixture
def gateway(api_client, core_api):
    return KubernetesClusterGateway(api_client)


def _pod(name, phase="Running", statuses=None, labels=None):
    return SimpleNamespace(
        metadata=SimpleNamespace(name=name, labels=labels),
        status=SimpleNamespace(
            phase=phase,
            container_statuses=[SimpleNamespace(name=n, ready=r) for n, r in (statuses or [])] or None,
        ),
    )


# ------------------------------------------------------------------
# Tests
# ------------------------------------------------------------------


class TestCreateNamespace:
    def test_creates_with_labels(self, gateway, core_api):
        gateway.create_namespace("store-acme", {"tenant-orchestrator/name": "acme"})
        body = core_api.create_namespace.call_args.kwargs["body"]
        assert body.metadata.name == "store-acme"
        assert body.metadata.labels == {"tenant-orchestrator/name": "acme"}

    def test_conflict_maps_to_resource_conflict(self, gateway, core_api):
        core_api.create_namespace.side_effect = ApiException(status=409, reason="Conflict")
        with pytest.raises(ResourceConflictError) as exc_info:
            gateway.create_namespace("store-acme")
        assert exc_info.value.status == 409

    def test_other_api_error(self, gateway, core_api):
        core_api.create_namespace.side_effect = ApiException(status=403, reason="Forbidden")
        with pytest.raises(InfrastructureError) as exc_info:
            gateway.create_namespace("store-acme")
        assert not isinstance(exc_info.value, ResourceConflictError)
        assert exc_info.value.reason == "Forbidden"

    def test_transport_error(self, gateway, core_api):
        core_api.create_namespace.side_effect = ConnectionError("refused")
        with pytest.raises(InfrastructureError, match="refused"):
            gateway.create_namespace("store-acme")


class TestDeleteNamespace:
    def test_deletes(self, gateway, core_api):
        gateway.delete_namespace("store-acme")
        core_api.delete_namespace.assert_called_once_with(name="store-acme")

    def test_not_found_maps_to_resource_missing(self, gateway, core_api):
        core_api.delete_namespace.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(ResourceMissingError):
            gateway.delete_namespace("store-acme")

    def test_other_api_error(self, gateway, core_api):
        core_api.delete_namespace.side_effect = ApiException(status=500, reason="Internal Server Error")
        with pytest.raises(InfrastructureError) as exc_info:
            gateway.delete_namespace("store-acme")
        assert not isinstance(exc_info.value, ResourceMissingError)


class TestListPods:
    def test_maps_pods(self, gateway, core_api):
        core_api.list_namespaced_pod.return_value = SimpleNamespace(
            items=[
                _pod("acme-wordpress-1", statuses=[("wordpress", True)], labels={"tenant-orchestrator/role": "workload"}),
                _pod("acme-mysql-0", phase="Pending"),
            ]
        )

        pods = gateway.list_pods("store-acme")

        core_api.list_namespaced_pod.assert_called_once_with(namespace="store-acme")
        assert [p.name for p in pods] == ["acme-wordpress-1", "acme-mysql-0"]
        assert pods[0].is_ready is True
        assert pods[0].labels == {"tenant-orchestrator/role": "workload"}
        assert pods[1].phase == "Pending"
        assert pods[1].containers == ()
        assert pods[1].labels == {}

    def test_empty_namespace(self, gateway, core_api):
        core_api.list_namespaced_pod.return_value = SimpleNamespace(items=[])
        assert gateway.list_pods("store-acme") == []

    def test_api_error(self, gateway, core_api):
        core_api.list_namespaced_pod.side_effect = ApiException(status=401, reason="Unauthorized")
        with pytest.raises(InfrastructureError) as exc_info:
            gateway.list_pods("store-acme")
        assert exc_info.value.operation == "list_pods"


class TestLifecycle:
    def test_close_closes_api_client(self, gateway, api_client):
        gateway.close()
        api_client.close.assert_called_once()


class TestBuildApiClient:
    def test_kubeconfig(self):
        with patch(f"{MODULE}.config.new_client_from_config") as new_client:
            result = build_api_client(kubeconfig_path="/tmp/kubeconfig", context="kind-dev")
        new_client.assert_called_once_with(config_file="/tmp/kubeconfig", context="kind-dev")
        assert result is new_client.return_value

    def test_in_cluster(self):
        with patch(f"{MODULE}.config.load_incluster_config") as load, patch(f"{MODULE}.client.ApiClient") as api_cls:
            result = build_api_client(in_cluster=True)
        load.assert_called_once()
        assert "client_configuration" in load.call_args.kwargs
        assert result is api_cls.return_value
