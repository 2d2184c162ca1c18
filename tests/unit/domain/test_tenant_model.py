"""Tests for src/domain/models/tenant.py and src/domain/models/cluster.py"""

import pytest

from domain.models.cluster import CommandResult, ContainerState, PodInfo
from domain.models.tenant import NAMESPACE_PREFIX, Engine, Tenant, TenantStatus, build_host, derive_namespace


class TestDeriveNamespace:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("acme", "store-acme"),
            ("my-shop", "store-myshop"),
            ("Shop_1", "store-shop1"),
            ("a.b.c", "store-abc"),
            ("---", "store-"),
        ],
    )
    def test_strips_and_lowercases(self, name, expected):
        assert derive_namespace(name) == expected

    def test_deterministic(self):
        assert derive_namespace("my-shop") == derive_namespace("my-shop")

    def test_distinct_names_can_collide(self):
        assert derive_namespace("my-shop") == derive_namespace("myshop")

    @pytest.mark.parametrize("name", ["acme", "My-Shop", "shop.io", "Acme_Store 1", "---"])
    def test_idempotent_on_its_own_suffix(self, name):
        namespace = derive_namespace(name)
        suffix = namespace[len(NAMESPACE_PREFIX):]
        assert derive_namespace(suffix) == namespace


class TestBuildHost:
    def test_production_uses_base_domain(self):
        assert build_host("acme", production=True, base_domain="nip.io", local_suffix=".local") == "acme.nip.io"

    def test_local_uses_suffix(self):
        assert build_host("acme", production=False, base_domain="nip.io", local_suffix=".local") == "acme.local"


class TestTenantDefaults:
    def test_defaults(self):
        tenant = Tenant(name="acme")
        assert tenant.status == TenantStatus.PROVISIONING
        assert tenant.engine == Engine.WOOCOMMERCE
        assert tenant.id is None
        assert tenant.created_at.tzinfo is not None

    def test_status_values(self):
        assert [s.value for s in TenantStatus] == ["Provisioning", "Installing", "Ready", "Failed"]


class TestPodInfo:
    def test_running_with_ready_containers_is_ready(self):
        pod = PodInfo(name="p", phase="Running", containers=(ContainerState("a", True), ContainerState("b", True)))
        assert pod.is_ready is True

    def test_one_unready_container(self):
        pod = PodInfo(name="p", phase="Running", containers=(ContainerState("a", True), ContainerState("b", False)))
        assert pod.all_containers_ready is False
        assert pod.is_ready is False

    def test_no_containers_is_not_ready(self):
        pod = PodInfo(name="p", phase="Running")
        assert pod.all_containers_ready is False
        assert pod.is_ready is False

    def test_pending_phase_is_not_ready(self):
        pod = PodInfo(name="p", phase="Pending", containers=(ContainerState("a", True),))
        assert pod.is_ready is False


class TestCommandResult:
    def test_zero_exit_succeeds(self):
        assert CommandResult(exit_code=0).succeeded is True

    def test_non_zero_exit_fails(self):
        assert CommandResult(exit_code=1, stderr="boom").succeeded is False

    def test_timeout_fails(self):
        assert CommandResult(exit_code=0, timed_out=True).succeeded is False
