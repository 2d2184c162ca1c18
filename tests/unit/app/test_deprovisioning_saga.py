"""Unit tests for DeprovisioningSaga: best-effort cluster cleanup, record removal."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from domain.exceptions import (
    DeploymentError,
    InfrastructureError,
    OrchestrationError,
    PersistenceError,
    TenantNotFoundError,
)
from domain.models.audit import AuditAction
from domain.models.cluster import CommandResult, ReleaseCommand


def _actions(audit_repo):
    return [e.action for e in audit_repo.events]


class TestDeprovisionSuccess:
    def test_clean_delete(self, deprovisioning, stored_tenant, cluster, runner, tenant_repo, audit_repo, sleeps):
        result = deprovisioning.deprovision("acme", caller_address="10.0.0.2")

        assert result.success is True
        assert result.warnings == []
        assert result.to_payload() == {
            "success": True,
            "message": "Store acme deleted",
            "deletedStore": {"name": "acme", "namespace": "store-acme"},
        }
        assert runner.requests[0].command is ReleaseCommand.UNINSTALL
        assert runner.requests[0].release_name == "acme"
        assert cluster.deleted == ["store-acme"]
        assert sleeps == [2.0]
        assert tenant_repo.list_all() == []
        assert _actions(audit_repo) == [AuditAction.DELETE_STARTED, AuditAction.DELETE_SUCCESS]
        assert audit_repo.events[-1].message == "Store deleted successfully"
        assert audit_repo.events[-1].status == "Deleted"

    def test_lookup_by_namespace(self, deprovisioning, stored_tenant, tenant_repo):
        result = deprovisioning.deprovision("store-acme")
        assert result.name == "acme"
        assert tenant_repo.list_all() == []

    def test_namespace_already_gone_is_not_a_warning(self, deprovisioning, stored_tenant, cluster, sleeps):
        cluster.namespaces.clear()
        result = deprovisioning.deprovision("acme")
        assert result.success is True
        assert result.warnings == []
        assert sleeps == []


class TestDeprovisionWarnings:
    def test_uninstall_and_namespace_failures_become_warnings(
        self, deprovisioning, stored_tenant, cluster, runner, tenant_repo, audit_repo
    ):
        runner.results["uninstall"] = CommandResult(exit_code=1, stderr="release: not found")
        cluster.delete_error = InfrastructureError("delete_namespace", "Forbidden", status=403)

        result = deprovisioning.deprovision("acme")

        assert result.success is True
        assert len(result.warnings) == 2
        assert result.warnings[0] == "Helm uninstall failed: release: not found"
        assert result.warnings[1] == "Namespace deletion failed: Forbidden"
        assert result.to_payload()["warnings"] == result.warnings
        assert tenant_repo.list_all() == []
        assert audit_repo.events[-1].action is AuditAction.DELETE_SUCCESS
        assert audit_repo.events[-1].message == "Store deleted successfully with warnings"

    def test_uninstall_launch_failure_is_warning(self, deprovisioning, stored_tenant, runner):
        runner.errors["uninstall"] = DeploymentError("acme", "could not run helm")
        result = deprovisioning.deprovision("acme")
        assert result.warnings == ["Helm uninstall failed: could not run helm"]

    def test_uninstall_timeout_is_warning(self, deprovisioning, stored_tenant, runner):
        runner.results["uninstall"] = CommandResult(exit_code=-1, timed_out=True)
        result = deprovisioning.deprovision("acme")
        assert result.warnings == ["Helm uninstall failed: timed out"]


class TestDeprovisionFailure:
    def test_record_removal_failure(self, deprovisioning, stored_tenant, tenant_repo, audit_repo, monkeypatch):
        monkeypatch.setattr(tenant_repo, "delete_by_id", MagicMock(side_effect=PersistenceError("locked")))

        with pytest.raises(PersistenceError) as exc_info:
            deprovisioning.deprovision("acme")

        assert "Database deletion failed: locked" in exc_info.value.detail
        assert _actions(audit_repo) == [AuditAction.DELETE_STARTED, AuditAction.DELETE_FAILED]
        assert "Database deletion failed" in audit_repo.events[-1].message

    def test_failure_message_lists_earlier_warnings(
        self, deprovisioning, stored_tenant, runner, tenant_repo, audit_repo, monkeypatch
    ):
        runner.results["uninstall"] = CommandResult(exit_code=1, stderr="boom")
        monkeypatch.setattr(tenant_repo, "delete_by_id", MagicMock(side_effect=PersistenceError("locked")))

        with pytest.raises(PersistenceError):
            deprovisioning.deprovision("acme")

        message = audit_repo.events[-1].message
        assert "Helm uninstall failed: boom" in message
        assert "Database deletion failed: locked" in message

    def test_unexpected_error(self, deprovisioning, stored_tenant, cluster, audit_repo):
        cluster.delete_error = RuntimeError("socket closed")
        with pytest.raises(OrchestrationError):
            deprovisioning.deprovision("acme")
        assert _actions(audit_repo) == [AuditAction.DELETE_STARTED, AuditAction.DELETE_FAILED]


class TestDeprovisionNotFound:
    def test_unknown_tenant_has_no_side_effects(self, deprovisioning, cluster, runner, audit_repo):
        with pytest.raises(TenantNotFoundError):
            deprovisioning.deprovision("ghost")
        assert runner.requests == []
        assert cluster.deleted == []
        assert audit_repo.events == []

    def test_empty_key(self, deprovisioning, runner):
        with pytest.raises(TenantNotFoundError):
            deprovisioning.deprovision("")
        assert runner.requests == []

    def test_second_delete_is_not_found(self, deprovisioning, stored_tenant):
        deprovisioning.deprovision("acme")
        with pytest.raises(TenantNotFoundError):
            deprovisioning.deprovision("acme")
