"""
Prometheus metrics for the tenant lifecycle orchestrator.

Counters and histograms are module-level singletons on the default
registry. Exposition is left to whichever process embeds the orchestrator.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter, Histogram

# ======================================================================
# Saga metrics
# ======================================================================

saga_runs_total = Counter(
    "tenant_saga_runs_total",
    "Completed saga runs by saga and outcome",
    labelnames=["saga", "outcome"],
    registry=REGISTRY,
)

saga_duration_seconds = Histogram(
    "tenant_saga_duration_seconds",
    "Wall-clock duration of saga runs in seconds",
    labelnames=["saga"],
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0, 600.0),
    registry=REGISTRY,
)

saga_warnings_total = Counter(
    "tenant_saga_warnings_total",
    "Warnings accumulated by best-effort saga steps",
    labelnames=["saga"],
    registry=REGISTRY,
)

# ======================================================================
# Collaborator metrics
# ======================================================================

deployment_commands_total = Counter(
    "tenant_deployment_commands_total",
    "Packaging tool invocations by command and result",
    labelnames=["command", "result"],
    registry=REGISTRY,
)

reconciliations_total = Counter(
    "tenant_reconciliations_total",
    "Status reconciliations by derived status",
    labelnames=["status"],
    registry=REGISTRY,
)

status_writes_total = Counter(
    "tenant_status_writes_total",
    "Persisted status changes made by the reconciler",
    labelnames=["status"],
    registry=REGISTRY,
)
