"""Turns a tenant into concrete deployment-tool requests and addresses."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import PurePath

from domain.models.cluster import ReleaseCommand, ReleaseRequest
from domain.models.tenant import Engine, build_host


@dataclass(frozen=True)
class ReleasePlanner:
    """Deterministic naming and chart selection for a deployment environment.

    ``chart_path`` is used for every engine unless ``engine_charts`` names a
    dedicated chart. Values files are layered as ``values.yaml`` followed by
    ``values-<env>.yaml`` where ``<env>`` is ``prod`` or ``local``.
    """

    chart_path: str
    production: bool = False
    base_domain: str = "127.0.0.1.nip.io"
    local_suffix: str = ".local"
    url_scheme: str = "http"
    role_label_key: str = "tenant-orchestrator/role"
    engine_charts: dict[str, str] = field(default_factory=dict)

    @property
    def environment(self) -> str:
        return "prod" if self.production else "local"

    def host_for(self, name: str) -> str:
        return build_host(
            name,
            production=self.production,
            base_domain=self.base_domain,
            local_suffix=self.local_suffix,
        )

    def url_for(self, name: str) -> str:
        return f"{self.url_scheme}://{self.host_for(name)}"

    def chart_for(self, engine: Engine) -> str:
        return self.engine_charts.get(engine.value, self.chart_path)

    def install_request(self, name: str, namespace: str, engine: Engine) -> ReleaseRequest:
        chart = self.chart_for(engine)
        return ReleaseRequest(
            release_name=name,
            namespace=namespace,
            command=ReleaseCommand.INSTALL,
            chart=chart,
            values_files=(
                str(PurePath(chart) / "values.yaml"),
                str(PurePath(chart) / f"values-{self.environment}.yaml"),
            ),
            overrides={
                "ingress.host": self.host_for(name),
                "engine": engine.value,
                "roleLabelKey": self.role_label_key,
            },
        )

    def uninstall_request(self, name: str, namespace: str) -> ReleaseRequest:
        return ReleaseRequest(
            release_name=name,
            namespace=namespace,
            command=ReleaseCommand.UNINSTALL,
        )
