"""Application settings loaded from environment variables via Pydantic."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class AppSettings(BaseSettings):
    """Central configuration for the tenant lifecycle orchestrator."""

    model_config = {"env_prefix": "APP_", "case_sensitive": False}

    # Deployment environment
    environment: Literal["local", "production"] = "local"
    # Production must point this at the ingress IP, e.g. "203.0.113.7.nip.io".
    ingress_base_domain: str = "127.0.0.1.nip.io"
    local_host_suffix: str = ".local"
    url_scheme: str = "http"

    # Tenant store
    database_url: str = "sqlite:///stores.db"
    database_echo: bool = False

    # Cluster access
    kube_in_cluster: bool = False
    kubeconfig_path: Optional[str] = None
    kube_context: Optional[str] = None

    # Packaging tool
    helm_binary: str = "helm"
    helm_chart_path: str = "charts/store-chart"
    helm_engine_charts: dict[str, str] = Field(default_factory=dict)
    helm_timeout_seconds: float = 300.0

    # Sagas
    namespace_settle_seconds: float = 2.0
    pod_role_label_key: str = "tenant-orchestrator/role"

    # Logging
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


def get_settings() -> AppSettings:
    """Return settings read from the current environment."""
    return AppSettings()
