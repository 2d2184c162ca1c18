from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Optional

NAMESPACE_PREFIX = "store-"

_NAMESPACE_STRIP = re.compile(r"[^a-z0-9]")


class TenantStatus(str, enum.Enum):
    PROVISIONING = "Provisioning"
    INSTALLING = "Installing"
    READY = "Ready"
    FAILED = "Failed"


class Engine(str, enum.Enum):
    WOOCOMMERCE = "woocommerce"
    MEDUSA = "medusa"


def derive_namespace(name: str) -> str:
    """Return the isolation namespace for a tenant name.

    ``"store-"`` followed by the lowercased name with every character
    outside ``[a-z0-9]`` removed.
    """
    return NAMESPACE_PREFIX + _NAMESPACE_STRIP.sub("", name.lower())


def build_host(name: str, *, production: bool, base_domain: str, local_suffix: str) -> str:
    if production:
        return f"{name}.{base_domain}"
    return f"{name}{local_suffix}"


@dataclass
class Tenant:
    name: str = ""
    engine: Engine = Engine.WOOCOMMERCE
    namespace: str = ""
    status: TenantStatus = TenantStatus.PROVISIONING
    url: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: Optional[int] = None
