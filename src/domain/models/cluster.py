"""Value objects describing what the cluster and the deployment tool report."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional

POD_PHASE_RUNNING = "Running"


class PodRole(str, enum.Enum):
    WORKLOAD = "workload"
    DEPENDENCY = "dependency"


@dataclass(frozen=True)
class ContainerState:
    name: str
    ready: bool


@dataclass(frozen=True)
class PodInfo:
    name: str
    phase: Optional[str] = None
    containers: tuple[ContainerState, ...] = ()
    labels: dict[str, str] = field(default_factory=dict)

    @property
    def all_containers_ready(self) -> bool:
        # No reported containers means the pod has not been scheduled yet.
        return bool(self.containers) and all(c.ready for c in self.containers)

    @property
    def is_ready(self) -> bool:
        return self.phase == POD_PHASE_RUNNING and self.all_containers_ready


class ReleaseCommand(str, enum.Enum):
    INSTALL = "install"
    UNINSTALL = "uninstall"


@dataclass(frozen=True)
class ReleaseRequest:
    """Everything the deployment tool needs for one install or uninstall."""

    release_name: str
    namespace: str
    command: ReleaseCommand
    chart: Optional[str] = None
    values_files: tuple[str, ...] = ()
    overrides: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CommandResult:
    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0 and not self.timed_out
