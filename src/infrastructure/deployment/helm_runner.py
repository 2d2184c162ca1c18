"""
Deployment runner that shells out to the Helm CLI.

Commands are built as argument lists and executed without a shell, so
tenant names never pass through shell parsing. Every invocation is bounded
by a timeout; on expiry the child is killed and the run reported as
``timed_out`` rather than blocking the saga forever.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable

from domain.exceptions import DeploymentError
from domain.models.cluster import CommandResult, ReleaseCommand, ReleaseRequest
from infrastructure.observability import metrics

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 300.0

# Keep captured output in log lines readable.
_LOG_OUTPUT_LIMIT = 800


def build_helm_args(request: ReleaseRequest, binary: str = "helm") -> list[str]:
    """Return the argv for *request*."""
    if request.command is ReleaseCommand.INSTALL:
        if not request.chart:
            raise DeploymentError(request.release_name, "install requires a chart")
        args = [binary, "install", request.release_name, request.chart, "--namespace", request.namespace]
        for values_file in request.values_files:
            args += ["-f", values_file]
        for key, value in request.overrides.items():
            args += ["--set", f"{key}={value}"]
        return args
    return [binary, "uninstall", request.release_name, "--namespace", request.namespace]


class HelmDeploymentRunner:
    """Runs ``helm install`` / ``helm uninstall`` and captures the result."""

    def __init__(
        self,
        binary: str = "helm",
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        run: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self._binary = binary
        self._timeout = timeout_seconds
        self._run = run

    def run(self, request: ReleaseRequest) -> CommandResult:
        args = build_helm_args(request, self._binary)
        command = request.command.value
        logger.info("helm> %s", " ".join(args))

        try:
            completed = self._run(args, capture_output=True, text=True, timeout=self._timeout, check=False)
        except subprocess.TimeoutExpired as exc:
            logger.error("helm %s for %s timed out after %ss", command, request.release_name, self._timeout)
            metrics.deployment_commands_total.labels(command=command, result="timeout").inc()
            return CommandResult(
                exit_code=-1,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
                timed_out=True,
            )
        except OSError as exc:
            metrics.deployment_commands_total.labels(command=command, result="launch_error").inc()
            raise DeploymentError(request.release_name, f"could not run {self._binary}: {exc}") from exc

        result = CommandResult(
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if result.succeeded:
            logger.info("helm %s succeeded: %s", command, result.stdout[:_LOG_OUTPUT_LIMIT])
            if result.stderr:
                logger.warning("helm %s stderr: %s", command, result.stderr[:_LOG_OUTPUT_LIMIT])
            metrics.deployment_commands_total.labels(command=command, result="success").inc()
        else:
            logger.error(
                "helm %s failed (rc=%s): %s",
                command,
                result.exit_code,
                result.stderr[:_LOG_OUTPUT_LIMIT],
            )
            metrics.deployment_commands_total.labels(command=command, result="failure").inc()
        return result


def _as_text(output: bytes | str | None) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output
