"""
Small synchronous saga runner.

A saga is an ordered pipeline of steps spanning systems that share no
transaction. Each step reports a tagged :class:`StepResult` and the runner
applies that step's failure policy:

* ``OK``         -- continue with the next step.
* ``WARN``       -- record the detail as a warning and continue.
* ``COMPENSATE`` -- stop, then undo every completed step that registered a
  compensation, most recent first. Compensation failures are logged and
  never change the outcome.
* ``FATAL``      -- stop without compensating anything.

Exceptions raised by a step are not caught here; the caller owns the saga
boundary and decides how unexpected faults are recorded.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from domain.exceptions import DomainError

C = TypeVar("C")

logger = logging.getLogger(__name__)


class StepOutcome(str, Enum):
    OK = "ok"
    WARN = "warn"
    COMPENSATE = "compensate"
    FATAL = "fatal"


@dataclass
class StepResult:
    step: str
    outcome: StepOutcome
    detail: str = ""
    error: Optional[DomainError] = None

    @classmethod
    def ok(cls, step: str, detail: str = "") -> StepResult:
        return cls(step=step, outcome=StepOutcome.OK, detail=detail)

    @classmethod
    def warn(cls, step: str, detail: str) -> StepResult:
        return cls(step=step, outcome=StepOutcome.WARN, detail=detail)

    @classmethod
    def compensate(cls, step: str, error: DomainError) -> StepResult:
        return cls(step=step, outcome=StepOutcome.COMPENSATE, detail=error.detail, error=error)

    @classmethod
    def fatal(cls, step: str, error: DomainError) -> StepResult:
        return cls(step=step, outcome=StepOutcome.FATAL, detail=error.detail, error=error)

    @property
    def failed(self) -> bool:
        return self.outcome in (StepOutcome.COMPENSATE, StepOutcome.FATAL)


@dataclass(frozen=True)
class SagaStep(Generic[C]):
    name: str
    action: Callable[[C], StepResult]
    compensation: Optional[Callable[[C], None]] = None


@dataclass
class SagaResult:
    """Outcome of one saga run."""

    saga: str
    success: bool = True
    steps: list[StepResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    compensated: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: Optional[datetime] = None

    @property
    def failed_step(self) -> Optional[StepResult]:
        for result in self.steps:
            if result.failed:
                return result
        return None

    @property
    def error(self) -> Optional[DomainError]:
        failed = self.failed_step
        return failed.error if failed else None


class SagaRunner(Generic[C]):
    """Executes an ordered list of :class:`SagaStep` against a context."""

    def __init__(self, name: str, steps: list[SagaStep[C]]) -> None:
        self._name = name
        self._steps = list(steps)

    @property
    def step_names(self) -> list[str]:
        return [step.name for step in self._steps]

    def run(self, context: C) -> SagaResult:
        result = SagaResult(saga=self._name)
        completed: list[SagaStep[C]] = []

        for step in self._steps:
            step_result = step.action(context)
            result.steps.append(step_result)

            if step_result.outcome is StepOutcome.OK:
                completed.append(step)
            elif step_result.outcome is StepOutcome.WARN:
                result.warnings.append(step_result.detail)
                completed.append(step)
            elif step_result.outcome is StepOutcome.COMPENSATE:
                result.success = False
                self._compensate(completed, context, result)
                break
            else:
                result.success = False
                break

        result.completed_at = datetime.now(UTC)
        logger.info(
            "Saga %s finished (success=%s, warnings=%d) in %.3fs",
            self._name,
            result.success,
            len(result.warnings),
            (result.completed_at - result.started_at).total_seconds(),
        )
        return result

    def _compensate(self, completed: list[SagaStep[C]], context: C, result: SagaResult) -> None:
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation(context)
                result.compensated.append(step.name)
            except Exception:
                logger.exception("Compensation for step %s of saga %s failed", step.name, self._name)
