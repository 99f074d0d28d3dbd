"""Ordered actions with compensations, undone in reverse on failure."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..domain import Plan
from ..errors import CompensationFailure

logger = logging.getLogger(__name__)


@dataclass
class SagaStep:
    name: str
    action: Callable[[], Any]
    compensation: Optional[Callable[[], Any]] = None


class Saga:
    def __init__(self, operation: str, *, plan: Optional[Plan] = None, **state: Any) -> None:
        self.operation = operation
        self.plan = dict(plan or {})
        self.state: Dict[str, Any] = state
        self.failed_step: Optional[str] = None
        self._steps: List[SagaStep] = []

    def step(
        self,
        name: str,
        action: Callable[[], Any],
        compensation: Optional[Callable[[], Any]] = None,
    ) -> "Saga":
        self._steps.append(SagaStep(name=name, action=action, compensation=compensation))
        return self

    def run(self) -> Dict[str, Any]:
        results: Dict[str, Any] = {}
        completed: List[SagaStep] = []
        for step in self._steps:
            try:
                results[step.name] = step.action()
            except Exception as exc:
                self.failed_step = step.name
                logger.warning(
                    "%s: step '%s' failed (%s); compensating %s completed step(s)",
                    self.operation,
                    step.name,
                    exc,
                    len(completed),
                )
                self._compensate(completed, exc)
                raise
            completed.append(step)
        return results

    def _compensate(self, completed: List[SagaStep], original: BaseException) -> None:
        errors: List[BaseException] = []
        failed: List[str] = []
        for step in reversed(completed):
            if step.compensation is None:
                continue
            try:
                step.compensation()
            except Exception as exc:
                logger.critical(
                    "%s: compensation for step '%s' failed: %s", self.operation, step.name, exc
                )
                errors.append(exc)
                failed.append(step.name)
        if errors:
            raise CompensationFailure(
                self.operation,
                original=original,
                errors=errors,
                plan=self.plan,
                state={
                    **self.state,
                    "failed_step": self.failed_step,
                    "failed_compensations": failed,
                },
            ) from original
