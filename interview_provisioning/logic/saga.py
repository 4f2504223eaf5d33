"""Ordered step runner with per-step compensation.

A `Saga` runs its steps strictly in order over a shared context dict. When a
step raises, every step that was started (including the failing one) is
compensated in reverse order and the original exception is re-raised.
Compensators must be idempotent and tolerate a context the step never
finished populating. A compensator that fails is logged and skipped; it never
replaces the original error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from interview_provisioning.logic.deadline import Deadline

logger = logging.getLogger(__name__)

Context = Dict[str, Any]


@dataclass(frozen=True)
class SagaStep:
    name: str
    action: Callable[[Context], None]
    compensate: Optional[Callable[[Context], None]] = None


class Saga:
    def __init__(
        self,
        name: str,
        steps: Sequence[SagaStep],
        *,
        deadline: Deadline | None = None,
        compensate: bool = True,
    ) -> None:
        self.name = name
        self.steps = list(steps)
        self.deadline = deadline
        self.compensation_enabled = compensate
        self.completed: List[str] = []
        self.compensation_failures: List[str] = []

    def run(self, context: Context) -> Context:
        started: List[SagaStep] = []
        for step in self.steps:
            try:
                if self.deadline is not None:
                    self.deadline.check(f"{self.name}.{step.name}")
                started.append(step)
                step.action(context)
            except Exception as exc:
                logger.warning(
                    "saga.step.failed saga=%s step=%s error=%s",
                    self.name,
                    step.name,
                    exc.__class__.__name__,
                )
                if self.compensation_enabled:
                    self._compensate(started, context)
                raise
            self.completed.append(step.name)
            logger.info("saga.step.ok saga=%s step=%s", self.name, step.name)
        return context

    def _compensate(self, started: List[SagaStep], context: Context) -> None:
        for step in reversed(started):
            if step.compensate is None:
                continue
            try:
                step.compensate(context)
                logger.info("saga.compensate.ok saga=%s step=%s", self.name, step.name)
            except Exception:
                self.compensation_failures.append(step.name)
                logger.error(
                    "saga.compensate.failed saga=%s step=%s",
                    self.name,
                    step.name,
                    exc_info=True,
                )


__all__ = ["Saga", "SagaStep", "Context"]
