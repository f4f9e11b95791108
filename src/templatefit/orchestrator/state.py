from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class WorkflowStatus(str, Enum):
    ANALYZING = "analyzing"
    EXECUTING = "executing"
    VALIDATING = "validating"
    CONVERGED = "converged"
    RETRYING = "retrying"
    APPLYING_FIX = "applying_fix"
    FAILED = "failed"
    EXHAUSTED = "exhausted"


@dataclass
class RunState:
    max_iterations: int = 3
    iteration: int = 0
    already_retried_for_add_errors: bool = False
    run_id: str | None = None
    status: WorkflowStatus = WorkflowStatus.ANALYZING

    def has_iterations_left(self) -> bool:
        return self.iteration < self.max_iterations

    def snapshot(self) -> dict[str, str | int | bool | None]:
        return {
            "run_id": self.run_id,
            "iteration": self.iteration,
            "max_iterations": self.max_iterations,
            "already_retried_for_add_errors": self.already_retried_for_add_errors,
            "status": self.status.value,
        }
