"""Iteration controller for content fitting."""

from __future__ import annotations

from templatefit.orchestrator.state import RunState, WorkflowStatus
from templatefit.orchestrator.tracking import RunTracker
from templatefit.orchestrator.workflow import ContentFittingWorkflow, fit_template

__all__ = [
    "ContentFittingWorkflow",
    "RunState",
    "RunTracker",
    "WorkflowStatus",
    "fit_template",
]
