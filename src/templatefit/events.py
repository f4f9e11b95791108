"""Run log model.

A tracked run produces a sequence of events followed by exactly one finish record. Both
are handed to a recorder so the run can be inspected later.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class EventType(str, Enum):
    """High-level event categories."""

    SYSTEM = "system"
    LLM = "llm"
    EXECUTION = "execution"
    ERROR = "error"


class ContentType(str, Enum):
    """Semantic types within event streams."""

    RUN_STARTED = "run_started"
    ITERATION_START = "iteration_start"
    ANALYSIS_RESULT = "analysis_result"
    EXECUTION_REPORT = "execution_report"
    STRUCTURAL_RETRY = "structural_retry"
    VALIDATION_RESULT = "validation_result"
    FIX_APPLIED = "fix_applied"
    ITERATION_FAILED = "iteration_failed"
    RUN_FINISHED = "run_finished"


class RunEvent(BaseModel):
    """A single event in a run."""

    run_id: str
    seq: int = Field(ge=1)
    ts: datetime = Field(default_factory=datetime.utcnow)

    event_type: EventType
    content_type: ContentType

    data: str | dict | list | None = None
    metadata: dict[str, str | int | float | bool | None] = Field(default_factory=dict)


RunStatus = Literal["success", "failed"]


class RunFinish(BaseModel):
    """Terminal notification for a tracked run."""

    run_id: str
    status: RunStatus
    error_message: str | None = None
    final_snapshot: dict[str, Any] | None = None
    ts: datetime = Field(default_factory=datetime.utcnow)
