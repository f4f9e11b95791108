"""Per-run bridge between the workflow and an optional recorder.

Recorder calls are blocking I/O; they are offloaded to a thread and awaited in order.
A recorder failure is logged and never reaches the workflow.
"""

from __future__ import annotations

import asyncio
from typing import Any

from templatefit.events import ContentType, EventType, RunEvent, RunFinish, RunStatus
from templatefit.logging import get_logger, log_exception
from templatefit.reasoning.base import RunLogContext
from templatefit.recording.base import RunRecorder
from templatefit.utils.ids import new_run_id

logger = get_logger(__name__)


class RunTracker:
    """Sequence counter, log context factory and finish-once guard for one run."""

    def __init__(
        self,
        recorder: RunRecorder | None,
        *,
        template_id: str | None = None,
        template_title: str | None = None,
    ) -> None:
        self._recorder = recorder
        self._template_id = template_id
        self._template_title = template_title
        self._seq = 0
        self._finished = False
        self.run_id: str | None = new_run_id() if recorder is not None else None

    def log_context(self, iteration: int) -> RunLogContext | None:
        if self.run_id is None:
            return None
        return RunLogContext(
            run_id=self.run_id,
            iteration=iteration,
            template_id=self._template_id,
            template_title=self._template_title,
        )

    async def emit(
        self,
        event_type: EventType,
        content_type: ContentType,
        data: str | dict | list | None = None,
        *,
        metadata: dict[str, str | int | float | bool | None] | None = None,
    ) -> None:
        if self._recorder is None or self.run_id is None:
            return
        self._seq += 1
        event = RunEvent(
            run_id=self.run_id,
            seq=self._seq,
            event_type=event_type,
            content_type=content_type,
            data=data,
            metadata=dict(metadata or {}),
        )
        try:
            await asyncio.to_thread(self._recorder.append, event)
        except Exception:
            log_exception(logger, "Recording run event failed", content_type=content_type.value)

    async def finish(
        self,
        status: RunStatus,
        *,
        error_message: str | None = None,
        final_snapshot: dict[str, Any] | None = None,
    ) -> None:
        """Send the finish notification. Later calls for the same run are ignored."""

        if self._recorder is None or self.run_id is None or self._finished:
            return
        self._finished = True
        record = RunFinish(
            run_id=self.run_id,
            status=status,
            error_message=error_message,
            final_snapshot=final_snapshot,
        )
        try:
            await asyncio.to_thread(self._recorder.finish, record)
        except Exception:
            log_exception(logger, "Recording run finish failed", status=status)
