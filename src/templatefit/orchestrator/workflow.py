"""Agentic content-fitting workflow.

Each iteration serializes the document, asks the reasoning service for a plan, applies it,
then asks the service to validate the result:

    analyzing -> executing -> validating -> converged | applying_fix | next iteration

Two deviations from that loop:

* structural retry: when an ``add`` could not find its row, the model's picture of the
  tree is wrong. The run skips validation once and re-analyzes against the current tree.
* soft exhaustion: running out of iterations without converging is not an error. The
  document is returned as it stands and, by default, the run is reported as a success.

An exception inside an iteration is logged and the next iteration starts; on the last
iteration the failure is reported and the exception propagates.
"""

from __future__ import annotations

import asyncio

from templatefit.config import Settings
from templatefit.document.serializer import extract_text_elements, serialize_structure, snapshot
from templatefit.document.store import DocumentOwner
from templatefit.events import ContentType, EventType
from templatefit.executor.plan_executor import DEFAULT_LINE_HEIGHT, ContentPlanExecutor
from templatefit.executor.resolution import DEFAULT_HEURISTICS, PositionResolver
from templatefit.llm.client import LLMClient
from templatefit.logging import get_logger, run_context, set_iteration
from templatefit.models.plan import ExecutionReport
from templatefit.models.validation import analysis_from_issues
from templatefit.orchestrator.state import RunState, WorkflowStatus
from templatefit.orchestrator.tracking import RunTracker
from templatefit.reasoning.base import (
    AnalysisRequest,
    ReasoningService,
    ValidationRequest,
)
from templatefit.reasoning.http_service import HttpReasoningService
from templatefit.reasoning.llm_service import LLMReasoningService
from templatefit.recording.base import RunRecorder
from templatefit.recording.file_recorder import FileRunRecorder
from templatefit.recording.redis_recorder import RedisRunRecorder

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 3


def _report_metadata(report: ExecutionReport) -> dict[str, int]:
    return {
        "replaced": report.replaced,
        "deleted": report.deleted,
        "added": report.added,
        "list_adjusted": report.list_adjusted,
        "errors": len(report.errors),
    }


class ContentFittingWorkflow:
    """Drive analyze/execute/validate rounds against one document."""

    def __init__(
        self,
        service: ReasoningService,
        *,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        report_success_on_exhaustion: bool = True,
        recorder: RunRecorder | None = None,
        resolver: PositionResolver | None = None,
        default_line_height: float = DEFAULT_LINE_HEIGHT,
    ) -> None:
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self._service = service
        self._max_iterations = max_iterations
        self._report_success_on_exhaustion = report_success_on_exhaustion
        self._recorder = recorder
        self._resolver = resolver or PositionResolver()
        self._default_line_height = default_line_height

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        service: ReasoningService | None = None,
        recorder: RunRecorder | None = None,
    ) -> "ContentFittingWorkflow":
        """Wire a workflow from settings; explicit collaborators take precedence."""

        if service is None:
            if settings.reasoning_backend == "http":
                service = HttpReasoningService(
                    settings.reasoning_base_url, timeout_s=settings.reasoning_timeout_s
                )
            else:
                service = LLMReasoningService(
                    LLMClient(settings),
                    analysis_temperature=settings.analysis_temperature,
                    validation_temperature=settings.validation_temperature,
                )

        if recorder is None:
            if settings.runlog_backend == "file":
                recorder = FileRunRecorder(settings.runlog_dir)
            elif settings.runlog_backend == "redis":
                recorder = RedisRunRecorder(
                    redis_url=settings.redis_url,
                    key_prefix=settings.redis_key_prefix,
                    ttl_seconds=settings.redis_ttl_seconds,
                )

        heuristics = DEFAULT_HEURISTICS if settings.missing_block_heuristic else ()
        return cls(
            service,
            max_iterations=settings.max_iterations,
            report_success_on_exhaustion=settings.report_success_on_exhaustion,
            recorder=recorder,
            resolver=PositionResolver(heuristics=heuristics),
            default_line_height=settings.default_line_height,
        )

    async def run(
        self,
        user_input: str,
        document: DocumentOwner,
        *,
        template_id: str | None = None,
        template_title: str | None = None,
    ) -> DocumentOwner:
        """Fit ``document`` to ``user_input`` and return the same document owner."""

        tracker = RunTracker(self._recorder, template_id=template_id, template_title=template_title)
        state = RunState(max_iterations=self._max_iterations, run_id=tracker.run_id)
        executor = ContentPlanExecutor(
            document,
            resolver=self._resolver,
            default_line_height=self._default_line_height,
        )

        with run_context(run_id=state.run_id, template_id=template_id):
            logger.info(
                "Run started",
                extra={"template_id": template_id, "max_iterations": state.max_iterations},
            )
            await tracker.emit(
                EventType.SYSTEM,
                ContentType.RUN_STARTED,
                data={"user_input": user_input},
                metadata={"template_id": template_id, "template_title": template_title},
            )

            while state.has_iterations_left():
                state.iteration += 1
                set_iteration(state.iteration)
                try:
                    if await self._iterate(user_input, document, executor, state, tracker):
                        return document
                except Exception as e:
                    if not state.has_iterations_left():
                        state.status = WorkflowStatus.FAILED
                        logger.exception("Final iteration failed", extra=state.snapshot())
                        await tracker.emit(EventType.ERROR, ContentType.ITERATION_FAILED, data=str(e))
                        await tracker.finish("failed", error_message=str(e))
                        raise
                    logger.warning(
                        "Iteration failed; retrying",
                        extra={"iteration": state.iteration, "error": str(e)},
                        exc_info=True,
                    )
                    await tracker.emit(EventType.ERROR, ContentType.ITERATION_FAILED, data=str(e))

            return await self._exhausted(document, state, tracker)

    async def _iterate(
        self,
        user_input: str,
        document: DocumentOwner,
        executor: ContentPlanExecutor,
        state: RunState,
        tracker: RunTracker,
    ) -> bool:
        """Run one iteration. Returns ``True`` once the document converged."""

        log_context = tracker.log_context(state.iteration)
        await tracker.emit(
            EventType.SYSTEM,
            ContentType.ITERATION_START,
            metadata={"iteration": state.iteration},
        )

        state.status = WorkflowStatus.ANALYZING
        doc = document.document
        analysis = await self._service.analyze(
            AnalysisRequest(
                user_input=user_input,
                template_elements=extract_text_elements(doc),
                grids_data_structure=serialize_structure(doc),
            ),
            log_context=log_context,
        )
        await tracker.emit(EventType.LLM, ContentType.ANALYSIS_RESULT, data=analysis.to_wire())

        state.status = WorkflowStatus.EXECUTING
        report = executor.execute(analysis)
        await tracker.emit(
            EventType.EXECUTION,
            ContentType.EXECUTION_REPORT,
            data=report.to_wire(),
            metadata=_report_metadata(report),
        )

        unresolved = report.unresolved_add_errors()
        if unresolved and not state.already_retried_for_add_errors and state.has_iterations_left():
            state.already_retried_for_add_errors = True
            state.status = WorkflowStatus.RETRYING
            logger.info(
                "Unresolved insert positions; re-analyzing without validation",
                extra={"iteration": state.iteration, "unresolved": len(unresolved)},
            )
            await tracker.emit(
                EventType.SYSTEM,
                ContentType.STRUCTURAL_RETRY,
                data=[e.error for e in unresolved],
            )
            return False

        state.status = WorkflowStatus.VALIDATING
        doc = document.document
        validation = await self._service.validate(
            ValidationRequest(
                user_input=user_input,
                template_elements=extract_text_elements(doc),
                grids_data_structure=serialize_structure(doc),
                execution_report=report,
            ),
            log_context=log_context,
        )
        await tracker.emit(EventType.LLM, ContentType.VALIDATION_RESULT, data=validation.to_wire())

        if validation.converged:
            state.status = WorkflowStatus.CONVERGED
            logger.info("Run converged", extra={"iteration": state.iteration})
            await tracker.emit(EventType.SYSTEM, ContentType.RUN_FINISHED, data="converged")
            await tracker.finish("success", final_snapshot=snapshot(document.document))
            return True

        if validation.issues and state.has_iterations_left():
            state.status = WorkflowStatus.APPLYING_FIX
            fix_report = executor.execute(analysis_from_issues(validation.issues))
            logger.info(
                "Applied validator fixes",
                extra={"iteration": state.iteration, "issues": len(validation.issues)},
            )
            await tracker.emit(
                EventType.EXECUTION,
                ContentType.FIX_APPLIED,
                data=fix_report.to_wire(),
                metadata=_report_metadata(fix_report),
            )

        return False

    async def _exhausted(
        self,
        document: DocumentOwner,
        state: RunState,
        tracker: RunTracker,
    ) -> DocumentOwner:
        state.status = WorkflowStatus.EXHAUSTED
        logger.warning(
            "Iteration budget exhausted without convergence; returning current document",
            extra={"max_iterations": state.max_iterations},
        )
        await tracker.emit(EventType.SYSTEM, ContentType.RUN_FINISHED, data="exhausted")
        if self._report_success_on_exhaustion:
            await tracker.finish("success", final_snapshot=snapshot(document.document))
        else:
            await tracker.finish(
                "failed",
                error_message=f"validation did not converge after {state.max_iterations} iterations",
                final_snapshot=snapshot(document.document),
            )
        return document


def fit_template(
    workflow: ContentFittingWorkflow,
    user_input: str,
    document: DocumentOwner,
    *,
    template_id: str | None = None,
    template_title: str | None = None,
) -> DocumentOwner:
    """Blocking wrapper around :meth:`ContentFittingWorkflow.run`."""

    return asyncio.run(
        workflow.run(
            user_input,
            document,
            template_id=template_id,
            template_title=template_title,
        )
    )
