"""Tests for the iteration controller."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from templatefit.config import Settings
from templatefit.document.store import InMemoryDocumentStore
from templatefit.events import ContentType, RunEvent, RunFinish
from templatefit.models.plan import AddOp, AnalysisResult, ContentPlan, ReplaceOp
from templatefit.models.validation import ContentFix, ContentIssue, ValidationResult
from templatefit.orchestrator.workflow import ContentFittingWorkflow, fit_template
from templatefit.reasoning.base import (
    AnalysisRequest,
    ReasoningService,
    ReasoningServiceError,
    RunLogContext,
    ValidationRequest,
)
from templatefit.recording.base import RunRecorder
from templatefit.recording.file_recorder import FileRunRecorder

from _builders import page_with_blocks

VALID = ValidationResult(content_valid=True, layout_valid=True)
INVALID = ValidationResult(content_valid=False, layout_valid=True)


def _replace(elem_id: str, new_text: str) -> AnalysisResult:
    return AnalysisResult(
        content_plan=ContentPlan(replace=[ReplaceOp(elem_id=elem_id, new_text=new_text)])
    )


def _unresolved_add() -> AnalysisResult:
    return AnalysisResult(content_plan=ContentPlan(add=[AddOp(position=[7, 1], text="x")]))


class ScriptedService(ReasoningService):
    """Replays queued answers; an exception instance in a queue is raised instead."""

    def __init__(self, analyses: list, validations: list) -> None:
        self.analyses = list(analyses)
        self.validations = list(validations)
        self.calls: list[str] = []
        self.contexts: list[RunLogContext | None] = []
        self.validation_requests: list[ValidationRequest] = []

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> AnalysisResult:
        self.calls.append("analyze")
        self.contexts.append(log_context)
        answer = self.analyses.pop(0) if len(self.analyses) > 1 else self.analyses[0]
        if isinstance(answer, Exception):
            raise answer
        return answer.model_copy(deep=True)

    async def validate(
        self,
        request: ValidationRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> ValidationResult:
        self.calls.append("validate")
        self.contexts.append(log_context)
        self.validation_requests.append(request)
        answer = self.validations.pop(0) if len(self.validations) > 1 else self.validations[0]
        if isinstance(answer, Exception):
            raise answer
        return answer


class MemoryRecorder(RunRecorder):
    def __init__(self) -> None:
        self.events: list[RunEvent] = []
        self.finishes: list[RunFinish] = []

    def append(self, event: RunEvent) -> None:
        self.events.append(event)

    def finish(self, record: RunFinish) -> None:
        self.finishes.append(record)


class BrokenRecorder(RunRecorder):
    def append(self, event: RunEvent) -> None:
        raise OSError("disk full")

    def finish(self, record: RunFinish) -> None:
        raise OSError("disk full")


def _run(workflow: ContentFittingWorkflow, store: InMemoryDocumentStore) -> InMemoryDocumentStore:
    return asyncio.run(workflow.run("A launch party poster", store, template_id="tpl-1"))


def test_converges_on_first_iteration() -> None:
    """Test the happy path: one analysis, one validation, success notification."""
    service = ScriptedService([_replace("t0", "Launch Party")], [VALID])
    recorder = MemoryRecorder()
    store = InMemoryDocumentStore(page_with_blocks())

    result = _run(ContentFittingWorkflow(service, recorder=recorder), store)

    assert result is store
    assert service.calls == ["analyze", "validate"]
    assert store.get_layer("t0").attrs["text"] == "Launch Party"
    assert len(recorder.finishes) == 1
    finish = recorder.finishes[0]
    assert finish.status == "success"
    assert finish.final_snapshot["elements"][0]["text"] == "Launch Party"
    assert service.validation_requests[0].execution_report.replaced == 1


def test_structural_retry_skips_validation_only_once() -> None:
    """Test that unresolved adds short-circuit validation in one iteration per run."""
    service = ScriptedService(
        [_unresolved_add(), _unresolved_add(), _replace("t0", "Done")],
        [INVALID, VALID],
    )
    recorder = MemoryRecorder()
    store = InMemoryDocumentStore(page_with_blocks())

    _run(ContentFittingWorkflow(service, recorder=recorder), store)

    assert service.calls == ["analyze", "analyze", "validate", "analyze", "validate"]
    retries = [e for e in recorder.events if e.content_type == ContentType.STRUCTURAL_RETRY]
    assert len(retries) == 1
    assert recorder.finishes[0].status == "success"


def test_structural_retry_needs_an_iteration_left() -> None:
    """Test that the last iteration always validates."""
    service = ScriptedService([_unresolved_add()], [INVALID])

    _run(ContentFittingWorkflow(service, max_iterations=1), InMemoryDocumentStore(page_with_blocks()))

    assert service.calls == ["analyze", "validate"]


def test_exhaustion_returns_document_and_reports_success() -> None:
    """Test that never converging is not an error."""
    service = ScriptedService([_replace("t1", "Still wrong")], [INVALID])
    recorder = MemoryRecorder()
    store = InMemoryDocumentStore(page_with_blocks())

    result = _run(ContentFittingWorkflow(service, recorder=recorder), store)

    assert result is store
    assert service.calls.count("analyze") == 3
    assert service.calls.count("validate") == 3
    assert [f.status for f in recorder.finishes] == ["success"]
    assert recorder.finishes[0].final_snapshot is not None


def test_exhaustion_can_be_reported_as_failure() -> None:
    """Test the opt-in failure notification on exhaustion."""
    service = ScriptedService([_replace("t1", "x")], [INVALID])
    recorder = MemoryRecorder()

    _run(
        ContentFittingWorkflow(service, recorder=recorder, report_success_on_exhaustion=False),
        InMemoryDocumentStore(page_with_blocks()),
    )

    assert recorder.finishes[0].status == "failed"
    assert "did not converge" in recorder.finishes[0].error_message


def test_validator_fixes_are_applied_before_next_iteration() -> None:
    """Test that suggested fixes run through the executor."""
    issue = ContentIssue(
        description="Subtitle is off-topic",
        fix=ContentFix(replace=[ReplaceOp(elem_id="t1", new_text="Friday 8pm")]),
    )
    service = ScriptedService(
        [_replace("t0", "Launch Party")],
        [ValidationResult(content_valid=False, layout_valid=True, issues=[issue]), VALID],
    )
    store = InMemoryDocumentStore(page_with_blocks())

    _run(ContentFittingWorkflow(service), store)

    assert store.get_layer("t1").attrs["text"] == "Friday 8pm"
    assert service.calls == ["analyze", "validate", "analyze", "validate"]


def test_fixes_are_not_applied_on_the_last_iteration() -> None:
    """Test that the final verdict does not edit the document."""
    issue = ContentIssue(
        description="Subtitle is off-topic",
        fix=ContentFix(replace=[ReplaceOp(elem_id="t1", new_text="Friday 8pm")]),
    )
    service = ScriptedService(
        [_replace("t0", "Launch Party")],
        [ValidationResult(content_valid=False, layout_valid=True, issues=[issue])],
    )
    store = InMemoryDocumentStore(page_with_blocks())

    _run(ContentFittingWorkflow(service, max_iterations=1), store)

    assert store.get_layer("t1").attrs["text"] == "Subtitle"


def test_transient_failure_moves_to_next_iteration() -> None:
    """Test that an error before the last iteration is retried."""
    service = ScriptedService(
        [ReasoningServiceError("timeout"), _replace("t0", "Recovered")],
        [VALID],
    )
    recorder = MemoryRecorder()
    store = InMemoryDocumentStore(page_with_blocks())

    _run(ContentFittingWorkflow(service, recorder=recorder), store)

    assert store.get_layer("t0").attrs["text"] == "Recovered"
    failed = [e for e in recorder.events if e.content_type == ContentType.ITERATION_FAILED]
    assert [e.data for e in failed] == ["timeout"]
    assert recorder.finishes[0].status == "success"


def test_failure_on_last_iteration_propagates() -> None:
    """Test that the final error is reported and re-raised."""
    service = ScriptedService([ReasoningServiceError("service down")], [VALID])
    recorder = MemoryRecorder()

    with pytest.raises(ReasoningServiceError, match="service down"):
        _run(ContentFittingWorkflow(service, recorder=recorder), InMemoryDocumentStore(page_with_blocks()))

    assert service.calls == ["analyze", "analyze", "analyze"]
    assert len(recorder.finishes) == 1
    assert recorder.finishes[0].status == "failed"
    assert recorder.finishes[0].error_message == "service down"


def test_recorder_errors_never_reach_the_run() -> None:
    """Test that a failing recorder is logged and ignored."""
    service = ScriptedService([_replace("t0", "Launch Party")], [VALID])
    store = InMemoryDocumentStore(page_with_blocks())

    _run(ContentFittingWorkflow(service, recorder=BrokenRecorder()), store)

    assert store.get_layer("t0").attrs["text"] == "Launch Party"


def test_log_context_follows_iterations() -> None:
    """Test run identity forwarded to the service."""
    service = ScriptedService([_replace("t0", "x")], [INVALID, VALID])
    recorder = MemoryRecorder()

    _run(ContentFittingWorkflow(service, recorder=recorder), InMemoryDocumentStore(page_with_blocks()))

    run_ids = {c.run_id for c in service.contexts}
    assert len(run_ids) == 1
    assert [c.iteration for c in service.contexts] == [1, 1, 2, 2]
    assert all(c.template_id == "tpl-1" for c in service.contexts)
    assert [e.seq for e in recorder.events] == list(range(1, len(recorder.events) + 1))
    assert recorder.events[0].content_type == ContentType.RUN_STARTED


def test_untracked_run_sends_no_log_context() -> None:
    """Test that runs without a recorder carry no run identity."""
    service = ScriptedService([_replace("t0", "x")], [VALID])

    _run(ContentFittingWorkflow(service), InMemoryDocumentStore(page_with_blocks()))

    assert service.contexts == [None, None]


def test_fit_template_blocks_until_done() -> None:
    """Test the synchronous wrapper."""
    service = ScriptedService([_replace("t0", "Sync")], [VALID])
    store = InMemoryDocumentStore(page_with_blocks())

    fit_template(ContentFittingWorkflow(service), "poster", store)

    assert store.get_layer("t0").attrs["text"] == "Sync"


def test_from_settings_wires_recorder_and_resolver(tmp_path: Path) -> None:
    """Test construction from settings with an injected service."""
    settings = Settings(
        runlog_backend="file",
        runlog_dir=tmp_path,
        missing_block_heuristic=False,
        max_iterations=2,
    )
    service = ScriptedService([_replace("t0", "x")], [INVALID])

    workflow = ContentFittingWorkflow.from_settings(settings, service=service)
    _run(workflow, InMemoryDocumentStore(page_with_blocks()))

    assert service.calls.count("validate") == 2
    runs = list(tmp_path.glob("run_*"))
    assert len(runs) == 1
    assert (runs[0] / "events.jsonl").exists()
    assert (runs[0] / "finish.json").exists()


def test_max_iterations_must_be_positive() -> None:
    """Test constructor validation."""
    with pytest.raises(ValueError):
        ContentFittingWorkflow(ScriptedService([_replace("t0", "x")], [VALID]), max_iterations=0)


def test_bad_list_count_does_not_discard_the_plan() -> None:
    """Test a plan with an invalid resize target on the only iteration."""
    analysis = AnalysisResult.model_validate(
        {
            "contentPlan": {
                "listAdjust": [{"rowDepth": [0, 0], "targetCount": -1}],
                "replace": [{"elemId": "t0", "newText": "Launch"}],
            },
            "layoutPlan": {},
        }
    )
    service = ScriptedService([analysis], [VALID])
    store = InMemoryDocumentStore(page_with_blocks())

    _run(ContentFittingWorkflow(service, max_iterations=1), store)

    assert store.get_layer("t0").attrs["text"] == "Launch"
    report = service.validation_requests[0].execution_report
    assert [e.step for e in report.errors] == ["listAdjust"]
