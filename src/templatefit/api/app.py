"""FastAPI app exposing the reasoning endpoints and a one-shot fit endpoint.

``/analyze`` and ``/validate`` answer in the ``{success, message?, analysis|validation}``
envelope the HTTP reasoning client expects, so one deployment can serve another.
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from templatefit.config import Settings, load_settings
from templatefit.document.store import InMemoryDocumentStore
from templatefit.llm.client import LLMClient
from templatefit.logging import configure_logging, get_logger
from templatefit.models.base import CamelModel
from templatefit.models.document import LayoutDocument
from templatefit.orchestrator.workflow import ContentFittingWorkflow
from templatefit.reasoning.base import (
    AnalysisRequest,
    ReasoningService,
    ReasoningServiceError,
    RunLogContext,
    ValidationRequest,
    failure_envelope,
    success_envelope,
)
from templatefit.reasoning.llm_service import LLMReasoningService


class LogContextBody(CamelModel):
    run_id: str
    iteration: int
    template_id: str | None = None
    template_title: str | None = None

    def to_context(self) -> RunLogContext:
        return RunLogContext(
            run_id=self.run_id,
            iteration=self.iteration,
            template_id=self.template_id,
            template_title=self.template_title,
        )


class AnalyzeBody(AnalysisRequest):
    log_context: LogContextBody | None = None


class ValidateBody(ValidationRequest):
    log_context: LogContextBody | None = None


class FitBody(CamelModel):
    user_input: str
    document: LayoutDocument
    template_id: str | None = None
    template_title: str | None = None


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=failure_envelope(message))


def _context(body: AnalyzeBody | ValidateBody) -> RunLogContext | None:
    return body.log_context.to_context() if body.log_context is not None else None


def create_app(
    settings: Settings | None = None,
    service: ReasoningService | None = None,
) -> FastAPI:
    """Create FastAPI app.

    Args:
        settings: Settings to use; loaded from the environment when omitted.
        service: Reasoning service answering the endpoints; defaults to the in-process LLM.
    """

    settings = settings or load_settings()
    configure_logging(settings.log_level)
    logger = get_logger(__name__)

    if service is None:
        service = LLMReasoningService(
            LLMClient(settings),
            analysis_temperature=settings.analysis_temperature,
            validation_temperature=settings.validation_temperature,
        )

    app = FastAPI(title="templatefit", version="0.1.0")

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/analyze")
    async def analyze(body: AnalyzeBody) -> Any:
        if not body.user_input.strip():
            return _failure(400, "userInput must not be empty")
        logger.info(
            "API analyze requested",
            extra={"elements": len(body.template_elements), "rows": len(body.grids_data_structure)},
        )
        request = AnalysisRequest(
            user_input=body.user_input,
            template_elements=body.template_elements,
            grids_data_structure=body.grids_data_structure,
        )
        try:
            analysis = await service.analyze(request, log_context=_context(body))
        except ReasoningServiceError as e:
            logger.warning("Analysis failed", extra={"error": str(e)})
            return _failure(500, str(e))
        return success_envelope("analysis", analysis)

    @app.post("/validate")
    async def validate(body: ValidateBody) -> Any:
        if not body.user_input.strip():
            return _failure(400, "userInput must not be empty")
        logger.info("API validate requested", extra={"elements": len(body.template_elements)})
        request = ValidationRequest(
            user_input=body.user_input,
            template_elements=body.template_elements,
            grids_data_structure=body.grids_data_structure,
            execution_report=body.execution_report,
        )
        try:
            validation = await service.validate(request, log_context=_context(body))
        except ReasoningServiceError as e:
            logger.warning("Validation failed", extra={"error": str(e)})
            return _failure(500, str(e))
        return success_envelope("validation", validation)

    @app.post("/fit")
    async def fit(body: FitBody) -> Any:
        if not body.user_input.strip():
            return _failure(400, "userInput must not be empty")
        logger.info("API fit requested", extra={"template_id": body.template_id})
        workflow = ContentFittingWorkflow.from_settings(settings, service=service)
        store = InMemoryDocumentStore(body.document)
        try:
            await workflow.run(
                body.user_input,
                store,
                template_id=body.template_id,
                template_title=body.template_title,
            )
        except Exception as e:
            logger.exception("Fit failed")
            return _failure(500, str(e))
        return {"success": True, "document": store.document.to_wire()}

    return app

