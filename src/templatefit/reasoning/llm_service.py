"""Reasoning service backed by an OpenAI-compatible chat model."""

from __future__ import annotations

import asyncio

from pydantic import ValidationError

from templatefit.llm.client import ChatMessage, LLMClient
from templatefit.logging import get_logger
from templatefit.models.plan import AnalysisResult
from templatefit.models.validation import ValidationResult
from templatefit.reasoning.base import (
    AnalysisRequest,
    ReasoningService,
    ReasoningServiceError,
    RunLogContext,
    ValidationRequest,
)
from templatefit.reasoning.prompts import (
    ANALYSIS_SYSTEM_PROMPT,
    VALIDATION_SYSTEM_PROMPT,
    build_analysis_prompt,
    build_validation_prompt,
)
from templatefit.utils.json_payload import extract_json_object

logger = get_logger(__name__)


def _context_payload(log_context: RunLogContext | None) -> dict:
    return log_context.to_payload() if log_context is not None else {}


class LLMReasoningService(ReasoningService):
    """Ask the model for plans and verdicts and parse its JSON answers."""

    def __init__(
        self,
        llm: LLMClient,
        *,
        analysis_temperature: float = 0.7,
        validation_temperature: float = 0.2,
    ) -> None:
        self._llm = llm
        self._analysis_temperature = analysis_temperature
        self._validation_temperature = validation_temperature

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> AnalysisResult:
        logger.debug("Analysis requested", extra={"log_context": _context_payload(log_context)})
        prompt = build_analysis_prompt(
            request.user_input, request.template_elements, request.grids_data_structure
        )
        raw = await self._complete(ANALYSIS_SYSTEM_PROMPT, prompt, self._analysis_temperature)
        data = extract_json_object(raw)
        if data is None:
            logger.warning("Analysis output is not JSON", extra={"raw_preview": raw[:200]})
            raise ReasoningServiceError("analysis response could not be parsed as JSON")
        if "contentPlan" not in data or "layoutPlan" not in data:
            raise ReasoningServiceError("analysis response is missing contentPlan or layoutPlan")

        try:
            analysis = AnalysisResult.model_validate(data)
        except ValidationError as e:
            raise ReasoningServiceError(f"analysis response has an invalid shape: {e}") from e

        return self._drop_unknown_ids(analysis, request)

    async def validate(
        self,
        request: ValidationRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> ValidationResult:
        logger.debug("Validation requested", extra={"log_context": _context_payload(log_context)})
        prompt = build_validation_prompt(
            request.user_input,
            request.template_elements,
            request.grids_data_structure,
            request.execution_report,
        )
        raw = await self._complete(VALIDATION_SYSTEM_PROMPT, prompt, self._validation_temperature)
        data = extract_json_object(raw)
        if data is None:
            logger.warning("Validation output is not JSON", extra={"raw_preview": raw[:200]})
            raise ReasoningServiceError("validation response could not be parsed as JSON")

        try:
            return ValidationResult.model_validate(data)
        except ValidationError as e:
            raise ReasoningServiceError(f"validation response has an invalid shape: {e}") from e

    async def _complete(self, system: str, prompt: str, temperature: float) -> str:
        messages = [
            ChatMessage(role="system", content=system),
            ChatMessage(role="user", content=prompt),
        ]
        return await asyncio.to_thread(
            self._llm.complete, messages, temperature=temperature, json_mode=True
        )

    @staticmethod
    def _drop_unknown_ids(analysis: AnalysisResult, request: AnalysisRequest) -> AnalysisResult:
        """Remove replace/delete targets that were not offered to the model."""

        valid = {e.elem_id for e in request.template_elements}
        plan = analysis.content_plan

        invalid_replace = [op.elem_id for op in plan.replace if op.elem_id not in valid]
        invalid_delete = [elem_id for elem_id in plan.delete if elem_id not in valid]
        if invalid_replace:
            logger.warning("Dropping replace ops with unknown ids", extra={"ids": invalid_replace})
            plan.replace = [op for op in plan.replace if op.elem_id in valid]
        if invalid_delete:
            logger.warning("Dropping delete ops with unknown ids", extra={"ids": invalid_delete})
            plan.delete = [elem_id for elem_id in plan.delete if elem_id in valid]
        return analysis
