"""Reasoning service clients."""

from __future__ import annotations

from templatefit.reasoning.base import (
    AnalysisRequest,
    ReasoningService,
    ReasoningServiceError,
    RunLogContext,
    ValidationRequest,
)
from templatefit.reasoning.http_service import HttpReasoningService
from templatefit.reasoning.llm_service import LLMReasoningService

__all__ = [
    "AnalysisRequest",
    "HttpReasoningService",
    "LLMReasoningService",
    "ReasoningService",
    "ReasoningServiceError",
    "RunLogContext",
    "ValidationRequest",
]
