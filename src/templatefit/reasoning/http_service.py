"""Reasoning service reached over HTTP.

Talks to a deployment of :mod:`templatefit.api.app` (or any server speaking the same
envelope): ``POST {base_url}/analyze`` and ``POST {base_url}/validate``.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from pydantic import ValidationError

from templatefit.logging import get_logger
from templatefit.models.plan import AnalysisResult
from templatefit.models.validation import ValidationResult
from templatefit.reasoning.base import (
    AnalysisRequest,
    EnvelopeKey,
    ReasoningService,
    ReasoningServiceError,
    RunLogContext,
    ValidationRequest,
    unwrap_envelope,
)

logger = get_logger(__name__)


class HttpReasoningService(ReasoningService):
    """Envelope client for a remote analyze/validate API."""

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> AnalysisResult:
        body = await self._call("analyze", request.to_wire(), log_context)
        try:
            return AnalysisResult.model_validate(body)
        except ValidationError as e:
            raise ReasoningServiceError(f"analysis payload has an invalid shape: {e}") from e

    async def validate(
        self,
        request: ValidationRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> ValidationResult:
        body = await self._call("validate", request.to_wire(), log_context)
        try:
            return ValidationResult.model_validate(body)
        except ValidationError as e:
            raise ReasoningServiceError(f"validation payload has an invalid shape: {e}") from e

    async def _call(
        self,
        endpoint: str,
        payload: dict[str, Any],
        log_context: RunLogContext | None,
    ) -> Any:
        key: EnvelopeKey = "analysis" if endpoint == "analyze" else "validation"
        if log_context is not None:
            payload["logContext"] = log_context.to_payload()

        url = f"{self._base_url}/{endpoint}"
        started = time.monotonic()
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout_s),
                transport=self._transport,
            ) as client:
                resp = await client.post(url, json=payload)
        except httpx.HTTPError as e:
            raise ReasoningServiceError(f"{endpoint} request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise ReasoningServiceError(
                f"{endpoint} returned non-JSON response (status={resp.status_code})"
            ) from e

        logger.info(
            "Reasoning call done",
            extra={
                "endpoint": endpoint,
                "status_code": resp.status_code,
                "latency_ms": int((time.monotonic() - started) * 1000),
            },
        )
        return unwrap_envelope(data, key)
