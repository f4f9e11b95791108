"""Reasoning service boundary.

The workflow talks to a remote service with two calls: ``analyze`` turns the user's intent
and the serialized document into a content/layout plan, ``validate`` judges the edited
document. Responses travel in a ``{success, message?, analysis | validation}`` envelope.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from pydantic import Field

from templatefit.models.base import CamelModel
from templatefit.models.plan import AnalysisResult, ExecutionReport
from templatefit.models.structure import StructureNode, TextElement
from templatefit.models.validation import ValidationResult

EnvelopeKey = Literal["analysis", "validation"]


class ReasoningServiceError(RuntimeError):
    """Raised when the reasoning service fails or answers ``success: false``."""


@dataclass(frozen=True)
class RunLogContext:
    """Correlation data forwarded with each call of a tracked run."""

    run_id: str
    iteration: int
    template_id: str | None = None
    template_title: str | None = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"run_id": self.run_id, "iteration": self.iteration}
        if self.template_id is not None:
            payload["template_id"] = self.template_id
        if self.template_title is not None:
            payload["template_title"] = self.template_title
        return payload


class AnalysisRequest(CamelModel):
    user_input: str
    template_elements: list[TextElement] = Field(default_factory=list)
    grids_data_structure: list[StructureNode] = Field(default_factory=list)


class ValidationRequest(AnalysisRequest):
    execution_report: ExecutionReport | None = None


class ReasoningService(ABC):
    """Remote analysis/validation service."""

    @abstractmethod
    async def analyze(
        self,
        request: AnalysisRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> AnalysisResult:
        """Propose a content plan and a layout plan."""

    @abstractmethod
    async def validate(
        self,
        request: ValidationRequest,
        *,
        log_context: RunLogContext | None = None,
    ) -> ValidationResult:
        """Judge whether the document now satisfies the user's intent."""


def unwrap_envelope(payload: Any, key: EnvelopeKey) -> Mapping[str, Any]:
    """Return ``payload[key]`` from a success envelope or raise ``ReasoningServiceError``."""

    if not isinstance(payload, Mapping):
        raise ReasoningServiceError(f"{key} response is not a JSON object")
    if not payload.get("success"):
        raise ReasoningServiceError(str(payload.get("message") or f"{key} failed"))
    body = payload.get(key)
    if not isinstance(body, Mapping):
        raise ReasoningServiceError(f"{key} response carries no {key} payload")
    return body


def success_envelope(key: EnvelopeKey, body: CamelModel) -> dict[str, Any]:
    return {"success": True, key: body.to_wire()}


def failure_envelope(message: str) -> dict[str, Any]:
    return {"success": False, "message": message}
