"""Pydantic models used across the project."""

from __future__ import annotations

from templatefit.models.document import Element, LayoutDocument, Row, RowStyle
from templatefit.models.plan import (
    AddOp,
    AnalysisResult,
    ContentPlan,
    ExecutionError,
    ExecutionReport,
    LayoutPlan,
    ListAdjustOp,
    ReplaceOp,
)
from templatefit.models.structure import StructureNode, TextElement, TextSlot
from templatefit.models.validation import (
    ContentFix,
    ContentIssue,
    LayoutFix,
    LayoutIssue,
    ValidationResult,
    analysis_from_issues,
)

__all__ = [
    "AddOp",
    "AnalysisResult",
    "ContentFix",
    "ContentIssue",
    "ContentPlan",
    "Element",
    "ExecutionError",
    "ExecutionReport",
    "LayoutDocument",
    "LayoutFix",
    "LayoutIssue",
    "LayoutPlan",
    "ListAdjustOp",
    "ReplaceOp",
    "Row",
    "RowStyle",
    "StructureNode",
    "TextElement",
    "TextSlot",
    "ValidationResult",
    "analysis_from_issues",
]
