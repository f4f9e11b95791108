"""Content/layout plans and the execution report."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict, Field

from templatefit.models.base import CamelModel
from templatefit.models.document import Layout

PlanStep = Literal["listAdjust", "replace", "delete", "add"]

# Prefix of the add-step error raised when no row matches an insert position.
UNRESOLVED_POSITION_MESSAGE = "cannot find row for position"


class ListAdjustOp(CamelModel):
    row_depth: list[int]
    target_count: int


class ReplaceOp(CamelModel):
    elem_id: str
    new_text: str


class AddOp(CamelModel):
    position: list[int]
    tag: str = "text_body"
    text: str
    order: int | None = None


class ContentPlan(CamelModel):
    """Edits to apply to the document. Every section may be empty."""

    list_adjust: list[ListAdjustOp] = Field(default_factory=list)
    replace: list[ReplaceOp] = Field(default_factory=list)
    delete: list[str] = Field(default_factory=list)
    add: list[AddOp] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.list_adjust or self.replace or self.delete or self.add)


class FlexDirectionAdjust(CamelModel):
    row_depth: list[int]
    direction: Layout


class GapAdjust(CamelModel):
    row_depth: list[int]
    gap: str


class AlignItemsAdjust(CamelModel):
    row_depth: list[int]
    align_items: str


class ContainerAdd(CamelModel):
    parent_depth: list[int]
    container: dict[str, Any] = Field(default_factory=dict)


class LayoutPlan(CamelModel):
    """Layout adjustments proposed by the service.

    Parsed and carried through, but not applied: layout adjustment is switched off at the
    product level and the executor treats the whole plan as a no-op.
    """

    adjust_flex_direction: list[FlexDirectionAdjust] = Field(default_factory=list)
    adjust_gap: list[GapAdjust] = Field(default_factory=list)
    adjust_align_items: list[AlignItemsAdjust] = Field(default_factory=list)
    add_containers: list[ContainerAdd] = Field(default_factory=list)

    def operation_count(self) -> int:
        return (
            len(self.adjust_flex_direction)
            + len(self.adjust_gap)
            + len(self.adjust_align_items)
            + len(self.add_containers)
        )


class AnalysisResult(CamelModel):
    content_plan: ContentPlan = Field(default_factory=ContentPlan)
    layout_plan: LayoutPlan = Field(default_factory=LayoutPlan)


class ExecutionError(CamelModel):
    model_config = ConfigDict(frozen=True)

    step: PlanStep
    error: str


class ExecutionReport(CamelModel):
    """Outcome of one plan execution. Built once, never mutated afterwards."""

    model_config = ConfigDict(frozen=True)

    replaced: int = 0
    deleted: int = 0
    added: int = 0
    layout_adjusted: int = 0
    list_adjusted: int = 0
    errors: tuple[ExecutionError, ...] = ()

    def errors_for(self, step: PlanStep) -> list[ExecutionError]:
        return [e for e in self.errors if e.step == step]

    def unresolved_add_errors(self) -> list[ExecutionError]:
        """Add errors caused by a position that matched no row."""

        return [e for e in self.errors_for("add") if UNRESOLVED_POSITION_MESSAGE in e.error]
