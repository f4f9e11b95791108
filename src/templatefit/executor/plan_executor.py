"""Content-plan executor.

Applies an :class:`~templatefit.models.plan.AnalysisResult` to a live document on a
best-effort basis. Each operation that fails is recorded in the execution report and
the executor moves on; nothing raised by a single operation escapes :meth:`execute`.

Operations run in a fixed order:

1. ``listAdjust``: plan addresses are computed against the resized lists;
2. ``replace``;
3. ``delete``: one batch call, because the primitive prunes emptied rows and would
   otherwise shift the addresses between calls;
4. ``add``: last, so new elements cannot be deleted by the same plan.

The layout plan is accepted and ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Sequence

from templatefit.document.addressing import format_path
from templatefit.document.store import MIN_INSERT_DEPTH, DocumentOwner
from templatefit.executor.resolution import PositionResolver
from templatefit.logging import get_logger
from templatefit.models.document import Row
from templatefit.models.plan import (
    UNRESOLVED_POSITION_MESSAGE,
    AddOp,
    AnalysisResult,
    ContentPlan,
    ExecutionError,
    ExecutionReport,
    LayoutPlan,
    PlanStep,
)

logger = get_logger(__name__)

DEFAULT_LINE_HEIGHT = 1.5
DEFAULT_TAG = "text_body"
VALID_TEXT_TAGS = frozenset(
    {"text_heading1", "text_heading2", "text_heading3", "text_body", "text_desc", "text_free"}
)


@dataclass
class _ReportDraft:
    replaced: int = 0
    deleted: int = 0
    added: int = 0
    list_adjusted: int = 0
    errors: list[ExecutionError] = field(default_factory=list)

    def fail(self, step: PlanStep, error: str) -> None:
        self.errors.append(ExecutionError(step=step, error=error))

    def build(self) -> ExecutionReport:
        return ExecutionReport(
            replaced=self.replaced,
            deleted=self.deleted,
            added=self.added,
            layout_adjusted=0,
            list_adjusted=self.list_adjusted,
            errors=tuple(self.errors),
        )


class ContentPlanExecutor:
    """Apply content plans to a document owner."""

    def __init__(
        self,
        owner: DocumentOwner,
        *,
        resolver: PositionResolver | None = None,
        default_line_height: float = DEFAULT_LINE_HEIGHT,
    ) -> None:
        self._owner = owner
        self._resolver = resolver or PositionResolver()
        self._default_line_height = default_line_height

    def execute(self, analysis: AnalysisResult) -> ExecutionReport:
        """Apply ``analysis`` and return a fresh execution report."""

        draft = _ReportDraft()
        plan = analysis.content_plan

        self._adjust_lists(plan, draft)
        self._replace(plan, draft)
        self._delete(plan, draft)
        self._add(plan, draft)
        self._apply_layout_plan(analysis.layout_plan)

        report = draft.build()
        logger.info(
            "Plan executed",
            extra={
                "replaced": report.replaced,
                "deleted": report.deleted,
                "added": report.added,
                "list_adjusted": report.list_adjusted,
                "error_count": len(report.errors),
            },
        )
        return report

    def _adjust_lists(self, plan: ContentPlan, draft: _ReportDraft) -> None:
        for op in plan.list_adjust:
            where = format_path(op.row_depth)
            try:
                if self._owner.resolve_row_by_depth_path(op.row_depth) is None:
                    draft.fail(
                        "listAdjust",
                        f"cannot resize list at [{where}] to {op.target_count}: row not found",
                    )
                    continue
                self._owner.set_active_address(op.row_depth)
                self._owner.resize_repeat_list(op.target_count, op.row_depth)
                draft.list_adjusted += 1
            except Exception as e:
                draft.fail("listAdjust", f"cannot resize list at [{where}] to {op.target_count}: {e}")
                logger.warning("List resize failed", extra={"row_depth": where, "error": str(e)})

    def _replace(self, plan: ContentPlan, draft: _ReportDraft) -> None:
        for op in plan.replace:
            try:
                layer = self._owner.get_layer(op.elem_id)
                if layer is None:
                    draft.fail("replace", f"element {op.elem_id} not found")
                    continue
                if not layer.is_text:
                    draft.fail(
                        "replace",
                        f"element {op.elem_id} is not a text element (elementRef: {layer.element_ref})",
                    )
                    continue
                self._owner.change_element_text(op.elem_id, op.new_text)
                draft.replaced += 1
            except Exception as e:
                draft.fail("replace", f"failed to replace element {op.elem_id}: {e}")
                logger.warning("Replace failed", extra={"elem_id": op.elem_id, "error": str(e)})

    def _delete(self, plan: ContentPlan, draft: _ReportDraft) -> None:
        if not plan.delete:
            return
        try:
            draft.deleted = self._owner.delete_elements_batch(list(plan.delete))
        except Exception as e:
            draft.fail("delete", f"failed to delete elements: {e}")
            logger.warning("Batch delete failed", extra={"count": len(plan.delete), "error": str(e)})

    def _add(self, plan: ContentPlan, draft: _ReportDraft) -> None:
        for op in plan.add:
            where = format_path(op.position)
            try:
                resolution = self._resolver.resolve(op.position, self._insertable_row)
                if resolution is None:
                    draft.fail("add", f"{UNRESOLVED_POSITION_MESSAGE} [{where}]")
                    continue
                if resolution.tier != "exact":
                    logger.info(
                        "Add position remapped",
                        extra={
                            "position": where,
                            "resolved": format_path(resolution.path),
                            "tier": resolution.tier,
                        },
                    )

                tag = self._coerce_tag(op.tag)
                self._owner.set_active_address(resolution.path)
                elem_id = self._owner.create_text_element(
                    tag,
                    self._text_attrs(op, tag),
                    resolution.path,
                    index=op.order,
                )
                if elem_id:
                    draft.added += 1
                else:
                    draft.fail("add", f"failed to add element at position [{where}], tag: {tag}")
            except Exception as e:
                draft.fail("add", f"failed to add element at position [{where}]: {e}")
                logger.warning("Add failed", extra={"position": where, "error": str(e)})

    def _insertable_row(self, path: Sequence[int]) -> Row | None:
        """Row lookup for add resolution; pages are never insert targets."""

        if len(path) < MIN_INSERT_DEPTH:
            return None
        return self._owner.resolve_row_by_depth_path(path)

    def _apply_layout_plan(self, layout: LayoutPlan) -> int:
        """Layout adjustment is disabled: accept the plan and change nothing."""

        if layout.operation_count():
            logger.debug(
                "Layout adjustments disabled; ignoring plan",
                extra={"operations": layout.operation_count()},
            )
        return 0

    @staticmethod
    def _coerce_tag(tag: str) -> str:
        if tag in VALID_TEXT_TAGS:
            return tag
        logger.warning("Unknown text tag; using default", extra={"tag": tag, "default": DEFAULT_TAG})
        return DEFAULT_TAG

    def _text_attrs(self, op: AddOp, tag: str) -> dict[str, Any]:
        attrs = self._owner.style_for_tag(tag)
        if not attrs.get("lineHeight"):
            attrs["lineHeight"] = self._default_line_height
        attrs.pop("position", None)
        attrs["text"] = op.text.strip()
        return attrs
