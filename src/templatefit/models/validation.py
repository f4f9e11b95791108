"""Validation results and the conversion of suggested fixes into plans.

Issues form a closed union on ``type``. Fix payloads forbid unknown keys so a malformed
suggestion fails parsing instead of being dropped without notice.
"""

from __future__ import annotations

from typing import Annotated, Literal, Sequence, Union

from pydantic import ConfigDict, Field

from templatefit.models.base import CamelModel
from templatefit.models.plan import (
    AddOp,
    AlignItemsAdjust,
    AnalysisResult,
    ContentPlan,
    FlexDirectionAdjust,
    GapAdjust,
    LayoutPlan,
    ReplaceOp,
)


class ContentFix(CamelModel):
    model_config = ConfigDict(extra="forbid")

    replace: list[ReplaceOp] | None = None
    delete: list[str] | None = None
    add: list[AddOp] | None = None


class LayoutFix(CamelModel):
    model_config = ConfigDict(extra="forbid")

    adjust_flex_direction: list[FlexDirectionAdjust] | None = None
    adjust_gap: list[GapAdjust] | None = None
    adjust_align_items: list[AlignItemsAdjust] | None = None


class ContentIssue(CamelModel):
    type: Literal["content"] = "content"
    description: str
    fix: ContentFix | None = None


class LayoutIssue(CamelModel):
    type: Literal["layout"] = "layout"
    description: str
    fix: LayoutFix | None = None


ValidationIssue = Annotated[Union[ContentIssue, LayoutIssue], Field(discriminator="type")]


class ValidationResult(CamelModel):
    content_valid: bool
    layout_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def converged(self) -> bool:
        return self.content_valid and self.layout_valid


def analysis_from_issues(issues: Sequence[ContentIssue | LayoutIssue]) -> AnalysisResult:
    """Fold the fixes embedded in validation issues into one analysis result.

    Content fixes feed the content plan, layout fixes the layout plan; lists are
    concatenated in issue order. Issues without a fix contribute nothing.
    """

    content = ContentPlan()
    layout = LayoutPlan()

    for issue in issues:
        if issue.fix is None:
            continue
        if isinstance(issue, ContentIssue):
            content.replace.extend(issue.fix.replace or [])
            content.delete.extend(issue.fix.delete or [])
            content.add.extend(issue.fix.add or [])
        else:
            layout.adjust_flex_direction.extend(issue.fix.adjust_flex_direction or [])
            layout.adjust_gap.extend(issue.fix.adjust_gap or [])
            layout.adjust_align_items.extend(issue.fix.adjust_align_items or [])

    return AnalysisResult(content_plan=content, layout_plan=layout)
