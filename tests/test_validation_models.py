"""Tests for validation results and fix folding."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from templatefit.models.validation import (
    ContentIssue,
    LayoutIssue,
    ValidationResult,
    analysis_from_issues,
)


def _result(payload: dict) -> ValidationResult:
    return ValidationResult.model_validate(payload)


def test_issues_parse_by_type() -> None:
    """Test the discriminated issue union from camelCase JSON."""
    result = _result(
        {
            "contentValid": False,
            "layoutValid": True,
            "issues": [
                {
                    "type": "content",
                    "description": "Wrong date",
                    "fix": {"replace": [{"elemId": "t1", "newText": "May 3"}]},
                },
                {
                    "type": "layout",
                    "description": "Too cramped",
                    "fix": {"adjustGap": [{"rowDepth": [0, 0], "gap": "24px"}]},
                },
                {"type": "content", "description": "No fix offered"},
            ],
        }
    )

    assert isinstance(result.issues[0], ContentIssue)
    assert isinstance(result.issues[1], LayoutIssue)
    assert result.issues[2].fix is None
    assert result.converged is False


def test_unknown_issue_type_is_rejected() -> None:
    """Test that the union is closed."""
    with pytest.raises(ValidationError):
        _result(
            {
                "contentValid": False,
                "layoutValid": False,
                "issues": [{"type": "style", "description": "?"}],
            }
        )


def test_fix_with_foreign_keys_is_rejected() -> None:
    """Test that a content fix cannot carry layout keys."""
    with pytest.raises(ValidationError):
        _result(
            {
                "contentValid": False,
                "layoutValid": True,
                "issues": [
                    {
                        "type": "content",
                        "description": "Mixed",
                        "fix": {"adjustGap": [{"rowDepth": [0], "gap": "8px"}]},
                    }
                ],
            }
        )


def test_analysis_from_issues_concatenates_in_order() -> None:
    """Test folding several fixes into one plan."""
    result = _result(
        {
            "contentValid": False,
            "layoutValid": False,
            "issues": [
                {
                    "type": "content",
                    "description": "a",
                    "fix": {
                        "replace": [{"elemId": "t1", "newText": "one"}],
                        "delete": ["t9"],
                    },
                },
                {
                    "type": "layout",
                    "description": "b",
                    "fix": {"adjustFlexDirection": [{"rowDepth": [0, 1], "direction": "row"}]},
                },
                {
                    "type": "content",
                    "description": "c",
                    "fix": {
                        "replace": [{"elemId": "t2", "newText": "two"}],
                        "add": [{"position": [0, 0], "text": "extra"}],
                    },
                },
            ],
        }
    )

    analysis = analysis_from_issues(result.issues)

    plan = analysis.content_plan
    assert [op.elem_id for op in plan.replace] == ["t1", "t2"]
    assert plan.delete == ["t9"]
    assert [op.text for op in plan.add] == ["extra"]
    assert plan.list_adjust == []
    assert analysis.layout_plan.operation_count() == 1


def test_converged_requires_both_flags() -> None:
    """Test the convergence predicate."""
    assert ValidationResult(content_valid=True, layout_valid=True).converged
    assert not ValidationResult(content_valid=True, layout_valid=False).converged
