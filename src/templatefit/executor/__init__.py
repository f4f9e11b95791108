"""Content-plan execution."""

from __future__ import annotations

from templatefit.executor.plan_executor import ContentPlanExecutor
from templatefit.executor.resolution import (
    AddressHeuristic,
    PositionResolver,
    Resolution,
    missing_block_index,
)

__all__ = [
    "AddressHeuristic",
    "ContentPlanExecutor",
    "PositionResolver",
    "Resolution",
    "missing_block_index",
]
