"""Insert-position resolution.

Positions proposed by the model are approximate: they may be stale after earlier edits
or drop an index. Resolution tries, in order, the exact path, each configured heuristic
rewrite, then the path's ancestors from the closest one outwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal, Optional, Sequence

from templatefit.document.addressing import DepthPath, as_path, strict_prefixes
from templatefit.models.document import Row

ResolutionTier = Literal["exact", "heuristic", "ancestor"]

RowLookup = Callable[[Sequence[int]], Optional[Row]]
AddressHeuristic = Callable[[DepthPath], Optional[DepthPath]]


def missing_block_index(position: DepthPath) -> DepthPath | None:
    """Re-insert the block index the model tends to drop.

    ``[0, k, ...]`` with ``k != 0`` becomes ``[0, 0, k, ...]``.
    """

    if len(position) >= 2 and position[0] == 0 and position[1] != 0:
        return (0, 0, *position[1:])
    return None


DEFAULT_HEURISTICS: tuple[AddressHeuristic, ...] = (missing_block_index,)


@dataclass(frozen=True)
class Resolution:
    path: DepthPath
    tier: ResolutionTier


@dataclass(frozen=True)
class PositionResolver:
    """Three-tier resolver for ``add`` positions."""

    heuristics: tuple[AddressHeuristic, ...] = DEFAULT_HEURISTICS

    def resolve(self, position: Sequence[int], lookup: RowLookup) -> Resolution | None:
        path = as_path(position)
        if not path:
            return None

        if lookup(path) is not None:
            return Resolution(path=path, tier="exact")

        for heuristic in self.heuristics:
            candidate = heuristic(path)
            if candidate is not None and lookup(candidate) is not None:
                return Resolution(path=candidate, tier="heuristic")

        if len(path) >= 2:
            for prefix in strict_prefixes(path):
                if lookup(prefix) is not None:
                    return Resolution(path=prefix, tier="ancestor")

        return None
