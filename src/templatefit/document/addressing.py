"""Depth-path addressing.

A depth path names a row by index: the first integer selects a top-level row, each
following integer a child within the previous row's ``children``. Paths are positional,
so any structural edit may invalidate paths computed before it.
"""

from __future__ import annotations

from typing import Iterator, Sequence

from templatefit.models.document import Row

DepthPath = tuple[int, ...]


def as_path(path: Sequence[int]) -> DepthPath:
    return tuple(int(i) for i in path)


def format_path(path: Sequence[int]) -> str:
    """Render a path as ``0,0,2`` for diagnostics."""

    return ",".join(str(i) for i in path)


def resolve_row(rows: Sequence[Row], path: Sequence[int]) -> Row | None:
    """Return the row at ``path`` or ``None`` if any index is out of range."""

    if not path:
        return None

    level: Sequence[Row] = rows
    row: Row | None = None
    for idx in path:
        if idx < 0 or idx >= len(level):
            return None
        row = level[idx]
        level = row.children
    return row


def strict_prefixes(path: Sequence[int]) -> Iterator[DepthPath]:
    """Yield the non-empty strict prefixes of ``path``, longest first."""

    for length in range(len(path) - 1, 0, -1):
        yield as_path(path[:length])


def iter_rows(rows: Sequence[Row], parent: DepthPath = ()) -> Iterator[tuple[DepthPath, Row]]:
    """Depth-first pre-order walk yielding ``(path, row)`` pairs."""

    for idx, row in enumerate(rows):
        path = (*parent, idx)
        yield path, row
        yield from iter_rows(row.children, path)


def find_element_row(rows: Sequence[Row], elem_id: str) -> DepthPath | None:
    """Return the path of the row whose ``children_ids`` holds ``elem_id``."""

    for path, row in iter_rows(rows):
        if elem_id in row.children_ids:
            return path
    return None
