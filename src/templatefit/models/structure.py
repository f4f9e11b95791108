"""AI-facing views of a layout document."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from templatefit.models.base import CamelModel
from templatefit.models.document import Layout

SlotRole = Literal["single", "left", "right", "list-item"]
SlotSize = Literal["short", "medium", "long"]


class TextElement(CamelModel):
    """One non-empty text element with its address."""

    elem_id: str
    tag: str
    text: str
    row_depth: list[int]
    children_index: int
    row_tag: str | None = None


class TextSlot(CamelModel):
    """A text-bearing leaf of a row, classified for the model."""

    elem_id: str
    tag: str
    text: str
    role: SlotRole = "single"
    slot_size: SlotSize = "short"


class StructureNode(CamelModel):
    """Nested structural summary of one row."""

    id: str
    tag: str
    row_depth: list[int]
    layout: Layout = "column"
    gap: str | None = None
    is_list: bool = False
    list_item_count: int = 0
    slots: list[TextSlot] = Field(default_factory=list)
    children: list["StructureNode"] = Field(default_factory=list)
