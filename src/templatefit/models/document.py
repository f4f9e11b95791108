"""Layout document models.

A document is a forest of rows (``gridsData``) plus a flat map of leaf elements
(``layersMap``). Rows reference their leaf elements by id through ``childrenIds`` and
nest child rows through ``children``.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict, Field

from templatefit.models.base import CamelModel

Layout = Literal["row", "column"]

TEXT_ELEMENT_REF = "Text"


class RowStyle(CamelModel):
    """Style descriptor of a row. Unknown style keys are kept verbatim."""

    model_config = ConfigDict(extra="allow")

    display: str | None = "flex"
    flex_direction: Layout = "column"
    gap: str | None = None
    align_items: str | None = None


class Row(CamelModel):
    """A layout container node."""

    id: str
    tag: str = "grid_root"
    style: RowStyle = Field(default_factory=RowStyle)
    is_repeat_list: bool = False
    children_ids: list[str] = Field(default_factory=list)
    children: list["Row"] = Field(default_factory=list)

    @property
    def layout(self) -> Layout:
        return self.style.flex_direction

    def is_empty(self) -> bool:
        return not self.children and not self.children_ids


class Element(CamelModel):
    """A leaf element. Only ``Text`` elements are edited by the workflow."""

    elem_id: str
    element_ref: str = TEXT_ELEMENT_REF
    tag: str | None = None
    attrs: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_text(self) -> bool:
        return self.element_ref == TEXT_ELEMENT_REF


class LayoutDocument(CamelModel):
    """The mutable template document."""

    rows: list[Row] = Field(default_factory=list, alias="gridsData")
    layers: dict[str, Element] = Field(default_factory=dict, alias="layersMap")
    theme: dict[str, dict[str, Any]] = Field(default_factory=dict, alias="themeConfig")
