"""Document serializer.

Produces the two views the reasoning service works from:

* a flat, ordered list of every non-empty text element with its address, used to
  target ``replace`` and ``delete`` operations by id;
* a nested structural tree annotated with layout, list and slot metadata, used to reason
  about where content fits and where ``add`` operations should land.

Repeat lists are collapsed in the tree: only the first repetition is walked, and every
slot below it is a ``list-item``. The flat list keeps every repetition so each element
stays addressable.
"""

from __future__ import annotations

from typing import Any, Sequence

from bs4 import BeautifulSoup

from templatefit.document.addressing import DepthPath, iter_rows
from templatefit.models.document import Element, LayoutDocument, Row
from templatefit.models.structure import SlotRole, SlotSize, StructureNode, TextElement, TextSlot

DEFAULT_TEXT_TAG = "text_body"

SHORT_SLOT_MAX_CHARS = 6
MEDIUM_SLOT_MAX_CHARS = 20


def plain_text(raw: Any) -> str:
    """Return the text of a rich-text attribute without markup."""

    if raw is None:
        return ""
    text = str(raw)
    if "<" not in text and "&" not in text:
        return text
    return BeautifulSoup(text, "html.parser").get_text()


def slot_size(text: str) -> SlotSize:
    if len(text) <= SHORT_SLOT_MAX_CHARS:
        return "short"
    if len(text) <= MEDIUM_SLOT_MAX_CHARS:
        return "medium"
    return "long"


def slot_role(row: Row, index: int, count: int, *, inside_repeat_list: bool) -> SlotRole:
    """Classify a slot by its row's layout and its position among sibling slots."""

    if inside_repeat_list:
        return "list-item"
    if row.layout == "row" and count >= 2:
        if index == 0:
            return "left"
        if index == 1:
            return "right"
    return "single"


def _text_of(element: Element | None) -> str | None:
    if element is None or not element.is_text:
        return None
    return plain_text(element.attrs.get("text", ""))


def extract_text_elements(document: LayoutDocument) -> list[TextElement]:
    """Flatten the document into its non-empty text elements, in display order."""

    out: list[TextElement] = []
    for path, row in iter_rows(document.rows):
        for children_index, elem_id in enumerate(row.children_ids):
            element = document.layers.get(elem_id)
            text = _text_of(element)
            if not text or not text.strip():
                continue
            out.append(
                TextElement(
                    elem_id=elem_id,
                    tag=element.tag or DEFAULT_TEXT_TAG,
                    text=text,
                    row_depth=list(path),
                    children_index=children_index,
                    row_tag=row.tag,
                )
            )
    return out


def _collect_slots(document: LayoutDocument, row: Row, *, inside_repeat_list: bool) -> list[TextSlot]:
    texts: list[tuple[str, Element, str]] = []
    for elem_id in row.children_ids:
        element = document.layers.get(elem_id)
        text = _text_of(element)
        if text and text.strip():
            texts.append((elem_id, element, text))

    return [
        TextSlot(
            elem_id=elem_id,
            tag=element.tag or DEFAULT_TEXT_TAG,
            text=text,
            role=slot_role(row, idx, len(texts), inside_repeat_list=inside_repeat_list),
            slot_size=slot_size(text),
        )
        for idx, (elem_id, element, text) in enumerate(texts)
    ]


def _serialize_row(
    document: LayoutDocument,
    row: Row,
    path: DepthPath,
    *,
    inside_repeat_list: bool,
) -> StructureNode:
    if row.is_repeat_list:
        # Repetitions share one shape; the model only needs the first.
        children = (
            [_serialize_row(document, row.children[0], (*path, 0), inside_repeat_list=True)]
            if row.children
            else []
        )
    else:
        children = [
            _serialize_row(document, child, (*path, idx), inside_repeat_list=inside_repeat_list)
            for idx, child in enumerate(row.children)
        ]

    return StructureNode(
        id=row.id,
        tag=row.tag,
        row_depth=list(path),
        layout=row.layout,
        gap=row.style.gap,
        is_list=row.is_repeat_list,
        list_item_count=len(row.children) if row.is_repeat_list else 0,
        slots=_collect_slots(document, row, inside_repeat_list=inside_repeat_list),
        children=children,
    )


def serialize_structure(document: LayoutDocument) -> list[StructureNode]:
    """Build the nested structural summary of the document."""

    return [
        _serialize_row(document, row, (idx,), inside_repeat_list=False)
        for idx, row in enumerate(document.rows)
    ]


def to_wire(nodes: Sequence[TextElement] | Sequence[StructureNode]) -> list[dict[str, Any]]:
    return [n.to_wire() for n in nodes]


def snapshot(document: LayoutDocument) -> dict[str, Any]:
    """JSON-ready ``{elements, structure}`` summary of the current document."""

    return {
        "elements": to_wire(extract_text_elements(document)),
        "structure": to_wire(serialize_structure(document)),
    }
