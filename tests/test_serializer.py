"""Tests for the document serializer."""

from __future__ import annotations

from templatefit.document.serializer import (
    extract_text_elements,
    plain_text,
    serialize_structure,
    slot_size,
    snapshot,
)

from _builders import document, image, repeat_list_document, row, text


def test_blank_text_is_excluded_from_both_views() -> None:
    """Test a column row holding one real and one empty text element."""
    doc = document([row("A", ids=["hi", "empty"])], [text("hi", "Hi"), text("empty", "")])

    elements = extract_text_elements(doc)
    assert [e.elem_id for e in elements] == ["hi"]
    assert elements[0].row_depth == [0]
    assert elements[0].children_index == 0

    nodes = serialize_structure(doc)
    assert len(nodes) == 1
    assert len(nodes[0].slots) == 1
    assert nodes[0].slots[0].role == "single"


def test_row_layout_slots_get_left_and_right_roles() -> None:
    """Test left/right assignment in a horizontal row."""
    doc = document(
        [row("R", ids=["a", "b"], layout="row")],
        [text("a", "Left"), text("b", "Right")],
    )

    slots = serialize_structure(doc)[0].slots
    assert [s.role for s in slots] == ["left", "right"]


def test_third_slot_in_row_layout_is_single() -> None:
    """Test that only the first two slots of a row are left/right."""
    doc = document(
        [row("R", ids=["a", "b", "c"], layout="row")],
        [text("a", "One"), text("b", "Two"), text("c", "Three")],
    )

    slots = serialize_structure(doc)[0].slots
    assert [s.role for s in slots] == ["left", "right", "single"]


def test_column_layout_and_lone_slot_are_single() -> None:
    """Test that columns and lone slots never get left/right."""
    doc = document(
        [row("C", ids=["a", "b"]), row("R", ids=["c"], layout="row")],
        [text("a", "One"), text("b", "Two"), text("c", "Three")],
    )

    nodes = serialize_structure(doc)
    assert [s.role for s in nodes[0].slots] == ["single", "single"]
    assert [s.role for s in nodes[1].slots] == ["single"]


def test_repeat_list_is_collapsed_in_tree_but_flat_list_keeps_all() -> None:
    """Test repeat list serialization."""
    doc = repeat_list_document(items=3)

    page = serialize_structure(doc)[0]
    list_node = page.children[0]
    assert list_node.is_list is True
    assert list_node.list_item_count == 3
    assert len(list_node.children) == 1
    item = list_node.children[0]
    assert item.row_depth == [0, 0, 0]
    assert [s.role for s in item.slots] == ["list-item"]

    elements = extract_text_elements(doc)
    assert [e.elem_id for e in elements] == ["li0", "li1", "li2"]
    assert elements[2].row_depth == [0, 0, 2]


def test_non_text_elements_are_ignored() -> None:
    """Test that images never appear as slots or elements."""
    doc = document([row("A", ids=["img", "t"])], [image("img"), text("t", "Caption")])

    assert [e.elem_id for e in extract_text_elements(doc)] == ["t"]
    assert [s.elem_id for s in serialize_structure(doc)[0].slots] == ["t"]


def test_rich_text_is_flattened() -> None:
    """Test markup removal from rich-text attributes."""
    assert plain_text("<p>Hello <b>world</b></p>") == "Hello world"
    assert plain_text("Fish &amp; chips") == "Fish & chips"
    assert plain_text("plain") == "plain"
    assert plain_text(None) == ""

    doc = document([row("A", ids=["t"])], [text("t", "<span>Menu</span>")])
    assert extract_text_elements(doc)[0].text == "Menu"


def test_slot_size_boundaries() -> None:
    """Test short/medium/long thresholds."""
    assert slot_size("abcdef") == "short"
    assert slot_size("abcdefg") == "medium"
    assert slot_size("x" * 20) == "medium"
    assert slot_size("x" * 21) == "long"


def test_snapshot_uses_camel_case_keys() -> None:
    """Test the wire form of the document summary."""
    doc = document([row("A", ids=["t"], layout="row")], [text("t", "Hello")])

    snap = snapshot(doc)
    assert set(snap) == {"elements", "structure"}
    assert snap["elements"][0]["elemId"] == "t"
    assert snap["elements"][0]["rowDepth"] == [0]
    node = snap["structure"][0]
    assert node["isList"] is False
    assert node["slots"][0]["slotSize"] == "short"
