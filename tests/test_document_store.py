"""Tests for the in-memory document owner."""

from __future__ import annotations

import pytest

from templatefit.document.store import DocumentError, InMemoryDocumentStore

from _builders import document, page_with_blocks, repeat_list_document, row, text


def test_change_element_text() -> None:
    """Test overwriting text and rejecting unknown ids."""
    store = InMemoryDocumentStore(page_with_blocks())

    store.change_element_text("t1", "New subtitle")
    assert store.get_layer("t1").attrs["text"] == "New subtitle"

    with pytest.raises(DocumentError):
        store.change_element_text("nope", "x")


def test_delete_prunes_emptied_rows_up_the_tree() -> None:
    """Test that a row and its ancestors disappear once empty."""
    doc = document(
        [
            row("outer", children=[row("inner", ids=["e1"])]),
            row("keep", ids=["e2"]),
        ],
        [text("e1", "Gone"), text("e2", "Stays")],
    )
    store = InMemoryDocumentStore(doc)

    assert store.delete_elements_batch(["e1"]) == 1
    assert [r.id for r in store.document.rows] == ["keep"]
    assert "e1" not in store.document.layers


def test_delete_keeps_rows_with_remaining_content() -> None:
    """Test that pruning stops at the first non-empty row."""
    store = InMemoryDocumentStore(page_with_blocks())

    assert store.delete_elements_batch(["t1", "missing"]) == 1
    block = store.resolve_row_by_depth_path([0, 0])
    assert [r.id for r in block.children] == ["r0", "r2"]


def test_resize_repeat_list_grows_by_cloning_first_item() -> None:
    """Test that new items are copies with fresh ids."""
    store = InMemoryDocumentStore(repeat_list_document(items=1))

    store.resize_repeat_list(3, [0, 0])

    items = store.resolve_row_by_depth_path([0, 0]).children
    assert len(items) == 3
    ids = [i.children_ids[0] for i in items]
    assert ids[0] == "li0"
    assert len(set(ids)) == 3
    assert len({i.id for i in items}) == 3
    for elem_id in ids[1:]:
        assert store.get_layer(elem_id).attrs["text"] == "Item 0"


def test_resize_repeat_list_shrinks_and_drops_elements() -> None:
    """Test removal of trailing items and their elements."""
    store = InMemoryDocumentStore(repeat_list_document(items=4))

    store.resize_repeat_list(2, [0, 0])

    assert len(store.resolve_row_by_depth_path([0, 0]).children) == 2
    assert "li2" not in store.document.layers
    assert "li3" not in store.document.layers


@pytest.mark.parametrize(
    ("count", "address"),
    [(2, [0]), (2, [5]), (0, [0, 0])],
)
def test_resize_repeat_list_rejects_bad_requests(count: int, address: list[int]) -> None:
    """Test non-list rows, missing rows and zero counts."""
    store = InMemoryDocumentStore(repeat_list_document(items=2))

    with pytest.raises(DocumentError):
        store.resize_repeat_list(count, address)


def test_create_text_element_inserts_at_clamped_index() -> None:
    """Test element creation and insert order."""
    store = InMemoryDocumentStore(page_with_blocks())

    first = store.create_text_element("text_body", {"text": "a"}, [0, 0, 1], index=0)
    last = store.create_text_element("text_body", {"text": "b"}, [0, 0, 1], index=99)

    target = store.resolve_row_by_depth_path([0, 0, 1])
    assert target.children_ids == [first, "t1", last]
    assert store.get_layer(first).tag == "text_body"
    assert store.get_layer(last).attrs == {"text": "b"}


def test_create_text_element_refuses_page_level_and_missing_rows() -> None:
    """Test that nothing is added under a page or at an unknown row."""
    store = InMemoryDocumentStore(page_with_blocks())
    before = dict(store.document.layers)

    assert store.create_text_element("text_body", {"text": "x"}, [0]) is None
    assert store.create_text_element("text_body", {"text": "x"}, [0, 7]) is None
    assert store.document.layers.keys() == before.keys()


def test_style_for_tag_returns_a_copy() -> None:
    """Test that callers cannot mutate the theme."""
    store = InMemoryDocumentStore(page_with_blocks())

    style = store.style_for_tag("text_heading1")
    style["lineHeight"] = 9
    assert store.document.theme["text_heading1"]["lineHeight"] == 1.2
    assert store.style_for_tag("unknown") == {}


def test_delete_removes_records_outside_any_row() -> None:
    """Test that an element present only in the layer map is still deleted."""
    doc = page_with_blocks()
    doc.layers["orphan"] = text("orphan", "Detached")
    store = InMemoryDocumentStore(doc)

    assert store.delete_elements_batch(["orphan", "never-existed"]) == 1
    assert "orphan" not in store.document.layers
    assert len(store.document.layers) == 3
