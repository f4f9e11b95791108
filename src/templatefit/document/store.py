"""Document owner primitives.

The workflow never edits the document tree directly; it goes through the primitives of
:class:`DocumentOwner`. :class:`InMemoryDocumentStore` implements them over a
:class:`~templatefit.models.document.LayoutDocument` held in memory, mirroring the editor's
behavior (empty rows are pruned after deletions, repeat lists grow by cloning their first
item, nothing is added directly under a page).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Sequence

from templatefit.document.addressing import (
    DepthPath,
    as_path,
    find_element_row,
    format_path,
    resolve_row,
)
from templatefit.logging import get_logger
from templatefit.models.document import TEXT_ELEMENT_REF, Element, LayoutDocument, Row
from templatefit.utils.ids import short_id

logger = get_logger(__name__)


# Text elements live in rows below a page; a page itself (a one-index path) takes none.
MIN_INSERT_DEPTH = 2


class DocumentError(RuntimeError):
    """Raised when a document primitive cannot be applied."""


class DocumentOwner(ABC):
    """Mutation and lookup primitives the workflow relies on."""

    @property
    @abstractmethod
    def document(self) -> LayoutDocument:
        """The live document."""

    @abstractmethod
    def get_layer(self, elem_id: str) -> Element | None:
        """Look up an element by id."""

    @abstractmethod
    def change_element_text(self, elem_id: str, text: str) -> None:
        """Overwrite the ``text`` attribute of an element."""

    @abstractmethod
    def delete_elements_batch(self, elem_ids: Sequence[str]) -> int:
        """Delete elements and prune rows left empty. Returns the number deleted."""

    @abstractmethod
    def resolve_row_by_depth_path(self, path: Sequence[int]) -> Row | None:
        """Return the row at ``path`` in the current tree."""

    @abstractmethod
    def set_active_address(self, path: Sequence[int]) -> None:
        """Select the row subsequent primitives operate on."""

    @abstractmethod
    def resize_repeat_list(self, target_count: int, address: Sequence[int]) -> None:
        """Grow or shrink the repeat list at ``address`` to ``target_count`` items."""

    @abstractmethod
    def create_text_element(
        self,
        tag: str,
        attrs: dict[str, Any],
        address: Sequence[int],
        index: int | None = None,
    ) -> str | None:
        """Create a text element inside the row at ``address``; returns its id or ``None``."""

    @abstractmethod
    def style_for_tag(self, tag: str) -> dict[str, Any]:
        """Theme style attributes for a text tag."""


class InMemoryDocumentStore(DocumentOwner):
    """Document owner over an in-memory :class:`LayoutDocument`."""

    def __init__(self, document: LayoutDocument) -> None:
        self._document = document
        self.active_address: DepthPath | None = None

    @property
    def document(self) -> LayoutDocument:
        return self._document

    def get_layer(self, elem_id: str) -> Element | None:
        return self._document.layers.get(elem_id)

    def change_element_text(self, elem_id: str, text: str) -> None:
        element = self.get_layer(elem_id)
        if element is None:
            raise DocumentError(f"element {elem_id} does not exist")
        element.attrs["text"] = text

    def resolve_row_by_depth_path(self, path: Sequence[int]) -> Row | None:
        return resolve_row(self._document.rows, path)

    def set_active_address(self, path: Sequence[int]) -> None:
        self.active_address = as_path(path)

    def style_for_tag(self, tag: str) -> dict[str, Any]:
        return dict(self._document.theme.get(tag) or {})

    # -- deletion ---------------------------------------------------------------------------

    def delete_elements_batch(self, elem_ids: Sequence[str]) -> int:
        deleted = 0
        for elem_id in elem_ids:
            path = find_element_row(self._document.rows, elem_id)
            if path is not None:
                row = self.resolve_row_by_depth_path(path)
                if row is None:
                    raise DocumentError(f"row {format_path(path)} vanished while deleting {elem_id}")
                row.children_ids.remove(elem_id)
                self._prune_empty_rows(path)
            if self._document.layers.pop(elem_id, None) is not None or path is not None:
                deleted += 1
            else:
                logger.info("Unknown element; skipping", extra={"elem_id": elem_id})
        return deleted

    def _siblings(self, path: DepthPath) -> list[Row]:
        if len(path) == 1:
            return self._document.rows
        parent = self.resolve_row_by_depth_path(path[:-1])
        if parent is None:
            raise DocumentError(f"no parent row for {format_path(path)}")
        return parent.children

    def _prune_empty_rows(self, path: DepthPath) -> None:
        """Remove the row at ``path`` and each ancestor that is left without content."""

        while path:
            row = self.resolve_row_by_depth_path(path)
            if row is None or not row.is_empty():
                return
            del self._siblings(path)[path[-1]]
            path = path[:-1]

    def _drop_elements(self, rows: Iterable[Row]) -> None:
        for row in rows:
            for elem_id in row.children_ids:
                self._document.layers.pop(elem_id, None)
            self._drop_elements(row.children)

    # -- repeat lists -----------------------------------------------------------------------

    def resize_repeat_list(self, target_count: int, address: Sequence[int]) -> None:
        row = self.resolve_row_by_depth_path(address)
        where = format_path(address)
        if row is None:
            raise DocumentError(f"no row at {where}")
        if not row.is_repeat_list:
            raise DocumentError(f"row {where} is not a repeat list")
        if not row.children:
            raise DocumentError(f"repeat list {where} has no item to copy")
        if target_count < 1:
            raise DocumentError(f"repeat list {where} must keep at least one item")

        current = len(row.children)
        if target_count > current:
            template = row.children[0]
            for _ in range(target_count - current):
                row.children.append(self._clone_row(template))
        elif target_count < current:
            removed = row.children[target_count:]
            del row.children[target_count:]
            self._drop_elements(removed)

        logger.debug(
            "Repeat list resized",
            extra={"address": where, "from": current, "to": target_count},
        )

    def _clone_row(self, row: Row) -> Row:
        clone = row.model_copy(deep=True)
        clone.id = short_id()
        clone.children_ids = [self._clone_element(elem_id) for elem_id in row.children_ids]
        clone.children = [self._clone_row(child) for child in row.children]
        return clone

    def _clone_element(self, elem_id: str) -> str:
        source = self._document.layers.get(elem_id)
        new_id = short_id()
        if source is not None:
            copy = source.model_copy(deep=True)
            copy.elem_id = new_id
            self._document.layers[new_id] = copy
        return new_id

    # -- creation ---------------------------------------------------------------------------

    def create_text_element(
        self,
        tag: str,
        attrs: dict[str, Any],
        address: Sequence[int],
        index: int | None = None,
    ) -> str | None:
        if len(address) < MIN_INSERT_DEPTH:
            logger.warning(
                "Refusing to add an element directly under a page",
                extra={"address": format_path(address)},
            )
            return None
        row = self.resolve_row_by_depth_path(address)
        if row is None:
            return None

        elem_id = short_id()
        self._document.layers[elem_id] = Element(
            elem_id=elem_id,
            element_ref=TEXT_ELEMENT_REF,
            tag=tag,
            attrs=dict(attrs),
        )
        if index is not None and index >= 0:
            row.children_ids.insert(min(index, len(row.children_ids)), elem_id)
        else:
            row.children_ids.append(elem_id)
        return elem_id
