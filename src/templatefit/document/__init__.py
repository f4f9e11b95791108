"""Document addressing, serialization and the document owner boundary."""

from __future__ import annotations

from templatefit.document.addressing import DepthPath, format_path, resolve_row
from templatefit.document.serializer import extract_text_elements, serialize_structure, snapshot
from templatefit.document.store import DocumentError, DocumentOwner, InMemoryDocumentStore

__all__ = [
    "DepthPath",
    "DocumentError",
    "DocumentOwner",
    "InMemoryDocumentStore",
    "extract_text_elements",
    "format_path",
    "resolve_row",
    "serialize_structure",
    "snapshot",
]
