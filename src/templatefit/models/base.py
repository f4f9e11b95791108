"""Shared pydantic base for wire-facing models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Model serialized with camelCase keys and populated by either spelling.

    The document and the reasoning service exchange camelCase JSON (``elemId``,
    ``rowDepth``); Python code uses the snake_case attribute names.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        """Dump as JSON-compatible camelCase dict."""

        return self.model_dump(mode="json", by_alias=True)
