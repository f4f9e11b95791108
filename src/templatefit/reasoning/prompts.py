"""Prompts for the LLM-backed reasoning service."""

from __future__ import annotations

import json
from typing import Sequence

from templatefit.models.plan import ExecutionReport
from templatefit.models.structure import StructureNode, TextElement

ANALYSIS_SYSTEM_PROMPT = """\
You are a professional template editing assistant. A user describes what they want
(their "story"); you adapt an existing design template to it by planning edits.

The template is a tree of rows addressed by depth paths: [0] is the first page,
[0, 1] the second row inside it, and so on. Text elements are referenced by their ID.
Rows marked isList are repeat lists: only their first item is shown to you, every item
has the same shape, and listItemCount tells how many items exist.

Each text slot carries a role (single, left, right, list-item) and a slotSize
(short <= 6 chars, medium <= 20 chars, long > 20 chars). Keep new text close to the
slot's size so the layout does not break.

Return a single JSON object, no markdown fences, with this exact shape:
{
  "contentPlan": {
    "listAdjust": [{"rowDepth": [0, 1], "targetCount": 3}],
    "replace": [{"elemId": "<existing ID>", "newText": "..."}],
    "delete": ["<existing ID>"],
    "add": [{"position": [0, 0, 1], "tag": "text_body", "text": "...", "order": 0}]
  },
  "layoutPlan": {
    "adjustFlexDirection": [],
    "adjustGap": []
  }
}

Rules:
- elemId values in replace and delete MUST be IDs listed in the template elements.
  Never invent IDs.
- listAdjust resizes repeat lists before any other edit; replace/delete/add addresses
  refer to the document after resizing. New list items start as copies of the first
  item; their elements get new IDs that you will see in the next round.
- add.position is the depth path of the row that receives the new element.
  tag is one of: text_heading1, text_heading2, text_heading3, text_body, text_desc,
  text_free.
- Only replace elements whose text must change; delete what the story does not need.
"""

VALIDATION_SYSTEM_PROMPT = """\
You are a strict reviewer of edited design templates. Decide whether the template now
fits the user's story (content) and whether its structure is still coherent (layout).

Return a single JSON object, no markdown fences, with this exact shape:
{
  "contentValid": true,
  "layoutValid": true,
  "issues": [
    {
      "type": "content",
      "description": "...",
      "fix": {"replace": [{"elemId": "...", "newText": "..."}], "delete": [], "add": []}
    },
    {
      "type": "layout",
      "description": "...",
      "fix": {"adjustFlexDirection": [], "adjustGap": [], "adjustAlignItems": []}
    }
  ]
}

Rules:
- type is "content" or "layout". A content fix may only contain replace, delete and add;
  a layout fix may only contain adjustFlexDirection, adjustGap and adjustAlignItems.
- Omit fix when you cannot propose a concrete edit.
- Use only element IDs and depth paths present in the template you are given.
"""


def _element_lines(elements: Sequence[TextElement]) -> list[str]:
    lines: list[str] = []
    for idx, elem in enumerate(elements, start=1):
        text = elem.text if len(elem.text) <= 50 else elem.text[:50] + "..."
        depth = ",".join(str(i) for i in elem.row_depth)
        lines.append(f"  {idx}. ID: {elem.elem_id} [{elem.tag}] position: [{depth}] {text}")
    return lines


def _structure_json(structure: Sequence[StructureNode]) -> str:
    return json.dumps(
        [node.to_wire() for node in structure],
        ensure_ascii=False,
        indent=2,
    )


def build_analysis_prompt(
    user_input: str,
    elements: Sequence[TextElement],
    structure: Sequence[StructureNode],
) -> str:
    lines: list[str] = []
    lines.append(f'User story: "{user_input}"')
    lines.append("")
    lines.append(f"Template text elements ({len(elements)}):")
    lines.extend(_element_lines(elements) or ["  <none>"])
    lines.append("")
    lines.append("Template structure (JSON):")
    lines.append(_structure_json(structure))
    lines.append("")
    lines.append("Plan the edits now. Answer with the JSON object only.")
    return "\n".join(lines)


def build_validation_prompt(
    user_input: str,
    elements: Sequence[TextElement],
    structure: Sequence[StructureNode],
    report: ExecutionReport | None,
) -> str:
    lines: list[str] = []
    lines.append(f'User story: "{user_input}"')
    lines.append("")
    lines.append(f"Edited template text elements ({len(elements)}):")
    lines.extend(_element_lines(elements) or ["  <none>"])
    lines.append("")
    lines.append("Edited template structure (JSON):")
    lines.append(_structure_json(structure))

    if report is not None:
        lines.append("")
        lines.append(
            "Last execution: "
            f"replaced={report.replaced} deleted={report.deleted} added={report.added} "
            f"lists_resized={report.list_adjusted}"
        )
        for err in report.errors[:20]:
            lines.append(f"  - [{err.step}] {err.error}")

    lines.append("")
    lines.append("Review the template now. Answer with the JSON object only.")
    return "\n".join(lines)
