"""File-based run recorder.

Each run gets ``run_<run_id>/events.jsonl`` and ``run_<run_id>/finish.json`` under the
recorder root.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from templatefit.events import RunEvent, RunFinish
from templatefit.recording.base import RunRecorder


@dataclass
class FileRunRecorder(RunRecorder):
    """Append-only JSONL recorder."""

    root: Path

    def __post_init__(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    def run_dir(self, run_id: str) -> Path:
        path = self.root / f"run_{run_id}"
        path.mkdir(parents=True, exist_ok=True)
        return path

    def append(self, event: RunEvent) -> None:
        """Append an event."""

        line = json.dumps(event.model_dump(mode="json"), ensure_ascii=False)
        with (self.run_dir(event.run_id) / "events.jsonl").open("a", encoding="utf-8") as f:
            f.write(line + "\n")

    def finish(self, record: RunFinish) -> None:
        """Write the finish record."""

        path = self.run_dir(record.run_id) / "finish.json"
        path.write_text(
            json.dumps(record.model_dump(mode="json"), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )


def iter_events(path: Path) -> list[RunEvent]:
    """Load all events from a JSONL file."""

    events: list[RunEvent] = []
    if not path.exists():
        return events
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line:
            continue
        events.append(RunEvent.model_validate_json(line))
    return events


def load_finish(path: Path) -> RunFinish | None:
    """Load a finish record, if the run has one."""

    if not path.exists():
        return None
    return RunFinish.model_validate_json(path.read_text(encoding="utf-8"))
