"""Recorder interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from templatefit.events import RunEvent, RunFinish


class RunRecorder(ABC):
    """Sink for run events and finish records."""

    @abstractmethod
    def append(self, event: RunEvent) -> None:
        """Append an event."""

    @abstractmethod
    def finish(self, record: RunFinish) -> None:
        """Store the terminal record of a run."""
