"""Recording utilities for run logs."""

from __future__ import annotations

from templatefit.recording.base import RunRecorder
from templatefit.recording.file_recorder import FileRunRecorder
from templatefit.recording.redis_recorder import RedisRunRecorder

__all__ = ["FileRunRecorder", "RedisRunRecorder", "RunRecorder"]
