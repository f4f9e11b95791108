"""Redis-based run recorder.

This is optional and complements the file recorder. It enables multi-instance deployments where
run logs are accessible without reading local disk.
"""

from __future__ import annotations

import json
from dataclasses import dataclass

import redis

from templatefit.events import RunEvent, RunFinish
from templatefit.recording.base import RunRecorder


@dataclass
class RedisRunRecorder(RunRecorder):
    """Recorder storing events in a Redis list and the finish record in a hash."""

    redis_url: str
    key_prefix: str
    ttl_seconds: int = 60 * 60 * 24 * 7

    def __post_init__(self) -> None:
        self._client = redis.Redis.from_url(self.redis_url, decode_responses=True)

    def _events_key(self, run_id: str) -> str:
        return f"{self.key_prefix}:run:{run_id}:events"

    def _finish_key(self, run_id: str) -> str:
        return f"{self.key_prefix}:run:{run_id}:finish"

    def append(self, event: RunEvent) -> None:
        """Append an event to Redis and refresh TTL."""

        key = self._events_key(event.run_id)
        line = json.dumps(event.model_dump(mode="json"), ensure_ascii=False)
        pipe = self._client.pipeline()
        pipe.rpush(key, line)
        pipe.expire(key, self.ttl_seconds)
        pipe.execute()

    def finish(self, record: RunFinish) -> None:
        """Store the finish record."""

        key = self._finish_key(record.run_id)
        mapping = {
            "status": record.status,
            "error_message": record.error_message or "",
            "final_snapshot": json.dumps(record.final_snapshot, ensure_ascii=False)
            if record.final_snapshot is not None
            else "",
            "ts": record.ts.isoformat(),
        }
        pipe = self._client.pipeline()
        pipe.hset(key, mapping=mapping)
        pipe.expire(key, self.ttl_seconds)
        pipe.execute()

    def iter_events(self, run_id: str) -> list[RunEvent]:
        """Load all events of a run from Redis."""

        lines = self._client.lrange(self._events_key(run_id), 0, -1)
        return [RunEvent.model_validate_json(line) for line in lines]
