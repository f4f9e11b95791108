"""ID utilities."""

from __future__ import annotations

import uuid
from datetime import datetime


def short_id(length: int = 10) -> str:
    """Random lowercase hex id used for rows and elements created by the workflow."""

    return uuid.uuid4().hex[:length]


def new_run_id() -> str:
    """Return a run id.

    Run id is time-based for readability plus a short random suffix to avoid collisions.
    """

    ts = datetime.utcnow().strftime("%Y%m%dT%H%M%SZ")
    return f"{ts}_{uuid.uuid4().hex[:8]}"
