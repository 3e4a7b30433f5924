"""UTC-focused time helpers."""

from __future__ import annotations

import time
from datetime import datetime, timezone


def epoch_ms() -> int:
    return int(time.time() * 1000)


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")
