"""Identifier helpers."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

EXTERNAL_ID_PREFIX = "external:"
INTERNAL_ID_PREFIX = "internal:"


def generate_session_id() -> str:
    now = datetime.now(tz=timezone.utc)
    return now.strftime("session-%Y%m%dT%H%M%S%fZ")


def generate_record_id() -> str:
    return f"hosp-{uuid.uuid4().hex[:12]}"


def external_id(place_id: str) -> str:
    return f"{EXTERNAL_ID_PREFIX}{place_id}"


def internal_id(record_id: str) -> str:
    return f"{INTERNAL_ID_PREFIX}{record_id}"


def strip_internal_prefix(value: str) -> str:
    if value.startswith(INTERNAL_ID_PREFIX):
        return value[len(INTERNAL_ID_PREFIX) :]
    return value
