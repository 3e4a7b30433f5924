"""Internal hospital records kept in a local JSON document.

The document looks like ``{"hospitals": [row, ...]}`` where each row carries
the hospital fields in snake_case plus ``id``, ``latitude``, ``longitude``,
``created_at`` and ``updated_at`` (epoch milliseconds).
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

from hospital_finder.common.constants import HOSPITAL_TYPES
from hospital_finder.common.errors import ContractError, RecordNotFoundError
from hospital_finder.common.fs import read_json, write_json
from hospital_finder.common.geo import coordinate_or_none
from hospital_finder.common.ids import generate_record_id, strip_internal_prefix
from hospital_finder.common.logging import get_logger, log_event
from hospital_finder.common.models import HospitalRecord
from hospital_finder.common.time_utils import epoch_ms
from hospital_finder.sources.normalise import normalise_stored_row

REQUIRED_FIELDS = (
    "name",
    "type",
    "address",
    "city",
    "state",
    "postal_code",
    "latitude",
    "longitude",
    "is_24_hours",
    "has_emergency",
)
OPTIONAL_FIELDS = (
    "phone_number",
    "emergency_number",
    "website",
    "email",
    "operating_hours",
    "specialties",
    "facilities",
    "rating",
)
EDITABLE_FIELDS = set(REQUIRED_FIELDS) | set(OPTIONAL_FIELDS)

logger = get_logger(__name__)


def _validate_fields(fields: dict[str, Any], *, partial: bool) -> None:
    unknown = set(fields) - EDITABLE_FIELDS
    if unknown:
        raise ContractError(f"Unknown hospital fields: {', '.join(sorted(unknown))}")
    if not partial:
        missing = set(REQUIRED_FIELDS) - set(fields)
        if missing:
            raise ContractError(f"Missing hospital fields: {', '.join(sorted(missing))}")
    if "type" in fields and fields["type"] not in HOSPITAL_TYPES:
        raise ContractError(f"Unknown hospital type: {fields['type']!r}")
    for flag in ("is_24_hours", "has_emergency"):
        if flag in fields and not isinstance(fields[flag], bool):
            raise ContractError(f"{flag} must be a boolean")


class JsonHospitalStore:
    def __init__(self, path: Path, *, clock: Callable[[], int] = epoch_ms) -> None:
        self.path = Path(path)
        self.clock = clock
        self.lock = threading.Lock()

    def _load_rows(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        payload = read_json(self.path)
        rows = payload.get("hospitals", []) if isinstance(payload, dict) else []
        return [row for row in rows if isinstance(row, dict)]

    def _save_rows(self, rows: list[dict[str, Any]]) -> None:
        write_json(self.path, {"hospitals": rows})

    def _records(self, predicate: Callable[[dict[str, Any]], bool] | None = None) -> list[HospitalRecord]:
        with self.lock:
            rows = self._load_rows()
        records = []
        for row in rows:
            if predicate is not None and not predicate(row):
                continue
            try:
                records.append(normalise_stored_row(row))
            except ContractError as exc:
                log_event(logger, str(exc), level=logging.WARNING, stage="store", event="SKIP_ROW", error_code=exc.error_code)
        return records

    def list_hospitals(self) -> list[HospitalRecord]:
        return self._records()

    def get_hospital(self, record_id: str) -> HospitalRecord | None:
        record_id = strip_internal_prefix(record_id)
        matches = self._records(lambda row: row.get("id") == record_id)
        return matches[0] if matches else None

    def hospitals_by_state(self, state: str) -> list[HospitalRecord]:
        return self._records(lambda row: row.get("state") == state)

    def hospitals_by_city(self, city: str) -> list[HospitalRecord]:
        return self._records(lambda row: row.get("city") == city)

    def hospitals_by_type(self, hospital_type: str) -> list[HospitalRecord]:
        if hospital_type not in HOSPITAL_TYPES:
            raise ContractError(f"Unknown hospital type: {hospital_type!r}")
        return self._records(lambda row: row.get("type") == hospital_type)

    def emergency_hospitals(self) -> list[HospitalRecord]:
        return self._records(lambda row: row.get("has_emergency") is True)

    def search_hospitals(self, term: str) -> list[HospitalRecord]:
        needle = term.lower()
        return [
            record
            for record in self.list_hospitals()
            if needle in record.name.lower() or needle in record.city.lower() or needle in record.state.lower()
        ]

    def add_hospital(self, fields: dict[str, Any]) -> str:
        _validate_fields(fields, partial=False)
        if coordinate_or_none(fields["latitude"], fields["longitude"]) is None:
            raise ContractError("Hospital coordinate is missing or out of range")
        now = self.clock()
        row = dict(fields)
        row["id"] = generate_record_id()
        row["created_at"] = now
        row["updated_at"] = now
        with self.lock:
            rows = self._load_rows()
            rows.append(row)
            self._save_rows(rows)
        return row["id"]

    def update_hospital(self, record_id: str, **updates: Any) -> HospitalRecord:
        record_id = strip_internal_prefix(record_id)
        updates = {key: value for key, value in updates.items() if value is not None}
        _validate_fields(updates, partial=True)
        with self.lock:
            rows = self._load_rows()
            for row in rows:
                if row.get("id") != record_id:
                    continue
                candidate = {**row, **updates, "updated_at": self.clock()}
                if coordinate_or_none(candidate.get("latitude"), candidate.get("longitude")) is None:
                    raise ContractError("Hospital coordinate is missing or out of range")
                row.clear()
                row.update(candidate)
                self._save_rows(rows)
                return normalise_stored_row(row)
        raise RecordNotFoundError(f"Hospital not found: {record_id}")

    def delete_hospital(self, record_id: str) -> None:
        record_id = strip_internal_prefix(record_id)
        with self.lock:
            rows = self._load_rows()
            remaining = [row for row in rows if row.get("id") != record_id]
            if len(remaining) == len(rows):
                raise RecordNotFoundError(f"Hospital not found: {record_id}")
            self._save_rows(remaining)
