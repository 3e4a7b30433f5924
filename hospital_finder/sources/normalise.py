"""Normalise places results and stored rows into ``HospitalRecord``."""

from __future__ import annotations

from typing import Any, Iterable

from hospital_finder.common.constants import GENERIC_PLACE_TAGS, HOSPITAL_TYPES
from hospital_finder.common.errors import ContractError
from hospital_finder.common.geo import coordinate_or_none, safe_float
from hospital_finder.common.ids import external_id, internal_id
from hospital_finder.common.models import HospitalRecord

SPECIALIST_TAGS = ("doctor", "dentist", "physiotherapist")
CLINIC_TAGS = ("health", "pharmacy")
CLOSED_PERMANENTLY = "CLOSED_PERMANENTLY"


def classify_place_type(types: list[str]) -> str:
    # Places does not say who runs a hospital; "government" is a guess.
    if "hospital" in types:
        return "government"
    if any(tag in types for tag in SPECIALIST_TAGS):
        return "specialist"
    if any(tag in types for tag in CLINIC_TAGS):
        return "clinic"
    return "clinic"


def _open_now(place: dict) -> bool:
    opening_hours = place.get("opening_hours") or {}
    return opening_hours.get("open_now") is True


def place_has_emergency(place: dict) -> bool:
    types = place.get("types") or []
    if "hospital" in types:
        return True
    return _open_now(place) and "health" in types


def parse_vicinity(vicinity: str | None) -> dict[str, str]:
    vicinity = vicinity or ""
    parts = [part.strip() for part in vicinity.split(",")]
    return {
        "address": parts[0] or vicinity,
        "city": parts[1] if len(parts) > 1 and parts[1] else "Unknown",
        "state": parts[2] if len(parts) > 2 and parts[2] else "Malaysia",
        "postal_code": "",
    }


def place_specialties(types: Iterable[str], excluded_tags: Iterable[str] = GENERIC_PLACE_TAGS) -> tuple[str, ...]:
    excluded = set(excluded_tags)
    labels = []
    for tag in types:
        if tag in excluded or not tag:
            continue
        labels.append(tag[0].upper() + tag[1:].replace("_", " "))
    return tuple(labels)


def is_permanently_closed(place: dict) -> bool:
    return place.get("business_status") == CLOSED_PERMANENTLY


def normalise_place(place: dict, *, excluded_tags: Iterable[str] = GENERIC_PLACE_TAGS) -> HospitalRecord:
    place_id = place.get("place_id")
    if not place_id:
        raise ContractError("Place result without place_id")
    location = (place.get("geometry") or {}).get("location") or {}
    coordinate = coordinate_or_none(location.get("lat"), location.get("lng"))
    if coordinate is None:
        raise ContractError(f"Place {place_id} has no usable coordinate")

    types = [str(tag) for tag in place.get("types") or []]
    open_now = _open_now(place)
    address = parse_vicinity(place.get("vicinity"))

    return HospitalRecord(
        id=external_id(str(place_id)),
        name=str(place.get("name") or ""),
        type=classify_place_type(types),
        address=address["address"],
        city=address["city"],
        state=address["state"],
        postal_code=address["postal_code"],
        coordinate=coordinate,
        operating_hours="Open Now" if open_now else None,
        is_24_hours=open_now and "hospital" in types,
        has_emergency=place_has_emergency(place),
        specialties=place_specialties(types, excluded_tags),
        facilities=(),
        rating=safe_float(place.get("rating")),
    )


def _optional_str(value: Any) -> str | None:
    if value in (None, ""):
        return None
    return str(value)


def normalise_stored_row(row: dict[str, Any]) -> HospitalRecord:
    record_id = row.get("id")
    if not record_id:
        raise ContractError("Stored hospital row without id")
    coordinate = coordinate_or_none(row.get("latitude"), row.get("longitude"))
    if coordinate is None:
        raise ContractError(f"Stored hospital {record_id} has no usable coordinate")
    hospital_type = row.get("type")
    if hospital_type not in HOSPITAL_TYPES:
        raise ContractError(f"Stored hospital {record_id} has unknown type {hospital_type!r}")

    return HospitalRecord(
        id=internal_id(str(record_id)),
        name=str(row.get("name") or ""),
        type=hospital_type,
        address=str(row.get("address") or ""),
        city=str(row.get("city") or ""),
        state=str(row.get("state") or ""),
        postal_code=str(row.get("postal_code") or ""),
        coordinate=coordinate,
        phone_number=_optional_str(row.get("phone_number")),
        emergency_number=_optional_str(row.get("emergency_number")),
        website=_optional_str(row.get("website")),
        email=_optional_str(row.get("email")),
        operating_hours=_optional_str(row.get("operating_hours")),
        is_24_hours=bool(row.get("is_24_hours", False)),
        has_emergency=bool(row.get("has_emergency", False)),
        specialties=tuple(row.get("specialties") or ()),
        facilities=tuple(row.get("facilities") or ()),
        rating=safe_float(row.get("rating")),
    )
