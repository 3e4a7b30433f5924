from pathlib import Path

import pytest

from hospital_finder.common.errors import ContractError, RecordNotFoundError
from hospital_finder.common.fs import read_json, write_json
from hospital_finder.sources.store import JsonHospitalStore


def _fields(**overrides):
    fields = {
        "name": "Klinik Kesihatan Kuala Lumpur",
        "type": "clinic",
        "address": "Jalan Fletcher",
        "city": "Kuala Lumpur",
        "state": "Wilayah Persekutuan",
        "postal_code": "50400",
        "latitude": 3.1686,
        "longitude": 101.6953,
        "is_24_hours": False,
        "has_emergency": False,
    }
    fields.update(overrides)
    return fields


def _store(tmp_path: Path) -> JsonHospitalStore:
    return JsonHospitalStore(tmp_path / "hospitals.json", clock=lambda: 1_700_000_000_000)


def test_missing_document_lists_nothing(tmp_path: Path):
    assert _store(tmp_path).list_hospitals() == []


def test_add_then_get_round_trip(tmp_path: Path):
    store = _store(tmp_path)
    record_id = store.add_hospital(_fields(specialties=["General Practice"], rating=3.6))

    record = store.get_hospital(record_id)
    assert record is not None
    assert record.id == f"internal:{record_id}"
    assert record.specialties == ("General Practice",)
    assert store.get_hospital(record.id) == record

    row = read_json(tmp_path / "hospitals.json")["hospitals"][0]
    assert row["created_at"] == row["updated_at"] == 1_700_000_000_000


def test_add_rejects_bad_records(tmp_path: Path):
    store = _store(tmp_path)
    with pytest.raises(ContractError):
        store.add_hospital(_fields(type="hospice"))
    with pytest.raises(ContractError):
        store.add_hospital(_fields(latitude=120))
    with pytest.raises(ContractError):
        store.add_hospital(_fields(colour="blue"))
    incomplete = _fields()
    del incomplete["city"]
    with pytest.raises(ContractError):
        store.add_hospital(incomplete)
    assert store.list_hospitals() == []


def test_queries_by_state_city_type_emergency_and_search(tmp_path: Path):
    store = _store(tmp_path)
    store.add_hospital(_fields())
    store.add_hospital(_fields(name="UMMC", type="government", city="Petaling Jaya", state="Selangor", has_emergency=True))

    assert [r.name for r in store.hospitals_by_state("Selangor")] == ["UMMC"]
    assert [r.name for r in store.hospitals_by_city("Kuala Lumpur")] == ["Klinik Kesihatan Kuala Lumpur"]
    assert [r.name for r in store.hospitals_by_type("government")] == ["UMMC"]
    assert [r.name for r in store.emergency_hospitals()] == ["UMMC"]
    assert [r.name for r in store.search_hospitals("petaling")] == ["UMMC"]
    assert len(store.search_hospitals("a")) == 2
    with pytest.raises(ContractError):
        store.hospitals_by_type("hospice")


def test_update_patches_fields_and_ignores_none(tmp_path: Path):
    store = _store(tmp_path)
    record_id = store.add_hospital(_fields())

    updated = store.update_hospital(record_id, name="KK Kuala Lumpur", phone_number=None, has_emergency=True)

    assert updated.name == "KK Kuala Lumpur"
    assert updated.has_emergency is True
    assert store.get_hospital(record_id).name == "KK Kuala Lumpur"


def test_update_and_delete_unknown_record_raise(tmp_path: Path):
    store = _store(tmp_path)
    with pytest.raises(RecordNotFoundError):
        store.update_hospital("nope", name="x")
    with pytest.raises(RecordNotFoundError):
        store.delete_hospital("nope")


def test_delete_removes_record(tmp_path: Path):
    store = _store(tmp_path)
    keep = store.add_hospital(_fields(name="Keep"))
    drop = store.add_hospital(_fields(name="Drop"))

    store.delete_hospital(f"internal:{drop}")

    assert [r.id for r in store.list_hospitals()] == [f"internal:{keep}"]


def test_repo_seed_document_is_valid():
    records = JsonHospitalStore(Path("data/hospitals.json")).list_hospitals()
    assert len(records) >= 5
    assert len({record.id for record in records}) == len(records)
    assert all(record.id.startswith("internal:") for record in records)


def test_malformed_rows_are_skipped_and_logged(tmp_path: Path, caplog):
    good = dict(_fields(), id="good-1", created_at=1, updated_at=1)
    rows = [{"id": "x", "type": "clinic"}, dict(good, id="bad-type", type="veterinary"), good]
    write_json(tmp_path / "hospitals.json", {"hospitals": rows})

    with caplog.at_level("WARNING", logger="hospital_finder"):
        records = _store(tmp_path).list_hospitals()

    assert [record.id for record in records] == ["internal:good-1"]
    skipped = [record for record in caplog.records if getattr(record, "event", None) == "SKIP_ROW"]
    assert len(skipped) == 2
    assert _store(tmp_path).hospitals_by_type("clinic")[0].id == "internal:good-1"
