from __future__ import annotations

import json

import pytest

from carton_planner.fields import DEFAULT_FIELD_NAMES, FieldKey, normalize_field_name, resolve_field_map
from carton_planner.store import (
    InMemoryRecordStore,
    RecordAccessor,
    RecordNotFoundError,
    load_records,
    store_from_payload,
    write_records,
)


def test_resolve_field_map_ignores_case_and_spacing() -> None:
    columns = ["item  width (INCH)", "Item Depth (inch)", "Master Qty", "Notes"]
    field_map, missing = resolve_field_map(columns)

    assert field_map[FieldKey.UNIT_WIDTH] == "item  width (INCH)"
    assert field_map[FieldKey.MASTER_QTY] == "Master Qty"
    assert field_map[FieldKey.NET_WEIGHT] is None
    assert DEFAULT_FIELD_NAMES[FieldKey.NET_WEIGHT] in missing
    assert DEFAULT_FIELD_NAMES[FieldKey.UNIT_WIDTH] not in missing


def test_resolve_field_map_create_missing() -> None:
    field_map, missing = resolve_field_map(["Master Qty"], create_missing=True)
    assert field_map[FieldKey.NET_WEIGHT] == "N.W. (kg)"
    assert "N.W. (kg)" in missing


def test_normalize_field_name() -> None:
    assert normalize_field_name("  Item\tWeight  ( g ) ") == "item weight ( g )"


def test_accessor_reads_and_writes_by_key() -> None:
    store = InMemoryRecordStore({"r1": {"W": "2.5", "Label": [{"text": " Mug "}]}})
    accessor = RecordAccessor(store, {FieldKey.UNIT_WIDTH: "W", FieldKey.UNIT_DEPTH: None})

    assert accessor.get_number("r1", FieldKey.UNIT_WIDTH) == 2.5
    assert accessor.get_number("r1", FieldKey.UNIT_DEPTH) is None
    assert accessor.get_number("r1", FieldKey.UNIT_HEIGHT) is None

    assert accessor.set_field("r1", FieldKey.UNIT_WIDTH, 3.0) is True
    assert accessor.set_field("r1", FieldKey.UNIT_DEPTH, 3.0) is False
    assert store.fields("r1")["W"] == 3.0

    accessor.set_field("r1", FieldKey.UNIT_WIDTH, None)
    assert "W" not in store.fields("r1")


def test_accessor_get_text() -> None:
    store = InMemoryRecordStore({"r1": {"Label": [{"text": " Mug "}]}})
    accessor = RecordAccessor(store, {FieldKey.INNER_QTY: "Label"})
    assert accessor.get_text("r1", FieldKey.INNER_QTY) == "Mug"


def test_unknown_record_raises() -> None:
    store = InMemoryRecordStore({})
    with pytest.raises(RecordNotFoundError):
        store.get_cell("nope", "W")


def test_store_from_payload_shapes() -> None:
    store = store_from_payload([{"id": 1, "fields": {"A": 1}}, {"id": "2"}])
    assert store.list_visible_record_ids() == ["1", "2"]
    assert store.list_selected_record_ids() == []

    store = store_from_payload({"records": [{"id": "a"}, {"id": "b"}], "selected_ids": ["b"]})
    assert store.list_selected_record_ids() == ["b"]


@pytest.mark.parametrize(
    "payload",
    [
        {"rows": []},
        [{"fields": {}}],
        [{"id": "a", "fields": []}],
        [{"id": "a"}, {"id": "a"}],
        {"records": [], "selected_ids": "a"},
    ],
)
def test_store_from_payload_rejects_malformed(payload) -> None:
    with pytest.raises(ValueError):
        store_from_payload(payload)


def test_file_round_trip(tmp_path) -> None:
    source = tmp_path / "in.json"
    source.write_text(
        json.dumps({"records": [{"id": "r1", "fields": {"Master Qty": 4}}], "selected_ids": ["r1"]}),
        encoding="utf-8",
    )
    store = load_records(source)
    store.set_cell("r1", "Master Width (inch)", 2.0)

    target = tmp_path / "out" / "records.json"
    write_records(store, target)
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data == {
        "records": [{"id": "r1", "fields": {"Master Qty": 4, "Master Width (inch)": 2.0}}],
        "selected_ids": ["r1"],
    }
