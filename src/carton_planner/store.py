"""Record store seam: the protocol the cascade talks to, plus an in-memory store."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, Protocol, Sequence

from carton_planner.fields import FieldKey, FieldMap
from carton_planner.units import extract_number, extract_text

logger = logging.getLogger(__name__)


class RecordNotFoundError(KeyError):
    """Raised when a record id is not present in the store."""


class RecordStore(Protocol):
    def get_cell(self, record_id: str, field_id: str) -> Any: ...

    def set_cell(self, record_id: str, field_id: str, value: Any) -> None: ...

    def list_selected_record_ids(self) -> Sequence[str]: ...

    def list_visible_record_ids(self) -> Sequence[str]: ...


class InMemoryRecordStore:
    """
    Dict-backed store. Records keep insertion order, which is the visible
    order; the selection is an explicit list of ids.
    """

    def __init__(
        self,
        records: dict[str, dict[str, Any]] | None = None,
        selected_ids: Iterable[str] | None = None,
    ) -> None:
        self._records: dict[str, dict[str, Any]] = {
            record_id: dict(fields) for record_id, fields in (records or {}).items()
        }
        self.selected_ids: list[str] = list(selected_ids or [])

    def _record(self, record_id: str) -> dict[str, Any]:
        try:
            return self._records[record_id]
        except KeyError:
            raise RecordNotFoundError(f"Unknown record '{record_id}'") from None

    def get_cell(self, record_id: str, field_id: str) -> Any:
        return self._record(record_id).get(field_id)

    def set_cell(self, record_id: str, field_id: str, value: Any) -> None:
        record = self._record(record_id)
        if value is None:
            record.pop(field_id, None)
        else:
            record[field_id] = value

    def list_selected_record_ids(self) -> list[str]:
        return list(self.selected_ids)

    def list_visible_record_ids(self) -> list[str]:
        return list(self._records)

    def fields(self, record_id: str) -> dict[str, Any]:
        return dict(self._record(record_id))

    def columns(self) -> list[str]:
        """Every field name used by at least one record, in first-seen order."""
        seen: dict[str, None] = {}
        for fields in self._records.values():
            for name in fields:
                seen.setdefault(name, None)
        return list(seen)


class RecordAccessor:
    """Reads and writes record cells by FieldKey through a resolved field map."""

    def __init__(self, store: RecordStore, field_map: FieldMap) -> None:
        self.store = store
        self.field_map = field_map

    def field_id(self, key: FieldKey) -> str | None:
        return self.field_map.get(key) or None

    def get_raw(self, record_id: str, key: FieldKey) -> Any:
        field_id = self.field_id(key)
        if field_id is None:
            return None
        return self.store.get_cell(record_id, field_id)

    def get_number(self, record_id: str, key: FieldKey) -> float | None:
        return extract_number(self.get_raw(record_id, key))

    def get_text(self, record_id: str, key: FieldKey) -> str | None:
        return extract_text(self.get_raw(record_id, key))

    def set_field(self, record_id: str, key: FieldKey, value: Any) -> bool:
        """Write a value (None clears). Returns False when the key is not configured."""
        field_id = self.field_id(key)
        if field_id is None:
            return False
        self.store.set_cell(record_id, field_id, value)
        return True


def store_from_payload(payload: Any) -> InMemoryRecordStore:
    """
    Build a store from a decoded document.

    Accepted shapes:
    - {"records": [{"id": ..., "fields": {...}}, ...], "selected_ids": [...]}
    - [{"id": ..., "fields": {...}}, ...]
    """
    if isinstance(payload, list):
        payload = {"records": payload}
    if not isinstance(payload, dict) or not isinstance(payload.get("records"), list):
        raise ValueError("Input must be a list of records or an object with a 'records' list")

    records: dict[str, dict[str, Any]] = {}
    for index, item in enumerate(payload["records"]):
        if not isinstance(item, dict) or "id" not in item:
            raise ValueError(f"Record #{index + 1} must be an object with an 'id'")
        fields = item.get("fields", {})
        if not isinstance(fields, dict):
            raise ValueError(f"Record '{item['id']}' has non-object 'fields'")
        record_id = str(item["id"])
        if record_id in records:
            raise ValueError(f"Duplicate record id '{record_id}'")
        records[record_id] = fields

    selected = payload.get("selected_ids") or []
    if not isinstance(selected, list):
        raise ValueError("'selected_ids' must be a list")
    return InMemoryRecordStore(records, [str(s) for s in selected if s])


def load_records(path: Path | str) -> InMemoryRecordStore:
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    store = store_from_payload(data)
    logger.debug("Loaded %d records from %s", len(store.list_visible_record_ids()), path)
    return store


def dump_records(store: InMemoryRecordStore) -> dict[str, Any]:
    return {
        "records": [
            {"id": record_id, "fields": store.fields(record_id)}
            for record_id in store.list_visible_record_ids()
        ],
        "selected_ids": store.list_selected_record_ids(),
    }


def write_records(store: InMemoryRecordStore, path: Path | str) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(dump_records(store), f, indent=2, ensure_ascii=False)
