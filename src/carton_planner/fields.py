from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Mapping, Optional


class FieldKey(str, Enum):
    UNIT_WIDTH = "unit_width"
    UNIT_DEPTH = "unit_depth"
    UNIT_HEIGHT = "unit_height"
    UNIT_WEIGHT = "unit_weight"
    INNER_QTY = "inner_qty"
    INNER_WIDTH = "inner_width"
    INNER_DEPTH = "inner_depth"
    INNER_HEIGHT = "inner_height"
    INNER_WEIGHT = "inner_weight"
    MASTER_QTY = "master_qty"
    MASTER_WIDTH = "master_width"
    MASTER_DEPTH = "master_depth"
    MASTER_HEIGHT = "master_height"
    NET_WEIGHT = "net_weight"


# Column names as they appear on the product sheet.
DEFAULT_FIELD_NAMES: dict[FieldKey, str] = {
    FieldKey.UNIT_WIDTH:    "Item Width (inch)",
    FieldKey.UNIT_DEPTH:    "Item Depth (inch)",
    FieldKey.UNIT_HEIGHT:   "Item Height (inch)",
    FieldKey.UNIT_WEIGHT:   "Item Weight ( g )",
    FieldKey.INNER_QTY:     "Inner Qty",
    FieldKey.INNER_WIDTH:   "Inner Width (inch)",
    FieldKey.INNER_DEPTH:   "Inner Depth (inch)",
    FieldKey.INNER_HEIGHT:  "Inner Height (inch)",
    FieldKey.INNER_WEIGHT:  "Inner Weight (lbs)",
    FieldKey.MASTER_QTY:    "Master Qty",
    FieldKey.MASTER_WIDTH:  "Master Width (inch)",
    FieldKey.MASTER_DEPTH:  "Master Depth (inch)",
    FieldKey.MASTER_HEIGHT: "Master Height (inch)",
    FieldKey.NET_WEIGHT:    "N.W. (kg)",
}

# Resolved field ids; a missing or None entry means "not configured".
FieldMap = Mapping[FieldKey, Optional[str]]


def normalize_field_name(name: str) -> str:
    return re.sub(r"\s+", " ", name).strip().lower()


def default_field_map() -> dict[FieldKey, Optional[str]]:
    """Field map for stores whose field ids are the sheet column names."""
    return dict(DEFAULT_FIELD_NAMES)


def resolve_field_map(
    available: Iterable[str],
    names: Mapping[FieldKey, str] | None = None,
    create_missing: bool = False,
) -> tuple[dict[FieldKey, Optional[str]], list[str]]:
    """
    Match the expected column names against the columns a source provides.

    Matching ignores case and repeated whitespace. Returns the field map and
    the display names that were not found. Unmatched keys map to None, or to
    the expected name itself when `create_missing` is set (stores that add
    columns on first write).
    """
    names = names or DEFAULT_FIELD_NAMES
    by_normalized: dict[str, str] = {}
    for column in available:
        by_normalized.setdefault(normalize_field_name(column), column)

    field_map: dict[FieldKey, Optional[str]] = {}
    missing: list[str] = []
    for key in FieldKey:
        expected = names.get(key)
        column = by_normalized.get(normalize_field_name(expected)) if expected else None
        if column is None:
            missing.append(expected or key.value)
            if create_missing and expected:
                column = expected
        field_map[key] = column
    return field_map, missing
