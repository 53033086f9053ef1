"""
Unit -> inner carton -> master carton cascade.

Each record is handled independently: read the unit geometry and case-pack
quantities, size the inner carton (when there is one), size the master
carton around the inner cartons (or directly around the units), derive the
weights and write everything back. Every branch reports a progress line to
the notifier; a failing record never stops the run.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional, Sequence

from carton_planner.arrangement import solve_arrangement
from carton_planner.fields import DEFAULT_FIELD_NAMES, FieldKey, FieldMap
from carton_planner.models import (
    ArrangementResult,
    BoxDimensions,
    CalculationOptions,
    InnerMaterial,
    RunSummary,
)
from carton_planner.notify import Notifier, safe_log, safe_warn
from carton_planner.store import RecordAccessor, RecordStore
from carton_planner.units import extract_number, extract_text, round_half_up, to_inches

logger = logging.getLogger(__name__)

INNER_BOX_PACKAGING_G = 100.0
GRAM_TO_POUND = 0.00220462
OUTPUT_DECIMALS = 3
ZERO_CASE_PACK_WARNING = "Case pack is zero, please input the master qty as case pack!"

INNER_OUTPUTS = (
    FieldKey.INNER_WIDTH,
    FieldKey.INNER_DEPTH,
    FieldKey.INNER_HEIGHT,
    FieldKey.INNER_WEIGHT,
)


# Larger case packs are treated as data-entry mistakes; the divisor search
# would otherwise stall the run.
MAX_QUANTITY = 1_000_000


class InvalidQuantityError(ValueError):
    """A quantity cell cannot be used for sizing."""


class QuantityTypeError(InvalidQuantityError):
    """A quantity cell holds something other than a whole number."""

    def __init__(self, key: FieldKey, raw: Any) -> None:
        self.key = key
        self.raw = raw
        super().__init__(f"{DEFAULT_FIELD_NAMES[key]} must be a whole number, got {raw!r}")


class QuantityLimitError(InvalidQuantityError):
    """A quantity is above MAX_QUANTITY."""

    def __init__(self, key: FieldKey, quantity: int) -> None:
        self.key = key
        self.quantity = quantity
        super().__init__(f"{DEFAULT_FIELD_NAMES[key]} ({quantity}) exceeds the limit of {MAX_QUANTITY} units")


@dataclass(frozen=True)
class RecordInputs:
    unit: BoxDimensions
    unit_weight_g: Optional[float]
    inner_qty: Optional[int]
    master_qty: Optional[int]
    stored_inner: tuple[Optional[float], Optional[float], Optional[float]]


def is_positive(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


def first_positive(*candidates: Optional[float]) -> Optional[float]:
    """First candidate that is a finite positive number, in priority order."""
    for value in candidates:
        if is_positive(value):
            return value
    return None


def inner_weight_lb(
    inner_qty: int,
    unit_weight_g: Optional[float],
    material: InnerMaterial,
) -> Optional[float]:
    """Gross inner carton weight in pounds, packaging included."""
    if inner_qty <= 0 or not is_positive(unit_weight_g):
        return None
    packaging_g = 0.0 if material is InnerMaterial.POLY_BAG else INNER_BOX_PACKAGING_G
    return (inner_qty * unit_weight_g + packaging_g) * GRAM_TO_POUND


def net_weight_kg(unit_weight_g: Optional[float], master_qty: int) -> Optional[float]:
    if not is_positive(unit_weight_g) or master_qty <= 0:
        return None
    return unit_weight_g / 1000 * master_qty


def select_record_ids(store: RecordStore, force_all: bool) -> list[str]:
    """Explicit selection unless force_all or nothing is selected; then the visible set."""
    if not force_all:
        selected = [rid for rid in store.list_selected_record_ids() if rid]
        if selected:
            return selected
    return [rid for rid in store.list_visible_record_ids() if rid]


def _format_dims(arrangement: ArrangementResult) -> str:
    return f"{arrangement.width:.2f} x {arrangement.depth:.2f} x {arrangement.height:.2f} (in)"


def _write_all(accessor: RecordAccessor, record_id: str, values: Sequence[tuple[FieldKey, Any]]) -> None:
    for key, value in values:
        accessor.set_field(record_id, key, value)


def _read_quantity(accessor: RecordAccessor, record_id: str, key: FieldKey) -> Optional[int]:
    raw = accessor.get_raw(record_id, key)
    number = extract_number(raw)
    if number is None:
        # Text cells wrap the number, e.g. [{"type": "text", "text": "12"}]
        text = extract_text(raw)
        if text is None:
            return None
        number = extract_number(text)
        if number is None:
            raise QuantityTypeError(key, raw)
    if not number.is_integer():
        raise QuantityTypeError(key, raw)
    if abs(number) > MAX_QUANTITY:
        raise QuantityLimitError(key, int(number))
    return int(number)


def read_inputs(accessor: RecordAccessor, record_id: str) -> Optional[RecordInputs]:
    """
    Fetch one record's inputs.

    Returns None when the unit geometry is incomplete; raises
    QuantityTypeError for a non-integer quantity and QuantityLimitError
    for one above MAX_QUANTITY.
    """
    width = accessor.get_number(record_id, FieldKey.UNIT_WIDTH)
    depth = accessor.get_number(record_id, FieldKey.UNIT_DEPTH)
    height = accessor.get_number(record_id, FieldKey.UNIT_HEIGHT)
    if not (is_positive(width) and is_positive(depth) and is_positive(height)):
        return None

    return RecordInputs(
        unit=BoxDimensions(width=width, depth=depth, height=height),
        unit_weight_g=accessor.get_number(record_id, FieldKey.UNIT_WEIGHT),
        inner_qty=_read_quantity(accessor, record_id, FieldKey.INNER_QTY),
        master_qty=_read_quantity(accessor, record_id, FieldKey.MASTER_QTY),
        stored_inner=(
            accessor.get_number(record_id, FieldKey.INNER_WIDTH),
            accessor.get_number(record_id, FieldKey.INNER_DEPTH),
            accessor.get_number(record_id, FieldKey.INNER_HEIGHT),
        ),
    )


def apply_inner_level(
    accessor: RecordAccessor,
    record_id: str,
    label: str,
    inputs: RecordInputs,
    options: CalculationOptions,
    notifier: Notifier,
) -> Optional[ArrangementResult]:
    """Size and write the inner carton. Returns its arrangement, if one was found."""
    inner_qty = inputs.inner_qty or 0
    if inner_qty <= 0:
        safe_log(notifier, f"{label} Inner Qty is 0 or empty, no inner carton.")
        _write_all(accessor, record_id, [(key, None) for key in INNER_OUTPUTS])
        return None

    if options.inner_material is InnerMaterial.POLY_BAG:
        buffer_in = 0.0
    else:
        buffer_in = to_inches(options.inner_buffer, options.inner_buffer_unit)

    arrangement = solve_arrangement(inner_qty, inputs.unit, buffer_in)
    weight_lb = inner_weight_lb(inner_qty, inputs.unit_weight_g, options.inner_material)

    updates: list[tuple[FieldKey, Any]] = []
    if arrangement is None:
        safe_log(notifier, f"{label} no suitable inner arrangement found.")
    else:
        updates += [
            (FieldKey.INNER_WIDTH, round_half_up(arrangement.width, OUTPUT_DECIMALS)),
            (FieldKey.INNER_DEPTH, round_half_up(arrangement.depth, OUTPUT_DECIMALS)),
            (FieldKey.INNER_HEIGHT, round_half_up(arrangement.height, OUTPUT_DECIMALS)),
        ]
    if weight_lb is None:
        safe_log(notifier, f"{label} Item Weight missing, cannot compute inner weight.")
    else:
        updates.append((FieldKey.INNER_WEIGHT, round_half_up(weight_lb, OUTPUT_DECIMALS)))

    _write_all(accessor, record_id, updates)
    if arrangement is not None:
        safe_log(notifier, f"{label} inner carton: {_format_dims(arrangement)}.")
    return arrangement


def apply_master_level(
    accessor: RecordAccessor,
    record_id: str,
    label: str,
    inputs: RecordInputs,
    inner: Optional[ArrangementResult],
    options: CalculationOptions,
    notifier: Notifier,
) -> Optional[ArrangementResult]:
    """Size and write the master carton. Returns its arrangement, if written."""
    inner_qty = inputs.inner_qty or 0
    master_qty = inputs.master_qty

    if master_qty is None or master_qty <= 0:
        safe_log(notifier, f"{label} Master Qty is 0 or empty, master carton skipped.")
        if master_qty == 0:
            safe_warn(notifier, ZERO_CASE_PACK_WARNING)
        return None

    if inner_qty > 0:
        if master_qty % inner_qty != 0:
            safe_log(
                notifier,
                f"{label} Master Qty ({master_qty}) is not a multiple of Inner Qty ({inner_qty}), "
                "master carton skipped.",
            )
            return None
        inners_per_master = master_qty // inner_qty
        stored_w, stored_d, stored_h = inputs.stored_inner
        cell = (
            first_positive(inner.width if inner else None, stored_w, inputs.unit.width),
            first_positive(inner.depth if inner else None, stored_d, inputs.unit.depth),
            first_positive(inner.height if inner else None, stored_h, inputs.unit.height),
        )
        if not all(cell):
            safe_log(notifier, f"{label} missing inner carton dimensions, master carton skipped.")
            return None
        cell_dims = BoxDimensions(width=cell[0], depth=cell[1], height=cell[2])
    else:
        inners_per_master = master_qty
        cell_dims = inputs.unit

    buffer_in = to_inches(options.master_buffer, options.master_buffer_unit)
    arrangement = solve_arrangement(inners_per_master, cell_dims, buffer_in)
    if arrangement is None:
        safe_log(notifier, f"{label} no suitable master arrangement found.")
        return None

    net_kg = net_weight_kg(inputs.unit_weight_g, master_qty)
    if net_kg is None:
        safe_log(notifier, f"{label} Item Weight missing, net weight cleared.")
        net_value = None
    else:
        net_value = round_half_up(net_kg, OUTPUT_DECIMALS)

    _write_all(
        accessor,
        record_id,
        [
            (FieldKey.NET_WEIGHT, net_value),
            (FieldKey.MASTER_WIDTH, round_half_up(arrangement.width, OUTPUT_DECIMALS)),
            (FieldKey.MASTER_DEPTH, round_half_up(arrangement.depth, OUTPUT_DECIMALS)),
            (FieldKey.MASTER_HEIGHT, round_half_up(arrangement.height, OUTPUT_DECIMALS)),
        ],
    )
    safe_log(notifier, f"{label} master carton: {_format_dims(arrangement)}.")
    return arrangement


def process_record(
    accessor: RecordAccessor,
    record_id: str,
    label: str,
    options: CalculationOptions,
    notifier: Notifier,
) -> None:
    try:
        inputs = read_inputs(accessor, record_id)
    except InvalidQuantityError as e:
        safe_log(notifier, f"{label} {e}, skipped.")
        return
    if inputs is None:
        safe_log(notifier, f"{label} incomplete unit dimensions, skipped.")
        return

    inner = apply_inner_level(accessor, record_id, label, inputs, options, notifier)
    apply_master_level(accessor, record_id, label, inputs, inner, options, notifier)


def run_calculation(
    store: RecordStore,
    field_map: FieldMap,
    options: CalculationOptions,
    notifier: Notifier,
) -> RunSummary:
    """Run the cascade over the selected (or visible) records, one at a time."""
    record_ids = select_record_ids(store, options.force_all)
    summary = RunSummary(total=len(record_ids))
    if not record_ids:
        safe_log(notifier, "No records to calculate in the current view.")
        return summary

    safe_log(notifier, f"Processing {len(record_ids)} records.")
    accessor = RecordAccessor(store, field_map)

    for index, record_id in enumerate(record_ids):
        label = f"#{index + 1} ({record_id})"
        try:
            process_record(accessor, record_id, label, options, notifier)
        except Exception as e:
            logger.error(f"Record {label} failed: {e!r}", exc_info=True)
            safe_log(notifier, f"{label} calculation failed: {e}")
            summary.failed += 1
            continue
        summary.processed += 1

    safe_log(notifier, f"Finished {summary.processed}/{summary.total} records.")
    return summary
