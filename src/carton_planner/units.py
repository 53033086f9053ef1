"""Unit conversion, rounding and cell value extraction helpers."""

from __future__ import annotations

import math
import sys
from typing import Any, Mapping

from carton_planner.models import BufferUnit

CM_PER_INCH = 2.54

# Relative nudge applied before rounding so that values such as 2.005,
# stored as 2.00499999..., still round half away from zero.
_ROUNDING_NUDGE = 4 * sys.float_info.epsilon


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _finite_float(value: Any) -> float | None:
    if not _is_real(value):
        return None
    try:
        converted = float(value)
    except OverflowError:
        return None
    return converted if math.isfinite(converted) else None


def to_inches(value: Any, unit: BufferUnit | str) -> float:
    """
    Normalise a buffer magnitude to inches.

    Centimetres are divided by 2.54; anything that is not a finite number
    becomes 0.0.
    """
    inches = _finite_float(value)
    if inches is None:
        return 0.0
    if unit == BufferUnit.CM:
        return inches / CM_PER_INCH
    return inches


def round_half_up(value: float, digits: int = 2) -> float:
    """Round half away from zero at `digits` decimals."""
    if not math.isfinite(value):
        return value
    factor = 10 ** digits
    scaled = abs(value) * factor * (1 + _ROUNDING_NUDGE)
    if not math.isfinite(scaled):
        # Too large to carry `digits` decimals anyway
        return value
    rounded = math.floor(scaled + 0.5) / factor
    return math.copysign(rounded, value) if rounded else 0.0


def extract_number(cell: Any) -> float | None:
    """
    Read a numeric cell value.

    Accepted shapes:
    - int / float (finite, bools excluded)
    - numeric string, surrounding whitespace ignored, no "_" grouping
    - mapping carrying a finite numeric "value"
    Everything else yields None.
    """
    if cell is None:
        return None
    if _is_real(cell):
        return _finite_float(cell)
    if isinstance(cell, str):
        text = cell.strip()
        # float() accepts digit grouping such as "1_000"; sheet cells never do
        if not text or "_" in text:
            return None
        try:
            parsed = float(text)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    if isinstance(cell, Mapping):
        return _finite_float(cell.get("value"))
    return None


def extract_text(cell: Any) -> str | None:
    """Read a free-text cell value; blank text counts as absent."""
    if cell is None:
        return None
    if isinstance(cell, str):
        text = cell.strip()
        return text or None
    if _is_real(cell):
        return str(cell) if _finite_float(cell) is not None else None
    if isinstance(cell, Mapping):
        for key in ("text", "value"):
            if key in cell:
                return extract_text(cell[key])
        return None
    if isinstance(cell, (list, tuple)) and len(cell) == 1:
        return extract_text(cell[0])
    return None
