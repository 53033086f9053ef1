"""Minimum-volume grid arrangement for a fixed quantity of identical boxes."""

from __future__ import annotations

import math
from itertools import permutations
from typing import Iterator

from carton_planner.models import ArrangementResult, BoxDimensions

CUBIC_INCHES_PER_CUBIC_FOOT = 1728


def divisors(n: int) -> list[int]:
    """Ascending positive divisors of n (empty for n <= 0)."""
    if n <= 0:
        return []
    low: list[int] = []
    high: list[int] = []
    for d in range(1, math.isqrt(n) + 1):
        if n % d == 0:
            low.append(d)
            if d != n // d:
                high.append(n // d)
    return low + high[::-1]


def factor_triples(quantity: int) -> Iterator[tuple[int, int, int]]:
    """
    Yield every ordered triple (a, b, c) with a * b * c == quantity, once.

    Order: divisors a ascending, then divisors b of quantity / a ascending,
    then the permutations of (a, b, c) in itertools order. Permutations
    already produced by an earlier triple are skipped.
    """
    seen: set[tuple[int, int, int]] = set()
    for a in divisors(quantity):
        quotient = quantity // a
        for b in divisors(quotient):
            c = quotient // b
            for perm in permutations((a, b, c)):
                if perm not in seen:
                    seen.add(perm)
                    yield perm


def solve_arrangement(
    quantity: int | float,
    unit: BoxDimensions,
    buffer_inches: float = 0.0,
) -> ArrangementResult | None:
    """
    Pick the grid arrangement of `quantity` units with the smallest outer volume.

    Each axis is `count * unit dimension + buffer`. Candidates with a
    non-finite or non-positive dimension are dropped. On equal volumes the
    first candidate in enumeration order is kept, so the result is stable
    but not a preference for any particular shape.

    Returns None for quantity <= 0 (after truncation toward zero) or when no
    candidate survives.
    """
    qty = int(quantity)
    if qty <= 0:
        return None

    best: ArrangementResult | None = None
    for count_w, count_d, count_h in factor_triples(qty):
        width = count_w * unit.width + buffer_inches
        depth = count_d * unit.depth + buffer_inches
        height = count_h * unit.height + buffer_inches
        if any(not math.isfinite(v) or v <= 0 for v in (width, depth, height)):
            continue
        volume = width * depth * height / CUBIC_INCHES_PER_CUBIC_FOOT
        if not math.isfinite(volume) or volume <= 0:
            continue
        if best is None or volume < best.volume_cubic_feet:
            best = ArrangementResult(
                width=width,
                depth=depth,
                height=height,
                volume_cubic_feet=volume,
                counts=(count_w, count_d, count_h),
            )
    return best
