from __future__ import annotations

import pytest

from carton_planner.models import BufferUnit
from carton_planner.units import extract_number, extract_text, round_half_up, to_inches


def test_to_inches() -> None:
    assert to_inches(3, BufferUnit.INCH) == 3.0
    assert to_inches(2.54, BufferUnit.CM) == pytest.approx(1.0)
    assert to_inches(5.08, "cm") == pytest.approx(2.0)
    assert to_inches(float("nan"), BufferUnit.CM) == 0.0
    assert to_inches(float("inf"), BufferUnit.INCH) == 0.0
    assert to_inches(None, BufferUnit.INCH) == 0.0


def test_round_half_up_compensates_binary_error() -> None:
    assert round_half_up(2.005, 2) == 2.01
    assert round_half_up(1.0005, 3) == 1.001
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-0.125, 2) == -0.13
    assert round_half_up(2.5, 0) == 3.0
    assert round_half_up(2.004, 2) == 2.0


def test_round_half_up_leaves_unscalable_values() -> None:
    """Values whose scaled form overflows come back unchanged."""
    assert round_half_up(1e306, 3) == 1e306
    assert round_half_up(-1.5e308, 2) == -1.5e308


@pytest.mark.parametrize("value", [0.1234567, 12.3456, 99.995, 1 / 3, 7.0])
def test_round_half_up_digit_count(value: float) -> None:
    rounded = round_half_up(value, 2)
    text = repr(rounded)
    assert len(text.split(".")[1]) <= 2


@pytest.mark.parametrize(
    "cell, expected",
    [
        (12, 12.0),
        (3.5, 3.5),
        (" 4.25 ", 4.25),
        ("7", 7.0),
        ({"value": 9}, 9.0),
        ({"value": 2.5, "text": "2.5"}, 2.5),
        (None, None),
        ("", None),
        ("abc", None),
        ("nan", None),
        ("1_000", None),
        (" 1_0.5 ", None),
        ("1e3", 1000.0),
        ({"value": "9"}, None),
        ({"text": "9"}, None),
        ([{"value": 9}], None),
        (True, None),
        (float("inf"), None),
    ],
)
def test_extract_number(cell, expected) -> None:
    assert extract_number(cell) == expected


@pytest.mark.parametrize(
    "cell, expected",
    [
        ("  Carton A ", "Carton A"),
        ("   ", None),
        (42, "42"),
        ([{"text": "Poly Bag", "type": "text"}], "Poly Bag"),
        ([{"value": " Box "}], "Box"),
        ({"text": "Note"}, "Note"),
        ([{"text": "a"}, {"text": "b"}], None),
        ([], None),
        (None, None),
        ({"other": 1}, None),
    ],
)
def test_extract_text(cell, expected) -> None:
    assert extract_text(cell) == expected
