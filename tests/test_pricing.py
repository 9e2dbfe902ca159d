from datetime import date

import pytest

from modules.materials.pricing import calculate_total_price, resolve_unit_price
from modules.materials.schemas import PriceCreate


def period(start, end, price):
    return PriceCreate(
        unit_price=price,
        effective_start_date=date.fromisoformat(start),
        effective_end_date=date.fromisoformat(end) if end else None,
    )


@pytest.fixture
def steel_prices():
    return [
        period("2025-11-24", "2025-12-31", 22.6),
        period("2025-12-01", "2025-12-31", 25.5),
        period("2026-01-01", "2026-01-31", 28),
        period("2026-02-01", None, 30),
    ]


@pytest.mark.parametrize(
    "as_of, expected",
    [
        ("2025-11-20", 0),
        ("2025-12-15", 22.6),
        ("2026-01-15", 28),
        ("2026-02-15", 30),
        ("2027-01-01", 30),
    ],
)
def test_price_on_date(steel_prices, as_of, expected):
    assert resolve_unit_price(steel_prices, date.fromisoformat(as_of)) == pytest.approx(expected)


def test_latest_start_wins_without_date(steel_prices):
    assert resolve_unit_price(steel_prices) == 30


def test_overlap_resolved_by_input_order(steel_prices):
    # The 25.5 period also covers 2025-12-15; listing it first makes it win.
    reordered = [steel_prices[1], steel_prices[0], *steel_prices[2:]]
    assert resolve_unit_price(reordered, date(2025, 12, 15)) == pytest.approx(25.5)


def test_gap_falls_back_to_latest_started_price():
    prices = [
        period("2025-01-01", "2025-01-31", 10),
        period("2025-03-01", None, 12),
    ]
    assert resolve_unit_price(prices, date(2025, 2, 15)) == 10
    assert resolve_unit_price(prices, date(2025, 3, 1)) == 12


def test_empty_history_is_zero():
    assert resolve_unit_price([]) == 0
    assert resolve_unit_price([], date(2025, 1, 1)) == 0


def test_total_price_rounding():
    assert calculate_total_price(3.333, 22.6) == pytest.approx(75.33)
    assert calculate_total_price(None, 22.6) == 0
    assert calculate_total_price(2.0, 0) == 0
