"""Pick the unit price in force on a given date from a material's price history."""

from datetime import date
from typing import Optional, Protocol, Sequence


class PricePeriod(Protocol):
    unit_price: float
    effective_start_date: date
    effective_end_date: Optional[date]


def _covers(period: PricePeriod, target: date) -> bool:
    if period.effective_start_date > target:
        return False
    return period.effective_end_date is None or period.effective_end_date >= target


def _latest_started(periods: Sequence[PricePeriod]) -> PricePeriod:
    # max() keeps the first of equal keys, so ties fall back to input order.
    return max(periods, key=lambda p: p.effective_start_date)


def resolve_unit_price(prices: Sequence[PricePeriod], as_of: Optional[date] = None) -> float:
    """Return the applicable unit price, or 0 when none applies.

    Without ``as_of`` the most recently started price wins. With a date, the
    first period (in input order) whose window covers it wins; overlapping
    periods are therefore resolved by the caller's ordering. When no window
    covers the date, the latest price that started on or before it is treated
    as still in force.
    """
    if not prices:
        return 0
    if as_of is None:
        return _latest_started(prices).unit_price

    for period in prices:
        if _covers(period, as_of):
            return period.unit_price

    started = [p for p in prices if p.effective_start_date <= as_of]
    if not started:
        return 0
    return _latest_started(started).unit_price


def calculate_total_price(total_weight: Optional[float], unit_price: Optional[float]) -> float:
    if not total_weight or not unit_price:
        return 0
    return round(total_weight * unit_price, 2)
