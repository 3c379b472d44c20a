"""
Prorated subscription cost over a month window.

A subscription is active from its start month through its end month
(inclusive). An open-ended subscription (no end month) is treated as active
through the upper bound of the window being evaluated, not to infinity.

Each candidate contributes price * overlap_months; the total is an integer
sum with no fractional months.
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol

from app.domain.month import normalize_to_month, months_inclusive


class SubscriptionPeriod(Protocol):
    price: int
    start_date: date
    end_date: date | None


@dataclass(frozen=True)
class MonthWindow:
    """Closed window [from_month, to_month], both month-aligned."""
    from_month: date
    to_month: date

    @classmethod
    def of(cls, from_date: date, to_date: date) -> "MonthWindow":
        from_m = normalize_to_month(from_date)
        to_m = normalize_to_month(to_date)
        if from_m > to_m:
            raise ValueError("window start must not be after window end")
        return cls(from_m, to_m)

    @property
    def months(self) -> int:
        return months_inclusive(self.from_month, self.to_month)


def end_month_or(sub: SubscriptionPeriod, fallback: date) -> date:
    if sub.end_date is None:
        return fallback
    return normalize_to_month(sub.end_date)


def is_candidate(sub: SubscriptionPeriod, window: MonthWindow) -> bool:
    start_m = normalize_to_month(sub.start_date)
    return (
        start_m <= window.to_month
        and end_month_or(sub, window.to_month) >= window.from_month
    )


def overlap_months(sub: SubscriptionPeriod, window: MonthWindow) -> int:
    """
    Inclusive number of months the subscription shares with the window.

    Rows with end before start (or outside the window) yield 0.
    """
    overlap_start = max(normalize_to_month(sub.start_date), window.from_month)
    overlap_end = min(end_month_or(sub, window.to_month), window.to_month)
    return months_inclusive(overlap_start, overlap_end)


def contribution(sub: SubscriptionPeriod, window: MonthWindow) -> int:
    return sub.price * overlap_months(sub, window)


def total_for_period(subscriptions: Iterable[SubscriptionPeriod], window: MonthWindow) -> int:
    """Sum of contributions of every candidate in `subscriptions`."""
    return sum(
        contribution(sub, window)
        for sub in subscriptions
        if is_candidate(sub, window)
    )
