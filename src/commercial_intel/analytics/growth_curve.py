"""Growth curve: revenue per commission period.

A commission period closes on the 22nd: sales on day 23 or later are booked
to the following month.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable

from commercial_intel.analytics.dates import parse_day
from commercial_intel.analytics.records import TransactionRecord

MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
CLOSING_DAY = 23


@dataclass(frozen=True, order=True)
class CommissionPeriod:
    year: int
    month: int  # 1..12

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month:02d}"

    @property
    def label(self) -> str:
        return f"{MONTH_NAMES[self.month - 1]}/{self.year}"

    def next(self) -> CommissionPeriod:
        if self.month == 12:
            return CommissionPeriod(self.year + 1, 1)
        return CommissionPeriod(self.year, self.month + 1)


def commission_period(day: date) -> CommissionPeriod:
    period = CommissionPeriod(day.year, day.month)
    return period.next() if day.day >= CLOSING_DAY else period


@dataclass
class CurvePoint:
    label: str
    year: int
    value: float


@dataclass
class GrowthCurve:
    points: list[CurvePoint] = field(default_factory=list)
    years: list[int] = field(default_factory=list)


def growth_curve(
    records: Iterable[TransactionRecord],
    start: date | None = None,
    end: date | None = None,
) -> GrowthCurve:
    """One point per commission period from *start* to *end*, zero-filled.

    Missing bounds default to the first and last period found in the data.
    Rows without a parseable date are ignored.
    """
    totals: dict[CommissionPeriod, float] = {}
    for record in records:
        day = parse_day(record.order_date)
        if day is None:
            continue
        period = commission_period(day)
        totals[period] = totals.get(period, 0.0) + record.amount

    first = commission_period(start) if start else (min(totals) if totals else None)
    last = commission_period(end) if end else (max(totals) if totals else None)
    if first is None or last is None:
        return GrowthCurve()

    points = []
    period = first
    while period <= last:
        points.append(CurvePoint(label=period.label, year=period.year, value=totals.get(period, 0.0)))
        period = period.next()

    return GrowthCurve(points=points, years=sorted({p.year for p in points}))


def short_currency(value: float) -> str:
    """Compact chart label: ``12345`` → ``"R$ 12k"``."""
    if not math.isfinite(value):
        return ""
    if abs(value) >= 1000:
        return f"R$ {round(value / 1000)}k"
    return f"R$ {round(value)}"
