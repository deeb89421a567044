"""Demonstration and loan equipment placed at clients."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from commercial_intel.analytics.dates import days_between, parse_day
from commercial_intel.analytics.records import DemoLoanRecord


@dataclass
class DemoLoanSummary:
    item_count: int = 0
    total_value: float = 0.0
    average_value: float = 0.0
    active_regions: int = 0
    clients: int = 0
    mean_days_in_field: float = 0.0


def days_in_field(order_date: str, reference_date: date | None = None) -> int:
    """Whole days since placement; 0 for unparseable or future dates."""
    day = parse_day(order_date)
    if day is None:
        return 0
    return max(0, days_between(day, reference_date or date.today()))


def demo_loan_summary(
    records: Iterable[DemoLoanRecord],
    reference_date: date | None = None,
) -> DemoLoanSummary:
    records = list(records)
    if not records:
        return DemoLoanSummary()
    today = reference_date or date.today()
    total = sum(r.amount for r in records)
    days = [days_in_field(r.order_date, today) for r in records]
    return DemoLoanSummary(
        item_count=len(records),
        total_value=total,
        average_value=total / len(records),
        active_regions=len({r.region for r in records if r.region}),
        clients=len({r.client for r in records if r.client}),
        mean_days_in_field=sum(days) / len(days),
    )


def search_demo_loans(records: Iterable[DemoLoanRecord], term: str | None) -> list[DemoLoanRecord]:
    """Case-insensitive substring search over client, category, rep and location."""
    records = list(records)
    needle = (term or "").strip().lower()
    if not needle:
        return records
    return [
        r for r in records
        if needle in f"{r.client} {r.category} {r.rep} {r.city} {r.state}".lower()
    ]
