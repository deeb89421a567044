"""Home-page alerts: idle TOP clients and fastest year-over-year growth."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable

from commercial_intel.analytics.dates import days_between
from commercial_intel.analytics.pareto import analyze_clients
from commercial_intel.analytics.records import TransactionRecord
from commercial_intel.analytics.year_over_year import ClientYoY, compare_years, top_growth


@dataclass
class InactiveClient:
    client: str
    total_amount: float
    last_order_date: date
    days_without_purchase: int


def inactive_top_clients(
    records: Iterable[TransactionRecord],
    reference_date: date | None = None,
    min_days: int = 90,
    limit: int = 5,
) -> list[InactiveClient]:
    """TOP clients (client mode) with no purchase for *min_days* or more.

    Clients whose last order date is unknown are left out rather than
    reported as infinitely idle.
    """
    today = reference_date or date.today()
    idle = []
    for entity in analyze_clients(records).entities:
        if not entity.is_top or entity.last_order_date is None:
            continue
        days = days_between(entity.last_order_date, today)
        if days >= min_days:
            idle.append(InactiveClient(
                client=entity.key,
                total_amount=entity.total_amount,
                last_order_date=entity.last_order_date,
                days_without_purchase=days,
            ))
    idle.sort(key=lambda c: c.total_amount, reverse=True)
    return idle[:limit]


def growth_alerts(
    records: Iterable[TransactionRecord],
    previous_year: int,
    current_year: int,
    limit: int = 5,
) -> list[ClientYoY]:
    return top_growth(compare_years(records, previous_year, current_year), limit)
