"""Year-over-year comparison of client revenue."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from commercial_intel.analytics.dates import parse_day
from commercial_intel.analytics.records import TransactionRecord


@dataclass
class ClientYoY:
    client: str
    previous_rows: int = 0
    previous_items: float = 0.0
    previous_revenue: float = 0.0
    current_rows: int = 0
    current_items: float = 0.0
    current_revenue: float = 0.0
    growth_percent: float = 0.0


def growth_percent(previous: float, current: float) -> float:
    """Relative growth; 100 when there is no base but the current year sold."""
    if previous > 0:
        return (current - previous) / previous * 100
    return 100.0 if current > 0 else 0.0


def compare_years(
    records: Iterable[TransactionRecord],
    previous_year: int,
    current_year: int,
) -> list[ClientYoY]:
    """Per-client rows, items and revenue for two years, current revenue desc.

    Rows outside both years, or without a parseable date, are ignored.
    """
    clients: dict[str, ClientYoY] = {}
    for record in records:
        day = parse_day(record.order_date)
        if day is None or day.year not in (previous_year, current_year):
            continue
        row = clients.setdefault(record.client, ClientYoY(client=record.client))
        if day.year == previous_year:
            row.previous_rows += 1
            row.previous_items += record.quantity
            row.previous_revenue += record.amount
        else:
            row.current_rows += 1
            row.current_items += record.quantity
            row.current_revenue += record.amount

    for row in clients.values():
        row.growth_percent = growth_percent(row.previous_revenue, row.current_revenue)

    return sorted(clients.values(), key=lambda r: r.current_revenue, reverse=True)


def top_growth(rows: Iterable[ClientYoY], limit: int = 5) -> list[ClientYoY]:
    """Clients with positive growth, fastest first."""
    growing = [r for r in rows if r.growth_percent > 0]
    growing.sort(key=lambda r: r.growth_percent, reverse=True)
    return growing[:limit]
