"""Aggregator: group transaction rows into per-entity summaries.

Pure functions.  A summary is rebuilt from scratch on every analysis run from
the currently filtered records; nothing here is cached or patched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Iterable

from commercial_intel.analytics.dates import parse_day
from commercial_intel.analytics.records import TransactionRecord

NOT_AVAILABLE = "N/A"


@dataclass
class GroupSummary:
    """Running totals for one grouping key (a client or a category)."""

    key: str
    total_amount: float = 0.0
    order_count: int = 0
    item_count: int = 0
    last_order_date: date | None = None
    city: str = ""
    state: str = ""
    rep_frequency: dict[str, int] = field(default_factory=dict)
    category_frequency: dict[str, int] = field(default_factory=dict)


def by_client(record: TransactionRecord) -> str:
    return record.client


def by_category(record: TransactionRecord) -> str:
    return record.category or NOT_AVAILABLE


def _count(counter: dict[str, int], value: str | None) -> None:
    if not value:
        return
    counter[value] = counter.get(value, 0) + 1


def aggregate(
    records: Iterable[TransactionRecord],
    key_fn: Callable[[TransactionRecord], str] = by_client,
) -> dict[str, GroupSummary]:
    """Group *records* by ``key_fn(record)``.

    Amounts and quantities are summed unconditionally, negative amounts
    included (trade-in credits reduce a client's total).  Rows whose date
    does not parse still count towards the totals but never move
    ``last_order_date``.

    Args:
        records: Any iterable of records, possibly empty.
        key_fn: Grouping key extractor, e.g. :func:`by_client`.

    Returns:
        Mapping of key to :class:`GroupSummary`, in first-seen key order.
    """
    groups: dict[str, GroupSummary] = {}
    for record in records:
        key = key_fn(record)
        summary = groups.get(key)
        if summary is None:
            summary = GroupSummary(key=key, city=record.city, state=record.state)
            groups[key] = summary

        summary.total_amount += record.amount
        summary.order_count += 1
        summary.item_count += record.quantity

        day = parse_day(record.order_date)
        if day is not None and (summary.last_order_date is None or day > summary.last_order_date):
            summary.last_order_date = day

        _count(summary.rep_frequency, record.rep)
        _count(summary.category_frequency, record.category)

    return groups


def most_frequent(counter: dict[str, int]) -> str:
    """Highest-count key; ties go to the first key encountered.

    Returns ``"N/A"`` for an empty table.
    """
    best = ""
    best_count = 0
    for key, count in counter.items():
        if count > best_count:
            best, best_count = key, count
    return best or NOT_AVAILABLE
