"""Recency / frequency / value (RFV) scoring of clients.

Each client with at least one dated purchase gets three 1-5 scores, a
three-digit RFV code, a segment derived from that code, a trend comparing
the last two half-years and a recommended follow-up action.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Sequence

from commercial_intel.analytics.dates import days_between, parse_day, shift_months
from commercial_intel.analytics.records import TransactionRecord


class Segment(str, enum.Enum):
    CHAMPION = "Champion"
    LOYAL = "Loyal"
    NEW = "New"
    AT_RISK = "At Risk"
    HIBERNATING = "Hibernating"
    OTHERS = "Others"


class Trend(str, enum.Enum):
    GROWING = "growing"
    DECLINING = "declining"
    STABLE = "stable"


class Priority(str, enum.Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StatusLight(str, enum.Enum):
    GREEN = "green"
    YELLOW = "yellow"
    RED = "red"


# First matching segment wins.
SEGMENT_CODES: list[tuple[Segment, frozenset[str]]] = [
    (Segment.CHAMPION, frozenset({"555", "554", "544", "545", "454", "455", "445"})),
    (Segment.LOYAL, frozenset({"543", "444", "435", "355", "354", "345", "344", "335"})),
    (Segment.NEW, frozenset({"512", "511", "422", "421", "412", "411", "311"})),
    (Segment.AT_RISK, frozenset({"155", "154", "144", "214", "215", "115", "114", "113"})),
    (Segment.HIBERNATING, frozenset({"255", "151", "141", "131", "121", "111", "152", "142"})),
]

SEGMENT_ACTIONS: dict[Segment, tuple[str, Priority]] = {
    Segment.CHAMPION: ("VIP program and premium products", Priority.HIGH),
    Segment.LOYAL: ("Cross-sell and loyalty", Priority.MEDIUM),
    Segment.NEW: ("Onboarding and follow-up", Priority.MEDIUM),
    Segment.AT_RISK: ("URGENT: reactivation campaign", Priority.HIGH),
    Segment.HIBERNATING: ("Survey and special offer", Priority.LOW),
    Segment.OTHERS: ("Individual review", Priority.LOW),
}

PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


@dataclass
class ClientRecency:
    client: str
    last_purchase: date | None = None
    days_since_purchase: int | None = None
    orders_12m: int = 0
    revenue_12m: float = 0.0
    mean_interval_days: int = 0
    revenue_6m: float = 0.0
    revenue_previous_6m: float = 0.0
    trend: Trend = Trend.STABLE
    recency_score: int | None = None
    frequency_score: int | None = None
    value_score: int | None = None
    rfv_code: str | None = None
    segment: Segment | None = None
    status: StatusLight | None = None
    action: str | None = None
    priority: Priority | None = None
    average_ticket: float = 0.0

    @property
    def is_scored(self) -> bool:
        return self.rfv_code is not None


# ---------------------------------------------------------------------------
# Scoring rules
# ---------------------------------------------------------------------------


def recency_score(days: int) -> int:
    if days <= 30:
        return 5
    if days <= 60:
        return 4
    if days <= 90:
        return 3
    if days <= 180:
        return 2
    return 1


def frequency_score(orders: int) -> int:
    if orders >= 15:
        return 5
    if orders >= 10:
        return 4
    if orders >= 6:
        return 3
    if orders >= 3:
        return 2
    return 1


def value_score(revenue: float) -> int:
    if revenue >= 400_000:
        return 5
    if revenue >= 200_000:
        return 4
    if revenue >= 100_000:
        return 3
    if revenue >= 50_000:
        return 2
    return 1


def segment_for(code: str) -> Segment:
    for segment, codes in SEGMENT_CODES:
        if code in codes:
            return segment
    return Segment.OTHERS


def status_light(days: int) -> StatusLight:
    if days <= 30:
        return StatusLight.GREEN
    if days <= 90:
        return StatusLight.YELLOW
    return StatusLight.RED


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def _score_client(client: str, rows: list[tuple[date, float]], today: date) -> ClientRecency:
    rows.sort(key=lambda r: r[0], reverse=True)
    last = rows[0][0]
    days = days_between(last, today)

    year_cutoff = today - timedelta(days=365)
    half_cutoff = shift_months(today, -6)
    prior_cutoff = shift_months(today, -12)

    last_year = [r for r in rows if r[0] >= year_cutoff]
    order_days = {d for d, _ in last_year}
    revenue = sum(v for _, v in last_year)
    orders = len(order_days)

    revenue_6m = sum(v for d, v in rows if d >= half_cutoff)
    revenue_prev = sum(v for d, v in rows if prior_cutoff <= d < half_cutoff)
    if revenue_6m > revenue_prev:
        trend = Trend.GROWING
    elif revenue_6m < revenue_prev:
        trend = Trend.DECLINING
    else:
        trend = Trend.STABLE

    mean_interval = 0
    if len(last_year) > 1:
        # Rows are sorted, so consecutive gaps sum to the overall span.
        span = (last_year[0][0] - last_year[-1][0]).days
        mean_interval = _round_half_up(span / (len(last_year) - 1))

    r, f, v = recency_score(days), frequency_score(orders), value_score(revenue)
    code = f"{r}{f}{v}"
    segment = segment_for(code)
    action, priority = SEGMENT_ACTIONS[segment]

    return ClientRecency(
        client=client,
        last_purchase=last,
        days_since_purchase=days,
        orders_12m=orders,
        revenue_12m=revenue,
        mean_interval_days=mean_interval,
        revenue_6m=revenue_6m,
        revenue_previous_6m=revenue_prev,
        trend=trend,
        recency_score=r,
        frequency_score=f,
        value_score=v,
        rfv_code=code,
        segment=segment,
        status=status_light(days),
        action=action,
        priority=priority,
        average_ticket=round(revenue / orders, 2) if orders else 0.0,
    )


def score_clients(
    records: Iterable[TransactionRecord],
    reference_date: date | None = None,
) -> list[ClientRecency]:
    """One :class:`ClientRecency` per client, in first-seen order.

    Clients whose rows carry no parseable date are returned unscored
    (``rfv_code`` is ``None``).
    """
    today = reference_date or date.today()
    dated: dict[str, list[tuple[date, float]]] = {}
    for record in records:
        rows = dated.setdefault(record.client or "-", [])
        day = parse_day(record.order_date)
        if day is not None:
            rows.append((day, record.amount))

    results = []
    for client, rows in dated.items():
        if rows:
            results.append(_score_client(client, rows, today))
        else:
            results.append(ClientRecency(client=client))
    return results


def filter_recency(
    rows: Iterable[ClientRecency],
    segments: Sequence[str] = (),
    priorities: Sequence[str] = (),
    trends: Sequence[str] = (),
    score_min: int = 111,
    score_max: int = 555,
    search: str | None = None,
) -> list[ClientRecency]:
    """Narrow scored rows; empty selections mean "any".

    Unscored rows never pass, since they carry no RFV code to range-check.
    """
    needle = (search or "").strip().lower()
    out = []
    for row in rows:
        if not row.is_scored:
            continue
        if needle and needle not in row.client.lower():
            continue
        if segments and row.segment.value not in segments:
            continue
        if priorities and row.priority.value not in priorities:
            continue
        if trends and row.trend.value not in trends:
            continue
        if not score_min <= int(row.rfv_code) <= score_max:
            continue
        out.append(row)
    return out


def sort_by_priority(rows: Iterable[ClientRecency]) -> list[ClientRecency]:
    """Priority desc, then 12-month revenue desc, then days without buying asc."""
    def key(row: ClientRecency):
        days = row.days_since_purchase if row.days_since_purchase is not None else math.inf
        return (-PRIORITY_RANK.get(row.priority, 0), -row.revenue_12m, days)

    return sorted(rows, key=key)
