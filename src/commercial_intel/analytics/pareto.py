"""Pareto classification: split entities into the TOP few and the REST.

Pure functions for ranking grouped summaries, computing individual and
cumulative share, and labelling each entity.  Two boundary policies are
supported as distinct modes because existing reports depend on both:

* ``ParetoMode.CLIENT``: an entity is TOP when its own cumulative share is
  at or below the threshold, so the entity that crosses the threshold is REST.
* ``ParetoMode.PRODUCT``: entities are TOP until the cumulative share first
  reaches the threshold; the crossing entity itself is TOP.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from commercial_intel.analytics.aggregator import (
    GroupSummary,
    aggregate,
    by_category,
    by_client,
    most_frequent,
)
from commercial_intel.analytics.filters import FilterCriteria
from commercial_intel.analytics.records import TransactionRecord

DEFAULT_THRESHOLD = 80.0
ALL_CATEGORIES = "All"


class ParetoMode(str, enum.Enum):
    CLIENT = "client"
    PRODUCT = "product"


class Classification(str, enum.Enum):
    TOP = "TOP"
    REST = "REST"


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class ClassifiedEntity:
    """One ranked entity in the Pareto table."""

    key: str
    total_amount: float
    percent_individual: float
    percent_cumulative: float
    classification: Classification
    last_order_date: date | None
    order_count: int
    item_count: int
    principal_rep: str
    principal_category: str
    city: str = ""
    state: str = ""

    @property
    def is_top(self) -> bool:
        return self.classification is Classification.TOP


@dataclass
class ParetoResult:
    """Complete Pareto classification result."""

    entities: list[ClassifiedEntity] = field(default_factory=list)
    total_value: float = 0.0
    total_groups: int = 0
    top_count: int = 0
    top_percentage: float = 0.0
    mode: ParetoMode = ParetoMode.CLIENT
    total_items: float = 0.0

    def metrics(self) -> dict:
        return {
            "total_value": self.total_value,
            "top_count": self.top_count,
            "top_percentage": self.top_percentage,
            "total_groups": self.total_groups,
            "total_items": self.total_items,
        }


@dataclass
class ChartPoint:
    """Chart-ready projection of a classified entity."""

    label: str
    value: float
    percent_cumulative: float
    percent_individual: float


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _ranked(summaries: Mapping[str, GroupSummary]) -> list[GroupSummary]:
    # Equal totals fall back to key order so reruns are reproducible.
    return sorted(summaries.values(), key=lambda s: (-s.total_amount, s.key))


def classify(
    summaries: Mapping[str, GroupSummary],
    mode: ParetoMode = ParetoMode.CLIENT,
    threshold: float = DEFAULT_THRESHOLD,
) -> ParetoResult:
    """Rank summaries by total and label each TOP or REST.

    Args:
        summaries: Output of :func:`~commercial_intel.analytics.aggregator.aggregate`.
        mode: Boundary policy, see module docstring.
        threshold: Cumulative percentage that closes the TOP bucket.

    Returns:
        ParetoResult.  An empty input, or one whose totals sum to zero,
        yields an empty entity list instead of NaN percentages.
    """
    if not summaries:
        return ParetoResult(mode=mode)

    ranked = _ranked(summaries)
    total_value = sum(s.total_amount for s in ranked)
    if total_value == 0:
        return ParetoResult(total_groups=len(ranked), mode=mode)

    entities: list[ClassifiedEntity] = []
    cumulative = 0.0
    crossed = False
    for summary in ranked:
        cumulative += summary.total_amount
        pct_individual = summary.total_amount / total_value * 100
        pct_cumulative = cumulative / total_value * 100

        if mode is ParetoMode.CLIENT:
            is_top = pct_cumulative <= threshold
        else:
            is_top = not crossed
            if not crossed and pct_cumulative >= threshold:
                crossed = True

        entities.append(ClassifiedEntity(
            key=summary.key,
            total_amount=summary.total_amount,
            percent_individual=pct_individual,
            percent_cumulative=pct_cumulative,
            classification=Classification.TOP if is_top else Classification.REST,
            last_order_date=summary.last_order_date,
            order_count=summary.order_count,
            item_count=summary.item_count,
            principal_rep=most_frequent(summary.rep_frequency),
            principal_category=most_frequent(summary.category_frequency),
            city=summary.city,
            state=summary.state,
        ))

    top = [e for e in entities if e.is_top]
    top_value = sum(e.total_amount for e in top)

    return ParetoResult(
        entities=entities,
        total_value=total_value,
        total_groups=len(entities),
        top_count=len(top),
        top_percentage=top_value / total_value * 100,
        mode=mode,
    )


def truncate_label(name: str, max_length: int = 15) -> str:
    if len(name) <= max_length:
        return name
    return name[: max_length - 3] + "..."


def chart_projection(
    entities: Iterable[ClassifiedEntity],
    limit: int = 20,
    max_label: int = 15,
) -> list[ChartPoint]:
    """First *limit* entities with labels cut to *max_label* characters."""
    points = []
    for entity in list(entities)[:limit]:
        points.append(ChartPoint(
            label=truncate_label(entity.key, max_label),
            value=entity.total_amount,
            percent_cumulative=entity.percent_cumulative,
            percent_individual=entity.percent_individual,
        ))
    return points


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


def analyze_clients(
    records: Iterable[TransactionRecord],
    criteria: FilterCriteria | None = None,
    threshold: float = DEFAULT_THRESHOLD,
) -> ParetoResult:
    """Client-axis Pareto over already-filtered records.

    The principal category is only meaningful when the user narrowed the
    category filter; otherwise it reads ``"All"``.
    """
    result = classify(aggregate(records, by_client), ParetoMode.CLIENT, threshold)
    if criteria is None or not criteria.constrains("category"):
        for entity in result.entities:
            entity.principal_category = ALL_CATEGORIES
    return result


def analyze_products(
    records: Iterable[TransactionRecord],
    threshold: float = DEFAULT_THRESHOLD,
) -> ParetoResult:
    """Category-axis Pareto with the sticky crossing boundary."""
    records = list(records)
    result = classify(aggregate(records, by_category), ParetoMode.PRODUCT, threshold)
    result.total_items = sum(r.quantity for r in records)
    return result


def concentration_summary(result: ParetoResult, noun: str = "clients") -> str:
    """One-line description of the TOP bucket."""
    if not result.entities:
        return f"No {noun} with sales in the selected period."
    share = result.top_count / result.total_groups * 100
    return (
        f"{result.top_count} of {result.total_groups} {noun} ({share:.0f}%) "
        f"account for {result.top_percentage:.1f}% of total sales "
        f"({result.total_value:,.2f})."
    )
