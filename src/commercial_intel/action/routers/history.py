"""Sales-history routes: recency scoring, year over year, growth curve, alerts."""

import logging

from fastapi import APIRouter, Depends, Query

from commercial_intel.action.dependencies import (
    HISTORY_FIELDS,
    SALES_FIELDS,
    apply_scope,
    filter_options,
    filters_for,
    get_history,
    get_override_table,
    get_sales,
    require_page,
    scope_payload,
)
from commercial_intel.analytics.access_policy import Identity, OverrideTable
from commercial_intel.analytics.alerts import growth_alerts, inactive_top_clients
from commercial_intel.analytics.filters import FilterCriteria
from commercial_intel.analytics.growth_curve import growth_curve, short_currency
from commercial_intel.analytics.recency import filter_recency, score_clients, sort_by_priority
from commercial_intel.analytics.records import TransactionRecord
from commercial_intel.analytics.year_over_year import compare_years, top_growth
from config.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["history"])

_history_filters = filters_for(HISTORY_FIELDS)


@router.get("/recency")
async def recency(
    segment: list[str] = Query(default=[]),
    priority: list[str] = Query(default=[]),
    trend: list[str] = Query(default=[]),
    score_min: int = Query(default=111, ge=111, le=555),
    score_max: int = Query(default=555, ge=111, le=555),
    search: str = Query(default=""),
    identity: Identity = Depends(require_page("recency")),
    criteria: FilterCriteria = Depends(_history_filters),
    table: OverrideTable = Depends(get_override_table),
    history: list[TransactionRecord] = Depends(get_history),
) -> dict:
    """RFV scores per client, highest priority first."""
    policy, visible = apply_scope(identity, table, history, HISTORY_FIELDS, criteria)
    scored = score_clients(visible)
    rows = filter_recency(scored, segment, priority, trend, score_min, score_max, search)
    return {
        "clients": sort_by_priority(rows),
        "unscored": [r.client for r in scored if not r.is_scored],
        "options": filter_options(history, HISTORY_FIELDS, policy),
        **scope_payload(policy, criteria),
    }


@router.get("/year-over-year")
async def year_over_year(
    previous_year: int | None = Query(default=None),
    current_year: int | None = Query(default=None),
    identity: Identity = Depends(require_page("year_over_year")),
    criteria: FilterCriteria = Depends(_history_filters),
    table: OverrideTable = Depends(get_override_table),
    history: list[TransactionRecord] = Depends(get_history),
) -> dict:
    previous_year = previous_year or settings.previous_year
    current_year = current_year or settings.current_year
    policy, visible = apply_scope(identity, table, history, HISTORY_FIELDS, criteria)
    rows = compare_years(visible, previous_year, current_year)
    return {
        "previous_year": previous_year,
        "current_year": current_year,
        "clients": rows,
        "top_growth": top_growth(rows),
        "options": filter_options(history, HISTORY_FIELDS, policy),
        **scope_payload(policy, criteria),
    }


@router.get("/growth-curve")
async def growth_curve_route(
    identity: Identity = Depends(require_page("growth_curve")),
    criteria: FilterCriteria = Depends(_history_filters),
    table: OverrideTable = Depends(get_override_table),
    history: list[TransactionRecord] = Depends(get_history),
) -> dict:
    """Revenue per commission period across the selected date range."""
    policy, visible = apply_scope(identity, table, history, HISTORY_FIELDS, criteria)
    curve = growth_curve(visible, criteria.start, criteria.end)
    return {
        "points": [{**vars(p), "display": short_currency(p.value)} for p in curve.points],
        "years": curve.years,
        "options": filter_options(history, HISTORY_FIELDS, policy),
        **scope_payload(policy, criteria),
    }


@router.get("/alerts")
async def alerts(
    identity: Identity = Depends(require_page("home")),
    table: OverrideTable = Depends(get_override_table),
    sales: list[TransactionRecord] = Depends(get_sales),
    history: list[TransactionRecord] = Depends(get_history),
) -> dict:
    """Idle TOP clients and the fastest-growing clients for the home page."""
    _, visible_sales = apply_scope(identity, table, sales, SALES_FIELDS, FilterCriteria())
    _, visible_history = apply_scope(identity, table, history, HISTORY_FIELDS, FilterCriteria())
    return {
        "inactive_top_clients": inactive_top_clients(
            visible_sales, min_days=settings.inactivity_days
        ),
        "top_growth": growth_alerts(
            visible_history, settings.previous_year, settings.current_year
        ),
    }
