"""Field-expense routes."""

import logging
from dataclasses import replace

from fastapi import APIRouter, Depends

from commercial_intel.action.dependencies import (
    EXPENSE_FIELDS,
    apply_scope,
    filters_for,
    get_expenses,
    get_override_table,
    require_page,
    scope_payload,
)
from commercial_intel.analytics.access_policy import (
    Identity,
    OverrideTable,
    rep_options,
    scoped_records,
)
from commercial_intel.analytics.expenses import (
    expense_options,
    expense_summary,
    fuel_summary,
    totals_by,
)
from commercial_intel.analytics.filters import FilterCriteria
from commercial_intel.analytics.records import ExpenseRecord

logger = logging.getLogger(__name__)

router = APIRouter(tags=["expenses"])


@router.get("/expenses")
async def expenses(
    identity: Identity = Depends(require_page("expenses")),
    criteria: FilterCriteria = Depends(filters_for(EXPENSE_FIELDS)),
    table: OverrideTable = Depends(get_override_table),
    data: tuple[list[ExpenseRecord], list[ExpenseRecord]] = Depends(get_expenses),
) -> dict:
    """General and fuel expenses under one set of filters."""
    general, fuel = data
    policy, visible = apply_scope(identity, table, general + fuel, EXPENSE_FIELDS, criteria)
    visible_general = [e for e in visible if e.kind == "general"]
    visible_fuel = [e for e in visible if e.kind == "fuel"]
    locked = scoped_records(general + fuel, replace(policy, seeds=FilterCriteria()))
    options = expense_options(
        [e for e in locked if e.kind == "general"],
        [e for e in locked if e.kind == "fuel"],
    )
    options["rep"] = rep_options(policy, options["rep"])
    return {
        "summary": expense_summary(visible_general),
        "fuel_summary": fuel_summary(visible_fuel),
        "by_rep": totals_by(visible, "rep"),
        "by_region": totals_by(visible, "region"),
        "by_category": totals_by(visible, "category"),
        "general": visible_general,
        "fuel": visible_fuel,
        "options": options,
        **scope_payload(policy, criteria),
    }
