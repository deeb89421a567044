"""Initial filter state per page."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from commercial_intel.action.dependencies import (
    DEMO_LOAN_FIELDS,
    EXPENSE_FIELDS,
    HISTORY_FIELDS,
    LEAD_FIELDS,
    SALES_FIELDS,
    filter_options,
    get_demo_loans,
    get_expenses,
    get_history,
    get_identity,
    get_leads,
    get_override_table,
    get_sales,
    get_sheets_client,
    policy_for,
)
from commercial_intel.analytics.access_policy import Identity, OverrideTable, can_access
from commercial_intel.ingestion.sheets_client import SheetsClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["filters"])

# page → (dataset, filterable fields)
PAGE_DATASETS = {
    "home": ("sales", SALES_FIELDS),
    "pareto_clients": ("sales", SALES_FIELDS),
    "pareto_products": ("sales", SALES_FIELDS),
    "recency": ("history", HISTORY_FIELDS),
    "year_over_year": ("history", HISTORY_FIELDS),
    "growth_curve": ("history", HISTORY_FIELDS),
    "history": ("history", HISTORY_FIELDS),
    "demo_loans": ("demo_loans", DEMO_LOAN_FIELDS),
    "leads": ("leads", LEAD_FIELDS),
    "expenses": ("expenses", EXPENSE_FIELDS),
}


async def _load(dataset: str, client: SheetsClient) -> list:
    if dataset == "sales":
        return await get_sales(client)
    if dataset == "history":
        return await get_history(client)
    if dataset == "demo_loans":
        return await get_demo_loans(client)
    if dataset == "leads":
        return await get_leads(client)
    general, fuel = get_expenses()
    return general + fuel


@router.get("/filters/initial")
async def initial_filters(
    page: str = Query(...),
    identity: Identity = Depends(get_identity),
    table: OverrideTable = Depends(get_override_table),
    client: SheetsClient = Depends(get_sheets_client),
) -> dict:
    """Filter form state on first load and after "clear filters".

    Locked fields are pre-filled and reported so the form can disable them.
    """
    if page not in PAGE_DATASETS:
        raise HTTPException(status_code=404, detail=f"Unknown page: {page}")
    if not can_access(identity, page):
        raise HTTPException(status_code=403, detail=f"Role '{identity.role.value}' cannot access '{page}'.")

    dataset, fields = PAGE_DATASETS[page]
    records = await _load(dataset, client)
    policy = policy_for(identity, table, records, fields)
    return {
        "page": page,
        "filters": policy.criteria.to_dict(),
        "locked": sorted(policy.locks.fields),
        "options": filter_options(records, fields, policy),
    }
