"""Demonstration / loan equipment routes."""

from datetime import date

from fastapi import APIRouter, Depends, Query

from commercial_intel.action.dependencies import (
    DEMO_LOAN_FIELDS,
    apply_scope,
    filter_options,
    filters_for,
    get_demo_loans,
    get_override_table,
    require_page,
    scope_payload,
)
from commercial_intel.analytics.access_policy import Identity, OverrideTable
from commercial_intel.analytics.demo_loans import days_in_field, demo_loan_summary, search_demo_loans
from commercial_intel.analytics.filters import FilterCriteria
from commercial_intel.analytics.records import DemoLoanRecord

router = APIRouter(tags=["demo-loans"])


@router.get("/demo-loans")
async def demo_loans(
    search: str = Query(default=""),
    identity: Identity = Depends(require_page("demo_loans")),
    criteria: FilterCriteria = Depends(filters_for(DEMO_LOAN_FIELDS)),
    table: OverrideTable = Depends(get_override_table),
    records: list[DemoLoanRecord] = Depends(get_demo_loans),
) -> dict:
    policy, visible = apply_scope(identity, table, records, DEMO_LOAN_FIELDS, criteria)
    today = date.today()
    return {
        "summary": demo_loan_summary(visible, today),
        "items": [
            {**vars(r), "days_in_field": days_in_field(r.order_date, today)}
            for r in search_demo_loans(visible, search)
        ],
        "options": filter_options(records, DEMO_LOAN_FIELDS, policy),
        **scope_payload(policy, criteria),
    }
