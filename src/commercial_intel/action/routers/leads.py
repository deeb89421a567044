"""CRM lead routes."""

import logging

from fastapi import APIRouter, Depends, Query

from commercial_intel.action.dependencies import (
    LEAD_FIELDS,
    apply_scope,
    filter_options,
    filters_for,
    get_leads,
    get_override_table,
    require_page,
    scope_payload,
)
from commercial_intel.analytics.access_policy import Identity, OverrideTable
from commercial_intel.analytics.filters import FilterCriteria
from commercial_intel.analytics.leads import lead_kpis, search_leads
from commercial_intel.analytics.records import LeadRecord

logger = logging.getLogger(__name__)

router = APIRouter(tags=["leads"])


def _lead_dict(lead: LeadRecord) -> dict:
    return {
        "created_on": lead.created_on,
        "name": lead.name,
        "company": lead.company,
        "product": lead.product,
        "team": lead.team,
        "rep": lead.rep,
        "city": lead.city,
        "state": lead.state,
        "deal_stage": lead.deal_stage,
        "status": lead.status,
        "spend": lead.spend,
        "avg_ticket": lead.avg_ticket,
    }


@router.get("/leads")
async def leads(
    search: str = Query(default=""),
    identity: Identity = Depends(require_page("leads")),
    criteria: FilterCriteria = Depends(filters_for(LEAD_FIELDS)),
    table: OverrideTable = Depends(get_override_table),
    records: list[LeadRecord] = Depends(get_leads),
) -> dict:
    """Filtered leads with funnel KPIs computed over the same rows."""
    policy, visible = apply_scope(identity, table, records, LEAD_FIELDS, criteria)
    visible = search_leads(visible, search)
    return {
        "kpis": lead_kpis(visible),
        "leads": [_lead_dict(lead) for lead in visible],
        "options": filter_options(records, LEAD_FIELDS, policy),
        **scope_payload(policy, criteria),
    }
