"""CRM lead status classification and funnel KPIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from commercial_intel.analytics.text import fold

WON = "won"
LOST = "lost"
IN_PROGRESS = "in_progress"
UNDEFINED = "undefined"


def lead_status(deal_stage: str | None) -> str:
    """Classify the free-text deal stage column.

    Matching is by substring, ignoring case and accents:
    ``"Vendida"`` → won, ``"Perdida"`` → lost, ``"Não fechadas"`` or
    ``"Em andamento"`` → in_progress, anything else → undefined.
    """
    stage = fold(deal_stage)
    if "vendida" in stage:
        return WON
    if "perdida" in stage:
        return LOST
    if "nao fechadas" in stage or "em andamento" in stage:
        return IN_PROGRESS
    return UNDEFINED


@dataclass
class LeadKPIs:
    total: int = 0
    won: int = 0
    lost: int = 0
    in_progress: int = 0
    conversion_rate: float = 0.0
    cost_per_lead: float = 0.0
    mean_ticket: float = 0.0
    total_invested: float = 0.0
    cac: float = 0.0


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def lead_kpis(leads: Iterable) -> LeadKPIs:
    """Funnel numbers for a filtered list of leads.

    Cost per lead and mean ticket only average leads with a positive value;
    CAC is total invested over won leads (0 with no wins).
    """
    leads = list(leads)
    if not leads:
        return LeadKPIs()

    statuses = [lead_status(lead.deal_stage) for lead in leads]
    won = statuses.count(WON)
    invested = sum(lead.spend or 0.0 for lead in leads)

    return LeadKPIs(
        total=len(leads),
        won=won,
        lost=statuses.count(LOST),
        in_progress=statuses.count(IN_PROGRESS),
        conversion_rate=round(won / len(leads) * 100, 1),
        cost_per_lead=_mean([lead.spend for lead in leads if (lead.spend or 0) > 0]),
        mean_ticket=_mean([lead.avg_ticket for lead in leads if (lead.avg_ticket or 0) > 0]),
        total_invested=invested,
        cac=invested / won if won else 0.0,
    )


def search_leads(leads: Iterable, term: str | None) -> list:
    """Case-insensitive substring search over name, product, company, rep and city."""
    leads = list(leads)
    needle = (term or "").strip().lower()
    if not needle:
        return leads
    return [
        lead for lead in leads
        if needle in f"{lead.name} {lead.product} {lead.company} {lead.rep} {lead.city}".lower()
    ]
