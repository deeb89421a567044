"""Typed, immutable records produced by the row normalizer.

One record per source row.  Records are never mutated after ingestion; every
analysis run works on the session's ordered sequence of them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import ClassVar

from commercial_intel.analytics.dates import parse_day
from commercial_intel.analytics.leads import lead_status


@dataclass(frozen=True)
class TransactionRecord:
    """A sales (or sales-history) line."""

    DATE_FIELD: ClassVar[str] = "order_date"

    order_date: str
    client: str
    city: str
    state: str
    category: str
    rep: str
    region: str
    quantity: int
    amount: float
    customer_type: str | None = None
    payment_method: str | None = None
    invoice: str | None = None

    @property
    def day(self) -> date | None:
        return parse_day(self.order_date)


@dataclass(frozen=True)
class DemoLoanRecord:
    """Equipment placed at a client for demonstration or on loan."""

    DATE_FIELD: ClassVar[str] = "order_date"

    order_date: str
    client: str
    category: str
    rep: str
    city: str
    state: str
    region: str
    quantity: int
    amount: float


@dataclass(frozen=True)
class LeadRecord:
    """A CRM lead."""

    DATE_FIELD: ClassVar[str] = "created_on"

    created_on: str
    name: str
    company: str
    product: str
    team: str
    rep: str
    city: str
    state: str
    deal_stage: str
    spend: float
    avg_ticket: float

    @property
    def status(self) -> str:
        return lead_status(self.deal_stage)


@dataclass(frozen=True)
class ExpenseRecord:
    """A field expense: general (meals, hotel, ...) or fuel."""

    DATE_FIELD: ClassVar[str] = "expense_date"

    expense_date: str
    rep: str
    city: str
    category: str
    region: str
    receipt_url: str
    quantity: float
    unit_price: float
    total: float
    kind: str = "general"
    odometer: float | None = None
    fuel_type: str | None = None


FUEL_CATEGORY = "Fuel"


def record_day(record) -> date | None:
    """Parsed date of any record type, via its ``DATE_FIELD``."""
    return parse_day(getattr(record, record.DATE_FIELD, None))
