"""Sheet rows → typed records.

The Sheets values API returns a list of string rows with the header first
and trailing empty cells omitted.  Each table is loaded into a pandas
DataFrame with a fixed column layout, numeric columns are parsed from the
Brazilian ``1.234,56`` notation, and one immutable record is built per row.
"""

from __future__ import annotations

import dataclasses
import logging
import math
import re
from typing import Any, Callable, Iterable, Sequence

import pandas as pd

from commercial_intel.analytics.records import (
    DemoLoanRecord,
    LeadRecord,
    TransactionRecord,
)

logger = logging.getLogger(__name__)

# Column layouts, in sheet order.
SALES_COLUMNS = [  # A:J
    "order_date", "client", "city", "state", "category", "rep", "region",
    "customer_type", "quantity", "amount",
]
HISTORY_COLUMNS = [  # A:K
    "order_date", "client", "city", "state", "category", "payment_method",
    "invoice", "rep", "region", "quantity", "amount",
]
DEMO_LOAN_COLUMNS = [  # A:I
    "order_date", "client", "category", "rep", "city", "state", "region",
    "quantity", "amount",
]
LEAD_COLUMNS = [  # A:K
    "created_on", "name", "company", "product", "team", "rep", "city",
    "state", "deal_stage", "spend", "avg_ticket",
]

_CURRENCY_NOISE = re.compile(r"[R$\s]")


# ---------------------------------------------------------------------------
# Scalar parsers
# ---------------------------------------------------------------------------


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def parse_number(value: Any) -> float:
    """``"1.234,5"`` → ``1234.5``; dots are thousands separators.  0.0 on failure."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return _finite(float(value))
    text = str(value).strip().replace(".", "").replace(",", ".", 1)
    if not text:
        return 0.0
    try:
        return _finite(float(text))
    except ValueError:
        return 0.0


def parse_currency(value: Any) -> float:
    """``"R$ 1.234,56"`` → ``1234.56``.  0.0 on failure."""
    if isinstance(value, str):
        value = _CURRENCY_NOISE.sub("", value)
    return parse_number(value)


def parse_int(value: Any) -> int:
    """Whole quantity; fractional parts are truncated."""
    return int(parse_number(value))


# ---------------------------------------------------------------------------
# Table normalization
# ---------------------------------------------------------------------------


def to_frame(values: Sequence[Sequence[Any]], columns: list[str]) -> pd.DataFrame:
    """Body rows of *values* as a string DataFrame with exactly *columns*.

    The header row is skipped, short rows are padded with ``""``, extra
    cells are dropped and fully blank rows are removed.
    """
    width = len(columns)
    rows = [
        [("" if cell is None else str(cell).strip()) for cell in list(row)[:width]]
        + [""] * max(0, width - len(row))
        for row in values[1:]
    ]
    df = pd.DataFrame(rows, columns=columns, dtype=str)
    blank = (df == "").all(axis=1)
    if blank.any():
        logger.info("Skipping %d blank rows", int(blank.sum()))
        df = df[~blank]
    return df.reset_index(drop=True)


def _records(
    values: Sequence[Sequence[Any]],
    columns: list[str],
    parsers: dict[str, Callable[[Any], Any]],
    record_cls: type,
) -> list:
    df = to_frame(values, columns)
    for name, parser in parsers.items():
        df[name] = df[name].map(parser)
    return [record_cls(**row) for row in df.to_dict(orient="records")]


def normalize_sales(values: Sequence[Sequence[Any]]) -> list[TransactionRecord]:
    records = _records(
        values,
        SALES_COLUMNS,
        {"quantity": parse_int, "amount": parse_currency},
        TransactionRecord,
    )
    logger.info("Normalized %d sales rows", len(records))
    return records


def normalize_history(values: Sequence[Sequence[Any]]) -> list[TransactionRecord]:
    records = _records(
        values,
        HISTORY_COLUMNS,
        {"quantity": parse_int, "amount": parse_currency},
        TransactionRecord,
    )
    logger.info("Normalized %d history rows", len(records))
    return records


def normalize_demo_loans(values: Sequence[Sequence[Any]]) -> list[DemoLoanRecord]:
    records = _records(
        values,
        DEMO_LOAN_COLUMNS,
        {"quantity": parse_int, "amount": parse_currency},
        DemoLoanRecord,
    )
    logger.info("Normalized %d demo/loan rows", len(records))
    return records


def normalize_leads(values: Sequence[Sequence[Any]]) -> list[LeadRecord]:
    records = _records(
        values,
        LEAD_COLUMNS,
        {"spend": parse_currency, "avg_ticket": parse_currency},
        LeadRecord,
    )
    logger.info("Normalized %d lead rows", len(records))
    return records


def attach_customer_types(
    history: Iterable[TransactionRecord],
    sales: Iterable[TransactionRecord],
) -> list[TransactionRecord]:
    """Copy each client's customer type from the sales table onto history rows.

    The history sheet has no customer-type column; the first non-empty type
    seen for a client in sales wins.
    """
    types: dict[str, str] = {}
    for record in sales:
        if record.client and record.customer_type:
            types.setdefault(record.client, record.customer_type)
    return [
        dataclasses.replace(r, customer_type=types.get(r.client, r.customer_type))
        for r in history
    ]
