"""Tabular export to CSV and to an Excel-readable HTML table."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

import pandas as pd

from commercial_intel.analytics.dates import format_day
from commercial_intel.analytics.pareto import ClassifiedEntity

BOM = "\ufeff"


@dataclass(frozen=True)
class ExportColumn:
    label: str
    value: Callable[[Any], Any]


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def _frame(rows: Iterable[Any], columns: Sequence[ExportColumn]) -> pd.DataFrame:
    data = [[_cell(col.value(row)) for col in columns] for row in rows]
    return pd.DataFrame(data, columns=[col.label for col in columns], dtype=str)


def to_csv(rows: Iterable[Any], columns: Sequence[ExportColumn]) -> str:
    """Comma separated, minimal quoting, prefixed with a UTF-8 BOM for Excel."""
    body = _frame(rows, columns).to_csv(index=False, lineterminator="\n")
    return BOM + body.rstrip("\n")


def to_xls(rows: Iterable[Any], columns: Sequence[ExportColumn]) -> str:
    """HTML table served as ``application/vnd.ms-excel``; cells are escaped."""
    table = _frame(rows, columns).to_html(index=False, escape=True, border=1)
    return (
        '<!DOCTYPE html><html><head><meta charset="UTF-8"></head><body>'
        f"{table}</body></html>"
    )


def money(value: float) -> str:
    return f"{value:.2f}"


CLIENT_COLUMNS = [
    ExportColumn("Client", lambda e: e.key),
    ExportColumn("City", lambda e: e.city),
    ExportColumn("State", lambda e: e.state),
    ExportColumn("Total Sales", lambda e: money(e.total_amount)),
    ExportColumn("% Individual", lambda e: money(e.percent_individual)),
    ExportColumn("% Cumulative", lambda e: money(e.percent_cumulative)),
    ExportColumn("Classification", lambda e: e.classification.value),
    ExportColumn("Last Order", lambda e: format_day(e.last_order_date)),
    ExportColumn("Orders", lambda e: e.order_count),
    ExportColumn("Items", lambda e: e.item_count),
    ExportColumn("Principal Rep", lambda e: e.principal_rep),
    ExportColumn("Principal Category", lambda e: e.principal_category),
]

PRODUCT_COLUMNS = [
    ExportColumn("Category", lambda e: e.key),
    ExportColumn("Total Sales", lambda e: money(e.total_amount)),
    ExportColumn("% Individual", lambda e: money(e.percent_individual)),
    ExportColumn("% Cumulative", lambda e: money(e.percent_cumulative)),
    ExportColumn("Classification", lambda e: e.classification.value),
    ExportColumn("Orders", lambda e: e.order_count),
    ExportColumn("Items", lambda e: e.item_count),
]


def export_entities(
    entities: Iterable[ClassifiedEntity],
    fmt: str = "csv",
    columns: Sequence[ExportColumn] = CLIENT_COLUMNS,
) -> str:
    if fmt == "csv":
        return to_csv(entities, columns)
    if fmt == "xls":
        return to_xls(entities, columns)
    raise ValueError(f"Unsupported export format: {fmt}")
