"""Expense CSV exports → ExpenseRecord lists."""
from __future__ import annotations

import csv
import logging
from pathlib import Path

import pandas as pd

from commercial_intel.analytics.records import FUEL_CATEGORY, ExpenseRecord
from commercial_intel.ingestion.row_normalizer import parse_currency, parse_number

logger = logging.getLogger(__name__)

GENERAL_MIN_COLUMNS = 11
FUEL_MIN_COLUMNS = 10


def read_rows(path: Path | str, min_columns: int) -> pd.DataFrame:
    """Read a headered CSV into a string DataFrame with *min_columns* columns.

    Blank lines are ignored; rows with fewer than *min_columns* fields are
    dropped and counted in a warning.  Extra trailing fields are discarded.
    """
    with open(path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.reader(fh)
        next(reader, None)  # header
        rows = [row for row in reader if any(cell.strip() for cell in row)]

    kept = [[cell.strip() for cell in row[:min_columns]] for row in rows if len(row) >= min_columns]
    dropped = len(rows) - len(kept)
    if dropped:
        logger.warning(
            "Dropped %d of %d rows in %s with fewer than %d columns",
            dropped, len(rows), path, min_columns,
        )
    return pd.DataFrame(kept, columns=range(min_columns), dtype=str)


def load_general_expenses(path: Path | str) -> list[ExpenseRecord]:
    """General expenses: meals, hotel, car wash and the like.

    Layout: 0 date, 1 rep, 2 city, 3 cost type, 4 sector, 5 category,
    6 receipt, 7 quantity, 8 unit price, 9 total, 10 region.
    """
    df = read_rows(path, GENERAL_MIN_COLUMNS)
    records = [
        ExpenseRecord(
            expense_date=row[0],
            rep=row[1],
            city=row[2],
            category=row[5],
            receipt_url=row[6],
            quantity=parse_number(row[7]),
            unit_price=parse_currency(row[8]),
            total=parse_currency(row[9]),
            region=row[10],
        )
        for row in df.itertuples(index=False, name=None)
    ]
    logger.info("Loaded %d general expenses from %s", len(records), path)
    return records


def load_fuel_expenses(path: Path | str) -> list[ExpenseRecord]:
    """Fuel expenses, tagged with the fuel category.

    Layout: 0 date, 1 rep, 2 city, 3 odometer, 4 fuel type, 5 receipt,
    6 litres, 7 unit price, 8 total, 9 region.
    """
    df = read_rows(path, FUEL_MIN_COLUMNS)
    records = [
        ExpenseRecord(
            expense_date=row[0],
            rep=row[1],
            city=row[2],
            category=FUEL_CATEGORY,
            receipt_url=row[5],
            quantity=parse_number(row[6]),
            unit_price=parse_currency(row[7]),
            total=parse_currency(row[8]),
            region=row[9],
            kind="fuel",
            odometer=parse_number(row[3]),
            fuel_type=row[4],
        )
        for row in df.itertuples(index=False, name=None)
    ]
    logger.info("Loaded %d fuel expenses from %s", len(records), path)
    return records
