"""Field-expense summaries for general and fuel expenses.

Fuel rows carry the ``Fuel`` category from ingestion, so both kinds go
through the same filter engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from commercial_intel.analytics.records import FUEL_CATEGORY, ExpenseRecord

MEAL_CATEGORY = "Alimentação"
HOTEL_CATEGORY = "Hotel"
CAR_WASH_CATEGORY = "Lava Car"


@dataclass
class ExpenseSummary:
    grand_total: float = 0.0
    meal_average: float = 0.0
    hotel_average: float = 0.0
    car_wash_count: int = 0


@dataclass
class FuelSummary:
    total_litres: float = 0.0
    total_cost: float = 0.0
    mean_price_per_litre: float = 0.0


def _average_total(expenses: list[ExpenseRecord], category: str) -> float:
    matched = [e.total for e in expenses if e.category == category]
    return sum(matched) / len(matched) if matched else 0.0


def expense_summary(
    expenses: Iterable[ExpenseRecord],
    meal_category: str = MEAL_CATEGORY,
    hotel_category: str = HOTEL_CATEGORY,
    car_wash_category: str = CAR_WASH_CATEGORY,
) -> ExpenseSummary:
    expenses = list(expenses)
    return ExpenseSummary(
        grand_total=sum(e.total for e in expenses),
        meal_average=_average_total(expenses, meal_category),
        hotel_average=_average_total(expenses, hotel_category),
        car_wash_count=sum(1 for e in expenses if e.category == car_wash_category),
    )


def fuel_summary(expenses: Iterable[ExpenseRecord]) -> FuelSummary:
    """Litres are read from ``quantity``; the price is cost over litres."""
    expenses = list(expenses)
    litres = sum(e.quantity for e in expenses)
    cost = sum(e.total for e in expenses)
    return FuelSummary(
        total_litres=litres,
        total_cost=cost,
        mean_price_per_litre=cost / litres if litres > 0 else 0.0,
    )


def totals_by(expenses: Iterable[ExpenseRecord], field_name: str) -> list[tuple[str, float]]:
    """``(value, total)`` pairs per distinct *field_name*, largest first."""
    totals: dict[str, float] = {}
    for expense in expenses:
        key = getattr(expense, field_name, "") or ""
        totals[key] = totals.get(key, 0.0) + expense.total
    return sorted(totals.items(), key=lambda item: (-item[1], item[0]))


def expense_options(
    general: Iterable[ExpenseRecord],
    fuel: Iterable[ExpenseRecord],
) -> dict[str, list[str]]:
    """Filter choices across both expense kinds."""
    general, fuel = list(general), list(fuel)
    both = general + fuel

    def unique(field_name: str, rows: list[ExpenseRecord]) -> list[str]:
        return sorted({getattr(r, field_name) for r in rows if getattr(r, field_name)})

    categories = set(unique("category", general))
    if fuel:
        categories.add(FUEL_CATEGORY)
    return {
        "rep": unique("rep", both),
        "region": unique("region", both),
        "city": unique("city", both),
        "category": sorted(categories),
    }
