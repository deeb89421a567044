"""Tests for year-over-year client comparison."""

import pytest

from commercial_intel.analytics.records import TransactionRecord
from commercial_intel.analytics.year_over_year import compare_years, growth_percent, top_growth


def _sale(client, order_date, amount, quantity=1):
    return TransactionRecord(
        order_date=order_date, client=client, city="Curitiba", state="PR",
        category="Pumps", rep="ANA", region="Region 1", quantity=quantity, amount=amount,
    )


class TestGrowthPercent:
    def test_relative_growth(self):
        assert growth_percent(100, 150) == pytest.approx(50)
        assert growth_percent(200, 100) == pytest.approx(-50)

    def test_no_base(self):
        assert growth_percent(0, 10) == 100
        assert growth_percent(0, 0) == 0


class TestCompareYears:
    def test_splits_by_year(self):
        sales = [
            _sale("A", "10/03/2024", 100, quantity=2),
            _sale("A", "10/03/2025", 150, quantity=3),
            _sale("A", "11/03/2025", 50),
            _sale("B", "01/01/2023", 999),
            _sale("B", "bad date", 999),
        ]
        rows = compare_years(sales, 2024, 2025)
        assert [r.client for r in rows] == ["A"]
        row = rows[0]
        assert (row.previous_rows, row.previous_items, row.previous_revenue) == (1, 2, 100)
        assert (row.current_rows, row.current_items, row.current_revenue) == (2, 4, 200)
        assert row.growth_percent == pytest.approx(100)

    def test_sorted_by_current_revenue(self):
        sales = [_sale("small", "01/02/2025", 10), _sale("big", "01/02/2025", 500)]
        assert [r.client for r in compare_years(sales, 2024, 2025)] == ["big", "small"]

    def test_top_growth(self):
        sales = [
            _sale("slow", "01/02/2024", 100), _sale("slow", "01/02/2025", 110),
            _sale("fast", "01/02/2024", 100), _sale("fast", "01/02/2025", 300),
            _sale("down", "01/02/2024", 100), _sale("down", "01/02/2025", 50),
        ]
        growing = top_growth(compare_years(sales, 2024, 2025))
        assert [r.client for r in growing] == ["fast", "slow"]
        assert top_growth(compare_years(sales, 2024, 2025), limit=1)[0].client == "fast"
