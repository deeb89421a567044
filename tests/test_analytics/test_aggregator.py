"""Tests for grouping transaction rows into summaries."""

from datetime import date

from commercial_intel.analytics.aggregator import (
    NOT_AVAILABLE,
    aggregate,
    by_category,
    most_frequent,
)
from commercial_intel.analytics.records import TransactionRecord


def _sale(client="ACME", amount=100.0, order_date="10/01/2025", category="Pumps",
          rep="ANA", quantity=1, city="Curitiba", state="PR", region="Region 1"):
    return TransactionRecord(
        order_date=order_date, client=client, city=city, state=state,
        category=category, rep=rep, region=region, quantity=quantity, amount=amount,
    )


class TestAggregate:
    def test_empty(self):
        assert aggregate([]) == {}

    def test_sums_per_client(self):
        groups = aggregate([
            _sale("A", 100, quantity=2),
            _sale("A", 50, quantity=3),
            _sale("B", 10),
        ])
        assert list(groups) == ["A", "B"]
        assert groups["A"].total_amount == 150
        assert groups["A"].order_count == 2
        assert groups["A"].item_count == 5

    def test_negative_amounts_reduce_total(self):
        groups = aggregate([_sale("A", 100), _sale("A", -30)])
        assert groups["A"].total_amount == 70

    def test_last_order_date_is_max_parsed(self):
        groups = aggregate([
            _sale(order_date="10/01/2025"),
            _sale(order_date="05/03/2025"),
            _sale(order_date="garbage"),
            _sale(order_date="01/02/2025"),
        ])
        assert groups["ACME"].last_order_date == date(2025, 3, 5)
        assert groups["ACME"].order_count == 4

    def test_no_parseable_date(self):
        groups = aggregate([_sale(order_date=""), _sale(order_date="xx")])
        assert groups["ACME"].last_order_date is None

    def test_location_from_first_record(self):
        groups = aggregate([_sale(city="Curitiba"), _sale(city="Londrina")])
        assert groups["ACME"].city == "Curitiba"

    def test_frequency_skips_empty_values(self):
        groups = aggregate([_sale(rep=""), _sale(rep="ANA"), _sale(rep="ANA")])
        assert groups["ACME"].rep_frequency == {"ANA": 2}

    def test_by_category_fills_missing(self):
        groups = aggregate([_sale(category=""), _sale(category="Pumps")], by_category)
        assert set(groups) == {NOT_AVAILABLE, "Pumps"}


class TestMostFrequent:
    def test_highest_count(self):
        assert most_frequent({"ANA": 1, "BIA": 3}) == "BIA"

    def test_tie_goes_to_first_key(self):
        assert most_frequent({"BIA": 2, "ANA": 2}) == "BIA"

    def test_empty(self):
        assert most_frequent({}) == NOT_AVAILABLE
