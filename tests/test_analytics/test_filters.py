"""Tests for the filter engine."""

from datetime import date

from commercial_intel.analytics.filters import (
    ANY,
    FilterCriteria,
    OneOf,
    apply_filters,
    extract_unique,
    matches,
)
from commercial_intel.analytics.records import TransactionRecord


def _sale(region="North", rep="ANA", category="Pumps", order_date="15/03/2025", client="ACME"):
    return TransactionRecord(
        order_date=order_date, client=client, city="Curitiba", state="PR",
        category=category, rep=rep, region=region, quantity=1, amount=10.0,
    )


class TestFromRaw:
    def test_empty_inputs_mean_no_constraint(self):
        criteria = FilterCriteria.from_raw({"region": [], "rep": "", "category": None})
        assert criteria.is_empty
        assert criteria.constraint("region") is ANY

    def test_scalar_and_list(self):
        criteria = FilterCriteria.from_raw({"region": ["North", "South"], "rep": "ANA"})
        assert criteria.constraint("region") == OneOf(frozenset({"North", "South"}))
        assert criteria.constraint("rep") == OneOf(frozenset({"ANA"}))

    def test_date_bounds(self):
        criteria = FilterCriteria.from_raw({"start": "2025-01-01", "end": ["31/01/2025"]})
        assert criteria.start == date(2025, 1, 1)
        assert criteria.end == date(2025, 1, 31)
        assert criteria.has_date_bounds

    def test_none(self):
        assert FilterCriteria.from_raw(None).is_empty

    def test_to_dict_round_trip(self):
        raw = {"start": "2025-01-01", "region": ["South", "North"]}
        out = FilterCriteria.from_raw(raw).to_dict()
        assert out == {"start": "2025-01-01", "region": ["North", "South"]}
        assert FilterCriteria.from_raw(out) == FilterCriteria.from_raw(raw)


class TestMatches:
    def test_empty_criteria_always_match(self):
        assert matches(_sale(), FilterCriteria())
        assert matches(_sale(order_date="garbage"), FilterCriteria())
        assert matches(_sale(), None)

    def test_empty_list_is_unconstrained(self):
        assert matches(_sale(region="North"), FilterCriteria.from_raw({"region": []}))

    def test_membership(self):
        criteria = FilterCriteria.from_raw({"region": ["North", "South"]})
        assert matches(_sale(region="South"), criteria)
        assert not matches(_sale(region="East"), criteria)

    def test_conjunction(self):
        criteria = FilterCriteria.from_raw({"region": ["North"], "rep": ["BIA"]})
        assert not matches(_sale(region="North", rep="ANA"), criteria)
        assert matches(_sale(region="North", rep="BIA"), criteria)

    def test_adding_criteria_never_readmits(self):
        record = _sale(region="North", rep="ANA")
        criteria = FilterCriteria.from_raw({"rep": ["BIA"]})
        assert not matches(record, criteria)
        for name, value in [("region", "North"), ("category", "Pumps"), ("client", "ACME")]:
            criteria = criteria.with_field(name, [value])
            assert not matches(record, criteria)

    def test_date_bounds_inclusive(self):
        criteria = FilterCriteria.from_raw({"start": "2025-03-15", "end": "2025-03-15"})
        assert matches(_sale(order_date="15/03/2025"), criteria)
        assert not matches(_sale(order_date="16/03/2025"), criteria)
        assert not matches(_sale(order_date="14/03/2025"), criteria)

    def test_unparseable_date_rejected_under_bounds(self):
        criteria = FilterCriteria.from_raw({"start": "2025-01-01"})
        assert not matches(_sale(order_date="not a date"), criteria)
        assert not matches(_sale(order_date=""), criteria)


class TestCriteriaOperations:
    def test_merged_other_wins(self):
        base = FilterCriteria.from_raw({"region": ["North"], "rep": ["ANA"], "start": "2025-01-01"})
        top = FilterCriteria.from_raw({"region": ["South"]})
        merged = base.merged(top)
        assert merged.constraint("region") == OneOf(frozenset({"South"}))
        assert merged.constraint("rep") == OneOf(frozenset({"ANA"}))
        assert merged.start == date(2025, 1, 1)

    def test_without(self):
        criteria = FilterCriteria.from_raw({"region": ["North"], "start": "2025-01-01"})
        assert not criteria.without("region").constrains("region")
        assert criteria.without("start").start is None
        assert criteria.constrains("region")

    def test_with_field_clears_on_empty(self):
        criteria = FilterCriteria.from_raw({"region": ["North"]}).with_field("region", [])
        assert not criteria.constrains("region")


class TestHelpers:
    def test_apply_filters_keeps_order(self):
        records = [_sale(client="b"), _sale(client="x", region="East"), _sale(client="a")]
        kept = apply_filters(records, FilterCriteria.from_raw({"region": "North"}))
        assert [r.client for r in kept] == ["b", "a"]

    def test_extract_unique_sorted_non_empty(self):
        records = [_sale(rep="BIA"), _sale(rep=""), _sale(rep="ANA"), _sale(rep="BIA")]
        assert extract_unique(records, "rep") == ["ANA", "BIA"]

    def test_extract_unique_missing_field(self):
        assert extract_unique([_sale()], "team") == []
