"""Tests for sheet row normalization."""

import pytest

from commercial_intel.analytics.records import TransactionRecord
from commercial_intel.ingestion.row_normalizer import (
    SALES_COLUMNS,
    attach_customer_types,
    normalize_demo_loans,
    normalize_history,
    normalize_leads,
    normalize_sales,
    parse_currency,
    parse_int,
    parse_number,
    to_frame,
)

SALES_HEADER = ["Data", "Cliente", "Cidade", "UF", "Categoria", "Vendedor", "Regional", "Tipo", "Qtd", "Valor"]


class TestScalarParsers:
    @pytest.mark.parametrize("raw,expected", [
        ("1.234,5", 1234.5),
        ("12", 12.0),
        ("0,75", 0.75),
        ("-3,5", -3.5),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("inf", 0.0),
        (7, 7.0),
    ])
    def test_parse_number(self, raw, expected):
        assert parse_number(raw) == expected

    def test_parse_currency(self):
        assert parse_currency("R$ 1.234,56") == pytest.approx(1234.56)
        assert parse_currency("R$ -10,00") == pytest.approx(-10)
        assert parse_currency("n/a") == 0.0

    def test_parse_int_truncates(self):
        assert parse_int("2,7") == 2
        assert parse_int("") == 0


class TestToFrame:
    def test_header_skipped_rows_padded_and_blank_dropped(self):
        values = [SALES_HEADER, ["01/02/2025", "ACME"], ["", "  "], []]
        df = to_frame(values, SALES_COLUMNS)
        assert list(df.columns) == SALES_COLUMNS
        assert len(df) == 1
        assert df.iloc[0]["client"] == "ACME"
        assert df.iloc[0]["amount"] == ""

    def test_extra_cells_dropped_and_cells_stripped(self):
        values = [SALES_HEADER, [" 01/02/2025 ", "ACME"] + [""] * 8 + ["extra"]]
        df = to_frame(values, SALES_COLUMNS)
        assert df.iloc[0]["order_date"] == "01/02/2025"
        assert len(df.columns) == len(SALES_COLUMNS)

    def test_header_only(self):
        assert to_frame([SALES_HEADER], SALES_COLUMNS).empty


class TestNormalizers:
    def test_sales(self):
        values = [
            SALES_HEADER,
            ["10/01/2025", "ACME", "Curitiba", "PR", "Pumps", "ANA", "Region 1", "Hospital", "3", "R$ 1.500,00"],
            ["11/01/2025", "Beta", "Londrina", "PR", "Valves", "BIA", "Region 2"],
        ]
        sales = normalize_sales(values)
        assert sales[0] == TransactionRecord(
            order_date="10/01/2025", client="ACME", city="Curitiba", state="PR",
            category="Pumps", rep="ANA", region="Region 1", quantity=3, amount=1500.0,
            customer_type="Hospital",
        )
        assert sales[1].amount == 0.0
        assert sales[1].quantity == 0

    def test_history_layout(self):
        values = [
            ["h"] * 11,
            ["05/05/2024", "ACME", "Curitiba", "PR", "Pumps", "Boleto", "NF-1", "ANA", "Region 1", "2", "200,00"],
        ]
        record = normalize_history(values)[0]
        assert record.payment_method == "Boleto"
        assert record.invoice == "NF-1"
        assert record.rep == "ANA"
        assert record.amount == 200.0
        assert record.customer_type is None

    def test_demo_loans(self):
        values = [
            ["h"] * 9,
            ["01/06/2025", "ACME", "Monitor", "ANA", "Curitiba", "PR", "Region 1", "1", "R$ 10.000,00"],
        ]
        loan = normalize_demo_loans(values)[0]
        assert loan.category == "Monitor"
        assert loan.amount == 10000.0

    def test_leads(self):
        values = [
            ["h"] * 11,
            ["01/02/2025", "Maria", "Hosp. Central", "Monitor", "Inside Sales", "ANA",
             "Curitiba", "PR", "Vendida", "R$ 120,00", "R$ 8.000,00"],
        ]
        lead = normalize_leads(values)[0]
        assert lead.spend == 120.0
        assert lead.avg_ticket == 8000.0
        assert lead.status == "won"

    def test_attach_customer_types(self):
        history = normalize_history([
            ["h"] * 11,
            ["05/05/2024", "ACME", "", "", "", "", "", "ANA", "", "1", "1"],
            ["05/05/2024", "Other", "", "", "", "", "", "ANA", "", "1", "1"],
        ])
        sales = normalize_sales([
            SALES_HEADER,
            ["10/01/2025", "ACME", "", "", "", "", "", "", "1", "1"],
            ["10/01/2025", "ACME", "", "", "", "", "", "Hospital", "1", "1"],
            ["10/01/2025", "ACME", "", "", "", "", "", "Clinic", "1", "1"],
        ])
        enriched = attach_customer_types(history, sales)
        assert [r.customer_type for r in enriched] == ["Hospital", None]
