"""Tests for the bill parser."""

import logging

import pytest

from command_center.core.enums import ParserKind
from command_center.core.exceptions import StructuralError
from command_center.core.schemas import default_vocabulary
from command_center.ingestion.headers import resolve_headers
from command_center.ingestion.models import Bill, RowError
from command_center.ingestion.parsers import parse_bills
from command_center.ingestion.parsers.bills import build_bill

BILLS = default_vocabulary(ParserKind.BILLS)


class TestParseBills:
    def test_valid_and_invalid_rows(self, make_workbook, bill_rows):
        result = parse_bills(make_workbook({"Bills": bill_rows}))

        assert result.kind == ParserKind.BILLS
        assert result.sheet_name == "Bills"
        assert result.total_rows == 3
        assert result.imported_rows == 2
        assert result.errors == (RowError(row=3, message="Invalid or missing amount"),)
        assert result.warnings == ()

        electric, hangar = result.records
        assert electric == Bill(
            title="Electric",
            amount_cents=123456,
            due_date="2026-01-15",
            category="Utilities",
            payee="PowerCo",
            notes=None,
            metadata={"Account #": "A-100"},
        )
        assert hangar.amount_cents == 250000
        assert hangar.due_date == "2026-02-01"
        assert hangar.payee is None
        assert hangar.metadata == {"Account #": "H-7"}

    def test_summary_and_categories(self, make_workbook, bill_rows):
        result = parse_bills(make_workbook({"Bills": bill_rows}))
        summary = result.summary
        assert summary.record_count == 2
        assert summary.total_amount == 373456
        assert summary.totals_by_category == {"Utilities": 123456, "Facilities": 250000}
        assert (summary.date_range.start, summary.date_range.end) == ("2026-01-15", "2026-02-01")
        assert result.categories == ("Utilities", "Facilities")
        assert result.import_summary() == "2 of 3 rows imported, 1 errors, 0 warnings"

    def test_uncategorized_bucket(self, make_workbook):
        rows = [["Title", "Amount", "Due Date"], ["Rent", 100, "2026-03-01"]]
        result = parse_bills(make_workbook({"Bills": rows}))
        assert result.summary.totals_by_category == {"Uncategorized": 10000}
        assert result.categories == ()

    def test_row_errors_are_isolated(self, make_workbook):
        """A broken row never changes how its neighbours parse."""
        good = [["Title", "Amount", "Due Date"], ["Rent", 100, "2026-03-01"]]
        with_bad = good[:1] + [["", "abc", "someday"]] + good[1:]
        clean = parse_bills(make_workbook({"Bills": good}))
        noisy = parse_bills(make_workbook({"Bills": with_bad}))
        assert noisy.records == clean.records
        assert noisy.errors == (
            RowError(
                row=2,
                message="Missing title, Invalid or missing amount, Invalid or missing due date",
            ),
        )

    def test_parse_is_repeatable(self, make_workbook, bill_rows):
        buffer = make_workbook({"Bills": bill_rows})
        assert parse_bills(buffer) == parse_bills(buffer)

    def test_csv_input(self, make_csv, bill_rows):
        result = parse_bills(make_csv(bill_rows))
        assert result.sheet_name == "Sheet1"
        assert [b.amount_cents for b in result.records] == [123456, 250000]
        assert result.errors[0].row == 3

    def test_csv_ragged_row_is_imported(self):
        """Test that an extra trailing cell on one row does not fail the file."""
        buffer = b"Title,Amount,Due Date\nRent,100,2026-01-01\nWater,50,2026-01-02,extra note\n"
        result = parse_bills(buffer)
        assert [(b.title, b.amount_cents) for b in result.records] == [("Rent", 10000), ("Water", 5000)]
        assert result.errors == ()

    def test_csv_cp1252_export(self):
        buffer = "Title,Amount,Due Date\nCafé lease,100,2026-01-01\n".encode("cp1252")
        result = parse_bills(buffer)
        assert result.records[0].title == "Café lease"
        assert result.records[0].amount_cents == 10000

    def test_header_below_blank_rows(self, make_workbook, bill_rows):
        result = parse_bills(make_workbook({"Bills": [[None] * 6] + bill_rows}))
        assert [e.row for e in result.errors] == [4]

    def test_explicit_sheet(self, make_workbook, bill_rows):
        buffer = make_workbook({"Notes": [["hello"]], "Bills": bill_rows})
        assert parse_bills(buffer, sheet_name="Bills").imported_rows == 2

    def test_missing_sheet_raises(self, make_workbook, bill_rows):
        with pytest.raises(StructuralError, match='Sheet "Nope" not found'):
            parse_bills(make_workbook({"Bills": bill_rows}), sheet_name="Nope")

    def test_header_only_raises(self, make_workbook):
        with pytest.raises(StructuralError, match="no data rows"):
            parse_bills(make_workbook({"Bills": [["Title", "Amount", "Due Date"]]}))

    def test_empty_sheet_raises(self, make_workbook):
        with pytest.raises(StructuralError, match="is empty"):
            parse_bills(make_workbook({"Bills": []}))

    def test_unreadable_buffer_raises(self):
        with pytest.raises(StructuralError):
            parse_bills(b"PK\x03\x04 not really a zip")

    def test_missing_required_column_is_logged(self, make_workbook, caplog):
        rows = [["Title", "Amount"], ["Rent", 100]]
        with caplog.at_level(logging.WARNING):
            result = parse_bills(make_workbook({"Bills": rows}))
        assert "no column for: due_date" in caplog.text
        assert result.errors == (RowError(row=2, message="Invalid or missing due date"),)


class TestBuildBill:
    @pytest.fixture
    def mapping(self):
        return resolve_headers(["Title", "Amount", "Due Date", "Memo"], BILLS)

    def test_negative_amount_rejected(self, mapping):
        bill, problems = build_bill(["Refund", -5, "2026-01-01", None], mapping)
        assert bill is None
        assert problems == ["Invalid or missing amount"]

    def test_zero_amount_allowed(self, mapping):
        bill, problems = build_bill(["Promo", 0, "2026-01-01", " free month "], mapping)
        assert problems == []
        assert bill.amount_cents == 0
        assert bill.notes == "free month"
