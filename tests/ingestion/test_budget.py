"""Tests for the budget parser and the budget template generator."""

import pytest

from command_center.core.enums import CostBehavior, Section
from command_center.core.exceptions import StructuralError
from command_center.ingestion.models import RowError
from command_center.ingestion.parsers import generate_budget_template, parse_budget_sheet
from command_center.ingestion.workbook import list_sheets


def _line(label, months, total=None, marker=None):
    return [marker, None, label, None] + list(months) + [total]


@pytest.fixture(scope="module")
def template_result():
    return parse_budget_sheet(generate_budget_template(2026))


class TestBudgetTemplate:
    def test_template_sheet_name(self):
        sheets = list_sheets(generate_budget_template(2031))
        assert [(s.name, s.year, s.is_scenario) for s in sheets] == [("2031 Budget", 2031, False)]

    def test_template_round_trip(self, template_result):
        result = template_result
        assert result.year == 2026
        assert result.errors == ()
        assert result.categories == ("Lease Revenue", "Warranties", "Insurances", "Training")
        assert [line.name for line in result.records] == [
            "Engine Program",
            "Airframe Program",
            "Aircraft Insurance",
            "Liability Insurance",
            "Pilot Recurrent Training",
        ]

    def test_template_line_amounts(self, template_result):
        by_name = {line.name: line for line in template_result.records}
        engine = by_name["Engine Program"]
        assert engine.monthly_cents == (305870,) * 12
        assert engine.annual_total_cents == 3670440
        assert engine.category == "Warranties"
        assert engine.section == Section.FIXED_EXPENSES
        assert engine.is_fixed

        insurance = by_name["Aircraft Insurance"]
        assert insurance.cost_behavior == CostBehavior.VARIABLE
        assert insurance.annual_total_cents == 2500000
        assert by_name["Pilot Recurrent Training"].cost_behavior == CostBehavior.FIXED

    def test_template_row_accounting(self, template_result):
        result = template_result
        assert result.total_rows == 15
        assert result.imported_rows == 5
        assert result.row_type_counts == {
            "SECTION_MARKER": 2,
            "CATEGORY_HEADER": 4,
            "SKIPPED": 4,
            "DATA": 5,
            "EMPTY": 4,
        }

    def test_template_summary(self, template_result):
        summary = template_result.summary
        assert summary.totals_by_category == {
            "Warranties": 5470440,
            "Insurances": 4900000,
            "Training": 3000000,
        }
        assert summary.totals_by_section == {"fixed_expenses": 13370440}
        assert summary.totals_by_behavior == {"fixed": 10870440, "variable": 2500000}
        assert summary.date_range is None


class TestParseBudgetSheet:
    def test_positional_layout(self, make_workbook):
        rows = [
            ["FIXED EXPENSES"],
            _line("Hangar Rent", [1000] * 12, 12000),
        ]
        result = parse_budget_sheet(make_workbook({"2026 Budget": rows}))
        (line,) = result.records
        assert line.name == "Hangar Rent"
        assert line.category == "Fixed Expenses"
        assert line.section == Section.FIXED_EXPENSES
        assert line.annual_total_cents == 1200000

    def test_default_category(self, make_workbook):
        result = parse_budget_sheet(make_workbook({"Budget": [_line("Rent", [100] * 12)]}))
        (line,) = result.records
        assert line.category == "General"
        assert line.section is None
        assert result.year is None

    def test_annual_total_falls_back_to_month_sum(self, make_workbook):
        rows = [_line("Parts", [100, 200] + [0] * 10), _line("Fees", [100] * 12, 5000)]
        parts, fees = parse_budget_sheet(make_workbook({"Budget": rows})).records
        assert parts.annual_total_cents == 30000
        assert fees.annual_total_cents == 500000

    def test_text_in_month_is_a_row_error(self, make_workbook):
        rows = [
            _line("Fuel", ["abc"] + [100] * 11),
            _line("Oil", [50] * 12),
        ]
        result = parse_budget_sheet(make_workbook({"Budget": rows}))
        assert result.errors == (RowError(row=1, message="Invalid amount for jan: 'abc'"),)
        assert [line.name for line in result.records] == ["Oil"]

    def test_placeholders_read_as_zero(self, make_workbook):
        rows = [_line("Catering", ["TBD", "-", "N/A"] + [300] * 9)]
        (line,) = parse_budget_sheet(make_workbook({"Budget": rows})).records
        assert line.monthly_cents[:4] == (0, 0, 0, 30000)
        assert line.annual_total_cents == 270000

    def test_cancelling_row_is_skipped(self, make_workbook):
        rows = [_line("Adjustment", [100, -100] + [0] * 10), _line("Rent", [100] * 12)]
        result = parse_budget_sheet(make_workbook({"Budget": rows}))
        assert [line.name for line in result.records] == ["Rent"]
        assert result.errors == ()

    def test_fixed_cost_min_samples(self, make_workbook):
        rows = [_line("Training", [0, 0, 150] + [0] * 5 + [150] + [0] * 3)]
        buffer = make_workbook({"Budget": rows})
        assert parse_budget_sheet(buffer).records[0].is_fixed
        strict = parse_budget_sheet(buffer, fixed_cost_min_samples=6)
        assert strict.records[0].cost_behavior == CostBehavior.VARIABLE

    def test_budget_sheet_preferred_over_scenarios(self, make_workbook):
        buffer = make_workbook(
            {
                "Scenario - high fuel": [_line("Fuel", [900] * 12)],
                "2025 Budget": [_line("Fuel", [500] * 12)],
            }
        )
        result = parse_budget_sheet(buffer)
        assert result.sheet_name == "2025 Budget"
        assert result.year == 2025
        assert result.records[0].monthly_cents[0] == 50000

    def test_explicit_scenario_sheet(self, make_workbook):
        buffer = make_workbook(
            {
                "2025 Budget": [_line("Fuel", [500] * 12)],
                "Scenario 2026": [_line("Fuel", [900] * 12)],
            }
        )
        result = parse_budget_sheet(buffer, sheet_name="Scenario 2026")
        assert result.year == 2026
        assert result.records[0].monthly_cents[0] == 90000

    def test_csv_budget(self, make_csv):
        rows = [["VARIABLE EXPENSES"], _line("Fuel", [250] * 12)]
        (line,) = parse_budget_sheet(make_csv(rows)).records
        assert line.section == Section.VARIABLE_EXPENSES
        assert line.monthly_cents == (25000,) * 12

    def test_header_only_sheet_raises(self, make_workbook):
        header = [None, None, "Account Description", None] + [
            "Jan", "Feb", "Mar", "Apr", "May", "Jun",
            "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
        ] + ["Total"]
        with pytest.raises(StructuralError, match="no budget rows"):
            parse_budget_sheet(make_workbook({"2026 Budget": [header]}))

    def test_marker_and_line_item_on_one_row(self, make_workbook):
        """Test that a section keyword beside a line item opens the section and keeps the line."""
        rows = [_line("Charter Revenue", [100] * 12, 1200, marker="Revenue"), _line("Ferry Revenue", [50] * 12)]
        result = parse_budget_sheet(make_workbook({"Budget": rows}))
        charter, ferry = result.records
        assert (charter.name, charter.section, charter.category) == ("Charter Revenue", Section.REVENUE, "Revenue")
        assert charter.annual_total_cents == 120000
        assert ferry.section == Section.REVENUE
        assert result.imported_rows == 2

    def test_parse_is_repeatable(self):
        buffer = generate_budget_template(2026)
        assert parse_budget_sheet(buffer) == parse_budget_sheet(buffer)
