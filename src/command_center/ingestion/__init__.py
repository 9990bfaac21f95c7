"""Spreadsheet ingestion and normalization engine.

Public API:
 - parse_bills, parse_budget_sheet, parse_cash_flow, parse_workbook
 - list_sheets, SheetInfo
 - check_admission, AdmissionResult
 - generate_budget_template, summarize_cost_behavior
 - parse_filename_date, format_cents
 - ParseResult and the record, error and summary models
"""

from command_center.core.exceptions import IngestError, StructuralError
from command_center.core.utils import format_cents, parse_filename_date
from .admission import AdmissionResult, check_admission
from .cost import classify_cost_behavior, summarize_cost_behavior
from .models import (
    Bill,
    BudgetLine,
    CashFlowTransaction,
    DailyTotal,
    DateRange,
    LineItemCount,
    ParseResult,
    ParseSummary,
    RowError,
    RowWarning,
)
from .parsers import generate_budget_template, parse_bills, parse_budget_sheet, parse_cash_flow
from .registry import parse_workbook, print_report
from .workbook import SheetInfo, list_sheets

__all__ = [
    # parsing
    "parse_bills",
    "parse_budget_sheet",
    "parse_cash_flow",
    "parse_workbook",
    "print_report",
    "list_sheets",
    "SheetInfo",
    # admission
    "check_admission",
    "AdmissionResult",
    # budget helpers
    "generate_budget_template",
    "classify_cost_behavior",
    "summarize_cost_behavior",
    # display helpers
    "parse_filename_date",
    "format_cents",
    # models
    "Bill",
    "BudgetLine",
    "CashFlowTransaction",
    "DailyTotal",
    "DateRange",
    "LineItemCount",
    "ParseResult",
    "ParseSummary",
    "RowError",
    "RowWarning",
    # errors
    "IngestError",
    "StructuralError",
]
