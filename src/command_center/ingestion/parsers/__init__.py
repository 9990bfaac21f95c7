"""Spreadsheet parsers for bills, budgets and cash flow.

This package provides one module per sheet layout.

Public API:
 - parse_bills
 - parse_budget_sheet, generate_budget_template
 - parse_cash_flow
"""

from .bills import parse_bills
from .budget import generate_budget_template, parse_budget_sheet
from .cashflow import parse_cash_flow

__all__ = [
    "parse_bills",
    "parse_budget_sheet",
    "generate_budget_template",
    "parse_cash_flow",
]
