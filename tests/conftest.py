"""Shared pytest configuration and fixtures for workbook ingestion tests."""

from io import BytesIO
from typing import Any, Dict, List

import pandas as pd
import pytest

Rows = List[List[Any]]


def build_xlsx(sheets: Dict[str, Rows]) -> bytes:
    """Write rows to an in-memory .xlsx workbook, one entry per sheet.

    Rows are written as-is with no header row and no index, so
    ``sheets["X"][i]`` lands on spreadsheet row ``i + 1``.
    """
    out = BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        for name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
    return out.getvalue()


def build_csv(rows: Rows) -> bytes:
    """Write rows to CSV bytes (empty cells stay empty)."""
    return pd.DataFrame(rows).to_csv(header=False, index=False).encode("utf-8")


@pytest.fixture
def make_workbook():
    """Factory fixture: ``make_workbook({"Sheet": rows}) -> bytes``."""
    return build_xlsx


@pytest.fixture
def make_csv():
    """Factory fixture: ``make_csv(rows) -> bytes``."""
    return build_csv


@pytest.fixture
def bill_rows() -> Rows:
    """A bill sheet with two good rows, one missing its amount, and a blank row."""
    return [
        ["Title", "Amount", "Due Date", "Category", "Vendor", "Account #"],
        ["Electric", "$1,234.56", "2026-01-15", "Utilities", "PowerCo", "A-100"],
        ["Water", None, "1/20/2026", "Utilities", "City", None],
        [None, None, None, None, None, None],
        ["Hangar Rent", 2500, "2/1/26", "Facilities", None, "H-7"],
    ]


@pytest.fixture
def cash_flow_rows() -> Rows:
    """A wide cash-flow sheet: dates in row 1 from column D, sections in column A."""
    return [
        ["Section", "Line Item", None, 45000, 45001, 45002],
        ["Beg. Balance", None, None, 1000, 1000, 1000],
        ["Cash In", None, None, None, None, None],
        [None, "Charter Revenue", None, 5000, None, "(250)"],
        [None, "Lease Revenue", None, 0, "0", 1200],
        ["Cash Out", None, None, None, None, None],
        [None, "Fuel", None, 800, "call vendor", 400],
        [None, "Subtotal", None, 800, 0, 400],
        ["Investements", None, None, None, None, None],
        [None, "Avionics Upgrade", None, None, 15000, None],
    ]
