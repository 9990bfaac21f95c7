"""Core utility functions shared by the vocabulary tables and parsers."""

from __future__ import annotations

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

_SEPARATORS_RE = re.compile(r"[\s_\-–—]+")
_FILENAME_DATE_RE = re.compile(r"(\d{1,2})_(\d{1,2})_(\d{4})")
_YEAR_RE = re.compile(r"\b(20\d{2})\b")


def normalize_label(text: object) -> str:
    """Normalize a header or label for table lookup.

    Lowercases, drops trailing punctuation such as ':' and '.', and collapses
    runs of whitespace, underscores and hyphens into a single '_'.

    Examples:
        >>> normalize_label("  Due-Date ")
        'due_date'
        >>> normalize_label("Beg. Balance:")
        'beg_balance'
    """
    s = str(text).strip().lower()
    for ch in (":", ".", ",", ";"):
        s = s.replace(ch, "")
    s = _SEPARATORS_RE.sub("_", s)
    return s.strip("_")


def parse_filename_date(file_name: str) -> Optional[str]:
    """Extract an ISO date from an ``M_D_YYYY`` fragment in a file name.

    Examples:
        >>> parse_filename_date("Cash Flow 3_7_2025.xlsx")
        '2025-03-07'
        >>> parse_filename_date("cashflow.xlsx") is None
        True
    """
    match = _FILENAME_DATE_RE.search(file_name or "")
    if not match:
        return None
    month, day, year = match.groups()
    return f"{year}-{month.zfill(2)}-{day.zfill(2)}"


def extract_year(name: str) -> Optional[int]:
    """Return the first 20xx year embedded in a sheet name, if any."""
    match = _YEAR_RE.search(name or "")
    return int(match.group(1)) if match else None


def format_cents(cents: int) -> str:
    """Format integer cents as whole US dollars, e.g. 123456 -> '$1,235'."""
    dollars = (Decimal(int(cents)) / Decimal(100)).quantize(Decimal(1), rounding=ROUND_HALF_UP)
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,}"


__all__ = ["normalize_label", "parse_filename_date", "extract_year", "format_cents"]
