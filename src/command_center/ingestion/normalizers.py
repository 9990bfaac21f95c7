"""Cell-level normalizers for dates and amounts.

Both normalizers are total: they return a value or None and never raise, so a
single malformed cell can only ever become a row error or warning.
"""

from __future__ import annotations

import math
import numbers
import re
import warnings
from datetime import date, datetime, timedelta
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple, Union

import pandas as pd

from command_center.core.enums import AmountContext
from .config import EXCEL_EPOCH, TWO_DIGIT_YEAR_PIVOT

_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_US_DATE_RE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{2}|\d{4})$")
_HAS_YEAR_RE = re.compile(r"\d{4}")
_CURRENCY_RE = re.compile(r"[$€£¥,\s]")
_PARENS_RE = re.compile(r"^\((.+)\)$")

# Budget sheets use these to mean "nothing budgeted".
AMOUNT_PLACEHOLDERS = frozenset({"tbd", "-", "n/a", "na"})

Amount = Union[int, float]


def is_blank(value: object) -> bool:
    """True for None, NaN/NaT and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def is_number(value: object) -> bool:
    """True for real numbers (including numpy scalars), excluding bools and NaN."""
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(float(value))


def cell_text(value: object) -> str:
    """Render a cell as trimmed text; whole floats lose their '.0'."""
    if is_blank(value):
        return ""
    if is_number(value) and float(value).is_integer():
        return str(int(value))
    return str(value).strip()


def plain_cell(value: object) -> object:
    """Convert a non-blank cell to a JSON-ready value for record metadata."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, bool):
        return value
    if is_number(value):
        number = float(value)
        return int(number) if number.is_integer() else number
    return str(value)


# ===================== MARK: Dates ===========================================


def excel_serial_to_iso(serial: float) -> Optional[str]:
    """Convert a spreadsheet date serial to ISO, ignoring the time of day.

    Examples:
        >>> excel_serial_to_iso(45000)
        '2023-03-15'
    """
    if serial < 1:
        return None
    try:
        return (date(*EXCEL_EPOCH) + timedelta(days=int(serial))).isoformat()
    except OverflowError:
        return None


def _safe_iso(year: int, month: int, day: int) -> Optional[str]:
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        return None


def normalize_date(
    value: object, *, serial_window: Optional[Tuple[float, float]] = None
) -> Optional[str]:
    """Normalize a raw cell to an ISO ``YYYY-MM-DD`` string, or None.

    Rules, in order: blanks are None; date/datetime objects are formatted;
    numbers are spreadsheet serials (rejected outside ``serial_window`` when
    given); ISO strings pass through; ``M/D/YY(YY)`` strings are rebuilt;
    anything else gets a generic parse that must include a four-digit year.

    Examples:
        >>> normalize_date("3/4/24")
        '2024-03-04'
        >>> normalize_date("13/40/2024") is None
        True
    """
    if is_blank(value) or isinstance(value, bool):
        return None

    if isinstance(value, (datetime, date)):
        # pandas.Timestamp is a datetime subclass
        return value.date().isoformat() if isinstance(value, datetime) else value.isoformat()

    if is_number(value):
        serial = float(value)
        if serial_window is not None:
            low, high = serial_window
            if not low < serial < high:
                return None
        return excel_serial_to_iso(serial)

    if not isinstance(value, str):
        return None

    text = value.strip()
    if _ISO_RE.match(text):
        year, month, day = (int(p) for p in text.split("-"))
        return text if _safe_iso(year, month, day) else None

    us_match = _US_DATE_RE.match(text)
    if us_match:
        month, day, year_text = us_match.groups()
        year = int(year_text)
        if len(year_text) == 2:
            year += 1900 if year > TWO_DIGIT_YEAR_PIVOT else 2000
        return _safe_iso(year, int(month), int(day))

    if not _HAS_YEAR_RE.search(text):
        return None
    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        try:
            parsed = pd.to_datetime(text, errors="coerce")
        except (ValueError, OverflowError):
            return None
    if parsed is None or pd.isna(parsed):
        return None
    return parsed.date().isoformat()


# ===================== MARK: Amounts =========================================


def _to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def parse_decimal(text: str) -> Optional[Decimal]:
    """Parse currency text into a Decimal, honoring accounting parentheses.

    Examples:
        >>> parse_decimal("$1,234.56")
        Decimal('1234.56')
        >>> parse_decimal("(500)")
        Decimal('-500')
        >>> parse_decimal("call vendor") is None
        True
    """
    cleaned = _CURRENCY_RE.sub("", text.strip())
    negate = False
    parens = _PARENS_RE.match(cleaned)
    if parens:
        cleaned = parens.group(1)
        negate = True
    if not cleaned:
        return None
    try:
        amount = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not amount.is_finite():
        return None
    return -amount if negate else amount


def normalize_amount(value: object, context: AmountContext) -> Optional[Amount]:
    """Normalize a raw cell to an amount for the given context.

    Bill and budget amounts are integer cents; cash-flow amounts are plain
    float magnitudes. Empty cells are None for bills and 0 elsewhere.
    Unparseable text is always None, never 0.

    Examples:
        >>> normalize_amount("$1,234.56", AmountContext.BILL)
        123456
        >>> normalize_amount("(500)", AmountContext.CASH_FLOW)
        -500.0
        >>> normalize_amount("", AmountContext.BILL) is None
        True
        >>> normalize_amount("", AmountContext.CASH_FLOW)
        0
    """
    if is_blank(value):
        return None if context == AmountContext.BILL else 0

    if isinstance(value, bool):
        return None

    if is_number(value):
        if context == AmountContext.CASH_FLOW:
            return float(value)
        return _to_cents(Decimal(str(float(value))))

    if not isinstance(value, str):
        return None

    if context == AmountContext.BUDGET and value.strip().lower() in AMOUNT_PLACEHOLDERS:
        return 0

    amount = parse_decimal(value)
    if amount is None:
        return None
    if context == AmountContext.CASH_FLOW:
        return float(amount)
    return _to_cents(amount)


__all__ = [
    "AMOUNT_PLACEHOLDERS",
    "is_blank",
    "is_number",
    "cell_text",
    "plain_cell",
    "excel_serial_to_iso",
    "normalize_date",
    "parse_decimal",
    "normalize_amount",
]
