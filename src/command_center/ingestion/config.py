"""Ingestion configuration constants.

This module centralizes admission limits, date-serial windows, layout defaults
and the fixed/variable cost thresholds. Adjust these constants to tune parser
behavior based on real workbook patterns.

Vocabulary overrides (extra header aliases, section keywords and skip labels)
are loaded from YAML by `load_vocabulary_overrides` and applied with
`Vocabulary.extended`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from command_center.core.enums import ParserKind
from command_center.core.schemas import Vocabulary, default_vocabulary

# ============================================================================
# ADMISSION LIMITS
# ============================================================================

MB = 1024 * 1024

BILL_MAX_BYTES = 10 * MB
BUDGET_MAX_BYTES = 10 * MB
CASH_FLOW_MAX_BYTES = 20 * MB

SPREADSHEET_EXTENSIONS: Tuple[str, ...] = (".xlsx", ".xls", ".csv")
EXCEL_ONLY_EXTENSIONS: Tuple[str, ...] = (".xlsx", ".xls")

# ============================================================================
# DATE SERIALS
# ============================================================================

# Serials are days since this epoch (the 1900 leap-year bug is baked in).
EXCEL_EPOCH = (1899, 12, 30)

# Bounds for serials in a multi-date header row, roughly 2009-07-06 .. 2064-04-08.
DATE_SERIAL_MIN = 40000
DATE_SERIAL_MAX = 60000

# Two-digit years above this pivot are read as 19xx, otherwise 20xx.
TWO_DIGIT_YEAR_PIVOT = 50

# ============================================================================
# FIXED / VARIABLE COST CLASSIFICATION
# ============================================================================

# Maximum relative deviation from the mean of non-zero months for a fixed cost.
FIXED_COST_TOLERANCE = 0.05

# Minimum non-zero months before a line item can be called fixed.
# Parse-time and per-asset checks use the lightweight threshold; the annual
# budget analysis view requires at least half a year of charges.
FIXED_COST_MIN_SAMPLES_LINE_ITEM = 2
FIXED_COST_MIN_SAMPLES_ANNUAL = 6

# ============================================================================
# SHEET LAYOUTS
# ============================================================================

# Budget sheets: rows scanned for a month header row, and the fallback layout.
BUDGET_HEADER_SEARCH_ROWS = 25
BUDGET_MIN_MONTH_HEADERS = 6
BUDGET_MARKER_COL = 0
BUDGET_LABEL_COL = 2
BUDGET_FIRST_MONTH_COL = 4
BUDGET_TOTAL_COL = 16

# Cash-flow sheets: row 0 carries dates from this column onward.
CASH_FLOW_MARKER_COL = 0
CASH_FLOW_LABEL_COL = 1
CASH_FLOW_FIRST_DATE_COL = 3

# Sheet-name substrings preferred when no sheet is requested explicitly.
CASH_FLOW_SHEET_HINTS: Tuple[str, ...] = ("cash flow", "cashflow")
BUDGET_SHEET_PATTERN = r"^\d{4}\s+budget$"


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================


def get_max_bytes(kind: ParserKind) -> int:
    """Get the upload size ceiling for a parser kind.

    Examples:
        >>> get_max_bytes(ParserKind.CASH_FLOW) // MB
        20
    """
    if kind == ParserKind.BILLS:
        return BILL_MAX_BYTES
    elif kind == ParserKind.BUDGET:
        return BUDGET_MAX_BYTES
    elif kind == ParserKind.CASH_FLOW:
        return CASH_FLOW_MAX_BYTES
    raise ValueError(f"Unsupported parser kind: {kind}")


def get_allowed_extensions(kind: ParserKind) -> Tuple[str, ...]:
    """Get the file extensions admitted for a parser kind."""
    if kind == ParserKind.CASH_FLOW:
        return EXCEL_ONLY_EXTENSIONS
    elif kind in (ParserKind.BILLS, ParserKind.BUDGET):
        return SPREADSHEET_EXTENSIONS
    raise ValueError(f"Unsupported parser kind: {kind}")


def load_vocabulary_overrides(path: Path) -> Dict[str, Any]:
    """Load vocabulary overrides from a YAML file.

    The file may hold the override tables at top level, or nested under a key
    per parser kind (``bills``, ``budget``, ``cash_flow``).

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the YAML is malformed or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Vocabulary file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to read vocabulary file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ValueError(f"Vocabulary file {path} must contain a mapping")
    return data


def build_vocabulary(
    kind: ParserKind, overrides: Optional[Dict[str, Any]] = None
) -> Vocabulary:
    """Build the vocabulary for a kind, layering optional overrides.

    Overrides nested under the kind's lowercase name take effect for that kind
    only; top-level tables apply to every kind.
    """
    vocabulary = default_vocabulary(kind)
    if not overrides:
        return vocabulary
    kind_keys = {k.value.lower() for k in ParserKind}
    shared = {k: v for k, v in overrides.items() if k not in kind_keys}
    if shared:
        vocabulary = vocabulary.extended(shared)
    specific = overrides.get(kind.value.lower())
    if specific:
        vocabulary = vocabulary.extended(specific)
    return vocabulary


__all__ = [
    "MB",
    "BILL_MAX_BYTES",
    "BUDGET_MAX_BYTES",
    "CASH_FLOW_MAX_BYTES",
    "SPREADSHEET_EXTENSIONS",
    "EXCEL_ONLY_EXTENSIONS",
    "EXCEL_EPOCH",
    "DATE_SERIAL_MIN",
    "DATE_SERIAL_MAX",
    "TWO_DIGIT_YEAR_PIVOT",
    "FIXED_COST_TOLERANCE",
    "FIXED_COST_MIN_SAMPLES_LINE_ITEM",
    "FIXED_COST_MIN_SAMPLES_ANNUAL",
    "BUDGET_HEADER_SEARCH_ROWS",
    "BUDGET_MIN_MONTH_HEADERS",
    "BUDGET_MARKER_COL",
    "BUDGET_LABEL_COL",
    "BUDGET_FIRST_MONTH_COL",
    "BUDGET_TOTAL_COL",
    "CASH_FLOW_MARKER_COL",
    "CASH_FLOW_LABEL_COL",
    "CASH_FLOW_FIRST_DATE_COL",
    "CASH_FLOW_SHEET_HINTS",
    "BUDGET_SHEET_PATTERN",
    "get_max_bytes",
    "get_allowed_extensions",
    "load_vocabulary_overrides",
    "build_vocabulary",
]
