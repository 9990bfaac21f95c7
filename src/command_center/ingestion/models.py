"""Ingestion data models.

This module defines the values a parse call produces:
- Bill, BudgetLine, CashFlowTransaction: typed records, one type per parser
- RowError, RowWarning: per-row and per-cell diagnostics
- ParseSummary: totals, date range and counts
- ParseResult: everything above, immutable once returned
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from command_center.core.enums import CostBehavior, Direction, ParserKind, Section


def _freeze_mappings(instance: Any, *names: str) -> None:
    """Replace the named mapping fields of a frozen dataclass with read-only views."""
    for name in names:
        object.__setattr__(instance, name, MappingProxyType(dict(getattr(instance, name))))


@dataclass(frozen=True)
class RowError:
    """A row that could not become a record.

    Attributes:
        row: 1-based source row number (the header row is row 1).
        message: Every violated rule for the row, comma separated.
    """

    row: int
    message: str


@dataclass(frozen=True)
class RowWarning:
    """A value cell that held text instead of a number (cash-flow only)."""

    row: int
    column: int
    line_item_name: str
    date: str
    raw_value: str
    message: str


@dataclass(frozen=True)
class Bill:
    title: str
    amount_cents: int
    due_date: str
    category: Optional[str] = None
    payee: Optional[str] = None
    notes: Optional[str] = None
    metadata: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze_mappings(self, "metadata")


@dataclass(frozen=True)
class BudgetLine:
    """One budget line item with twelve monthly amounts in cents."""

    name: str
    category: str
    section: Optional[Section]
    monthly_cents: Tuple[int, ...]
    annual_total_cents: int
    cost_behavior: CostBehavior

    @property
    def is_fixed(self) -> bool:
        return self.cost_behavior == CostBehavior.FIXED


@dataclass(frozen=True)
class CashFlowTransaction:
    date: str
    line_item: str
    section: Section
    amount: float
    direction: Direction
    category: Optional[str] = None


ParsedRecord = Union[Bill, BudgetLine, CashFlowTransaction]


@dataclass(frozen=True)
class DateRange:
    start: str
    end: str


@dataclass(frozen=True)
class LineItemCount:
    name: str
    section: Section
    count: int


@dataclass(frozen=True)
class DailyTotal:
    date: str
    cash_in: float
    cash_out: float
    net: float


@dataclass(frozen=True)
class ParseSummary:
    """Aggregates over the records of a single parse.

    Amounts are cents for bills and budget lines and plain magnitudes for
    cash flow. Empty groupings are omitted from the totals mappings.
    """

    record_count: int = 0
    total_amount: Union[int, float] = 0
    totals_by_category: Mapping[str, Union[int, float]] = field(default_factory=dict)
    totals_by_section: Mapping[str, Union[int, float]] = field(default_factory=dict)
    totals_by_direction: Mapping[str, Union[int, float]] = field(default_factory=dict)
    totals_by_behavior: Mapping[str, Union[int, float]] = field(default_factory=dict)
    date_range: Optional[DateRange] = None
    date_count: int = 0
    daily_totals: Tuple[DailyTotal, ...] = ()

    def __post_init__(self) -> None:
        _freeze_mappings(
            self, "totals_by_category", "totals_by_section", "totals_by_direction", "totals_by_behavior"
        )

    @property
    def total_cash_in(self) -> float:
        return self.totals_by_direction.get(Direction.IN.value, 0)

    @property
    def total_cash_out(self) -> float:
        return self.totals_by_direction.get(Direction.OUT.value, 0)

    @property
    def net_cash_flow(self) -> float:
        return self.total_cash_in - self.total_cash_out


def _to_plain(value: Any) -> Any:
    """Convert dataclasses, enums, tuples and mappings to JSON-ready values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Mapping):
        return {str(_to_plain(k)): _to_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    return value


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one sheet.

    Attributes:
        kind: Which parser produced the result.
        sheet_name: The sheet that was parsed.
        records: Valid records in source order.
        errors: One entry per rejected row.
        warnings: Cell-level annotations (cash-flow only).
        total_rows: Non-blank rows considered, excluding the header row.
        imported_rows: Rows that produced at least one record.
        summary: Totals, date range and counts over `records`.
        categories: Category labels in first-seen order.
        line_items: Transactions per (line item, section), cash-flow only.
        year: Year taken from the sheet name, budget only.
        row_type_counts: How many rows the classifier put in each row type.

    Examples:
        >>> result = parse_bills(buffer)
        >>> print(result.import_summary())
        2 of 3 rows imported, 1 errors, 0 warnings
    """

    kind: ParserKind
    sheet_name: str
    records: Tuple[ParsedRecord, ...] = ()
    errors: Tuple[RowError, ...] = ()
    warnings: Tuple[RowWarning, ...] = ()
    total_rows: int = 0
    imported_rows: int = 0
    summary: ParseSummary = field(default_factory=ParseSummary)
    categories: Tuple[str, ...] = ()
    line_items: Tuple[LineItemCount, ...] = ()
    year: Optional[int] = None
    row_type_counts: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _freeze_mappings(self, "row_type_counts")

    def has_errors(self, strict: bool = False) -> bool:
        """True if any row was rejected (or, in strict mode, any warning)."""
        return bool(self.errors) or (strict and bool(self.warnings))

    def import_summary(self) -> str:
        """One-line operator summary: 'N of M rows imported, K errors, J warnings'."""
        return (
            f"{self.imported_rows} of {self.total_rows} rows imported, "
            f"{len(self.errors)} errors, {len(self.warnings)} warnings"
        )

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def to_console_summary(self, max_messages: int = 10) -> str:
        """Summary followed by the first few errors and warnings."""
        lines: List[str] = [
            f"Parse Summary: {self.kind.value} ({self.sheet_name})",
            f"  {self.import_summary()}",
            f"  Records: {self.summary.record_count}",
        ]
        if self.summary.date_range is not None:
            lines.append(
                f"  Dates: {self.summary.date_range.start} .. {self.summary.date_range.end} "
                f"({self.summary.date_count} distinct)"
            )
        if not self.errors and not self.warnings:
            lines.append("✅ All rows parsed cleanly")
            return "\n".join(lines)
        for err in self.errors[:max_messages]:
            lines.append(f"❌ Row {err.row}: {err.message}")
        if len(self.errors) > max_messages:
            lines.append(f"   ... {len(self.errors) - max_messages} more errors")
        for warn in self.warnings[:max_messages]:
            lines.append(f"⚠️ Row {warn.row}, col {warn.column}: {warn.message}")
        if len(self.warnings) > max_messages:
            lines.append(f"   ... {len(self.warnings) - max_messages} more warnings")
        return "\n".join(lines)


__all__ = [
    "RowError",
    "RowWarning",
    "Bill",
    "BudgetLine",
    "CashFlowTransaction",
    "ParsedRecord",
    "DateRange",
    "LineItemCount",
    "DailyTotal",
    "ParseSummary",
    "ParseResult",
]
