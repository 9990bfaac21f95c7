"""Result aggregation for a single parse call.

`ResultAggregator` collects records, row errors and warnings during the pass
and computes the summary once, in `build()`.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple, Union

from command_center.core.enums import Direction, ParserKind, Section
from .classifier import RowType
from .models import (
    Bill,
    BudgetLine,
    CashFlowTransaction,
    DailyTotal,
    DateRange,
    LineItemCount,
    ParsedRecord,
    ParseResult,
    ParseSummary,
    RowError,
    RowWarning,
)


logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"

Number = Union[int, float]


def _add(totals: Dict[str, Number], key: str, amount: Number) -> None:
    totals[key] = totals.get(key, 0) + amount


class ResultAggregator:
    """Accumulates the outcome of one sheet pass.

    Instances are single-use: create one per parse call and call `build()`
    once at the end.
    """

    def __init__(self, kind: ParserKind, sheet_name: str) -> None:
        self.kind = kind
        self.sheet_name = sheet_name
        self.records: List[ParsedRecord] = []
        self.errors: List[RowError] = []
        self.warnings: List[RowWarning] = []
        self.categories: List[str] = []
        self.row_type_counts: Dict[str, int] = {}
        self.total_rows = 0
        self._imported_rows: Set[int] = set()

    def count_row(self, row_type: RowType) -> None:
        """Tally a classified row; empty rows are not part of the total."""
        self.row_type_counts[row_type.name] = self.row_type_counts.get(row_type.name, 0) + 1
        if row_type != RowType.EMPTY:
            self.total_rows += 1

    def add_record(self, record: ParsedRecord, row: int) -> None:
        self.records.append(record)
        self._imported_rows.add(row)

    def add_error(self, row: int, problems: Sequence[str]) -> None:
        """Record every problem found on a row as a single RowError."""
        self.errors.append(RowError(row=row, message=", ".join(problems)))

    def add_warning(self, warning: RowWarning) -> None:
        self.warnings.append(warning)

    def add_category(self, name: Optional[str]) -> None:
        if name and name not in self.categories:
            self.categories.append(name)

    # ===================== MARK: Summary =====================================

    def _summarize(self) -> ParseSummary:
        by_category: Dict[str, Number] = {}
        by_section: Dict[str, Number] = {}
        by_direction: Dict[str, Number] = {}
        by_behavior: Dict[str, Number] = {}
        dates: List[str] = []
        total: Number = 0

        for record in self.records:
            if isinstance(record, Bill):
                amount: Number = record.amount_cents
                _add(by_category, record.category or UNCATEGORIZED, amount)
                dates.append(record.due_date)
            elif isinstance(record, BudgetLine):
                amount = record.annual_total_cents
                _add(by_category, record.category, amount)
                if record.section is not None:
                    _add(by_section, record.section.value, amount)
                _add(by_behavior, record.cost_behavior.value, amount)
            elif isinstance(record, CashFlowTransaction):
                amount = record.amount
                _add(by_section, record.section.value, amount)
                _add(by_direction, record.direction.value, amount)
                if record.category:
                    _add(by_category, record.category, amount)
                dates.append(record.date)
            else:
                raise TypeError(f"Unsupported record type: {type(record).__name__}")
            total += amount

        distinct_dates = sorted(set(dates))
        date_range = DateRange(distinct_dates[0], distinct_dates[-1]) if distinct_dates else None

        return ParseSummary(
            record_count=len(self.records),
            total_amount=total,
            totals_by_category=by_category,
            totals_by_section=by_section,
            totals_by_direction=by_direction,
            totals_by_behavior=by_behavior,
            date_range=date_range,
            date_count=len(distinct_dates),
            daily_totals=self._daily_totals(),
        )

    def _daily_totals(self) -> Tuple[DailyTotal, ...]:
        per_date: Dict[str, List[float]] = {}
        for record in self.records:
            if not isinstance(record, CashFlowTransaction):
                continue
            cash = per_date.setdefault(record.date, [0.0, 0.0])
            if record.direction == Direction.OUT:
                cash[1] += record.amount
            else:
                cash[0] += record.amount
        return tuple(
            DailyTotal(date=d, cash_in=cin, cash_out=cout, net=cin - cout)
            for d, (cin, cout) in sorted(per_date.items())
        )

    def _line_item_counts(self) -> Tuple[LineItemCount, ...]:
        counts: Dict[Tuple[str, Section], int] = {}
        for record in self.records:
            if isinstance(record, CashFlowTransaction):
                key = (record.line_item, record.section)
                counts[key] = counts.get(key, 0) + 1
        return tuple(LineItemCount(name=n, section=s, count=c) for (n, s), c in counts.items())

    def build(self, *, year: Optional[int] = None) -> ParseResult:
        result = ParseResult(
            kind=self.kind,
            sheet_name=self.sheet_name,
            records=tuple(self.records),
            errors=tuple(self.errors),
            warnings=tuple(self.warnings),
            total_rows=self.total_rows,
            imported_rows=len(self._imported_rows),
            summary=self._summarize(),
            categories=tuple(self.categories),
            line_items=self._line_item_counts(),
            year=year,
            row_type_counts=dict(self.row_type_counts),
        )
        logger.info(
            "Parsed %s sheet %r: %d records, %d errors, %d warnings",
            self.kind.value,
            self.sheet_name,
            len(result.records),
            len(result.errors),
            len(result.warnings),
        )
        return result


__all__ = ["UNCATEGORIZED", "ResultAggregator"]
