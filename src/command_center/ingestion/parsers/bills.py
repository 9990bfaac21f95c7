"""Bill parser: one record per row under a single header row."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Tuple

from command_center.core.enums import AmountContext, ParserKind
from command_center.core.exceptions import StructuralError
from command_center.core.schemas import BillField, Vocabulary, get_required_fields
from ..aggregator import ResultAggregator
from ..classifier import RowType
from ..headers import HeaderMapping, resolve_headers
from ..models import Bill, ParseResult
from ..normalizers import cell_text, normalize_amount, normalize_date
from ..workbook import load_sheet
from ._common import first_non_empty_row, is_empty_row, row_cells, source_row, vocabulary_or_default


logger = logging.getLogger(__name__)


def _optional_text(value: Any) -> Optional[str]:
    text = cell_text(value)
    return text or None


def build_bill(row: Sequence[Any], mapping: HeaderMapping) -> Tuple[Optional[Bill], List[str]]:
    """Build a Bill from one row, or return the list of problems found.

    Every rule is checked so the row error names all of them.

    Examples:
        >>> bill, problems = build_bill(["Rent", "", "2026-01-15"], mapping)
        >>> problems
        ['Invalid or missing amount']
    """
    title = cell_text(mapping.value(row, BillField.TITLE))
    amount = normalize_amount(mapping.value(row, BillField.AMOUNT), AmountContext.BILL)
    due_date = normalize_date(mapping.value(row, BillField.DUE_DATE))

    problems: List[str] = []
    if not title:
        problems.append("Missing title")
    if amount is None or amount < 0:
        problems.append("Invalid or missing amount")
    if due_date is None:
        problems.append("Invalid or missing due date")
    if problems:
        return None, problems

    bill = Bill(
        title=title,
        amount_cents=int(amount),
        due_date=due_date,
        category=_optional_text(mapping.value(row, BillField.CATEGORY)),
        payee=_optional_text(mapping.value(row, BillField.PAYEE)),
        notes=_optional_text(mapping.value(row, BillField.NOTES)),
        metadata=mapping.metadata_for(row),
    )
    return bill, []


def parse_bills(
    buffer: bytes,
    *,
    sheet_name: Optional[str] = None,
    vocabulary: Optional[Vocabulary] = None,
) -> ParseResult:
    """Parse a bill spreadsheet into Bill records.

    The first non-empty row is the header row. Blank rows below it are
    ignored; every other row becomes a Bill or a RowError.

    Args:
        buffer: Raw workbook bytes (xlsx, xls or CSV).
        sheet_name: Sheet to read; defaults to the first sheet.
        vocabulary: Header aliases to use; defaults to the built-in table.

    Returns:
        ParseResult with Bill records, amounts in cents.

    Raises:
        StructuralError: If the workbook is unreadable, the sheet is missing,
            or there are no rows below the header.
    """
    vocabulary = vocabulary_or_default(vocabulary, ParserKind.BILLS)
    name, df = load_sheet(buffer, ParserKind.BILLS, sheet_name)

    # ===================== MARK: Header Resolution ============================
    header_idx = first_non_empty_row(df)
    if header_idx is None:
        raise StructuralError(f'Sheet "{name}" has no data rows', sheet_name=name)
    mapping = resolve_headers(row_cells(df, header_idx), vocabulary, header_row=header_idx)
    missing = [f.value for f in get_required_fields(ParserKind.BILLS) if not mapping.has(f)]
    if missing:
        logger.warning("Sheet %r has no column for: %s", name, ", ".join(missing))

    # ===================== MARK: Main Loop ====================================
    aggregator = ResultAggregator(ParserKind.BILLS, name)
    for i in range(header_idx + 1, len(df)):
        row = row_cells(df, i)
        if is_empty_row(row):
            aggregator.count_row(RowType.EMPTY)
            continue
        aggregator.count_row(RowType.DATA)
        row_num = source_row(i)
        logger.debug("Row %d: Type=%s, Section=%s, Data=%s", row_num, RowType.DATA.name, None, row)

        bill, problems = build_bill(row, mapping)
        if bill is None:
            aggregator.add_error(row_num, problems)
            continue
        aggregator.add_record(bill, row_num)
        aggregator.add_category(bill.category)

    if aggregator.total_rows == 0:
        raise StructuralError(f'Sheet "{name}" has no data rows', sheet_name=name)
    return aggregator.build()


__all__ = ["build_bill", "parse_bills"]
