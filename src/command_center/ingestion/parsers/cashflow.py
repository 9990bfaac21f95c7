"""Cash-flow parser: wide sheets with one column per date.

Row 1 carries dates from column D onward. Column A holds section markers
("Cash In", "Cash Out", "Investments") and column B the line-item label.
Every non-zero amount under a date becomes one CashFlowTransaction; text in a
value cell becomes a RowWarning.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Optional, Sequence

from command_center.core.enums import AmountContext, ParserKind, Section, direction_for_section
from command_center.core.exceptions import StructuralError
from command_center.core.schemas import CashFlowField, Vocabulary
from ..aggregator import ResultAggregator
from ..classifier import RowType, SectionState
from ..config import (
    CASH_FLOW_FIRST_DATE_COL,
    CASH_FLOW_LABEL_COL,
    CASH_FLOW_MARKER_COL,
    DATE_SERIAL_MAX,
    DATE_SERIAL_MIN,
)
from ..headers import resolve_headers
from ..models import CashFlowTransaction, ParseResult, RowWarning
from ..normalizers import cell_text, is_blank, normalize_amount, normalize_date
from ..workbook import load_sheet
from ._common import cell_at, row_cells, source_row, vocabulary_or_default


logger = logging.getLogger(__name__)

DEFAULT_SECTION = Section.CASH_IN


def find_date_columns(header: Sequence[Any]) -> Dict[int, str]:
    """Map column index to ISO date for the date header row.

    Numeric cells only count as dates inside the serial window, so stray
    numbers in the header row are not read as dates.

    Examples:
        >>> find_date_columns(["", "", "", 45000, "note", "3/16/2023"])
        OrderedDict([(3, '2023-03-15'), (5, '2023-03-16')])
    """
    columns: Dict[int, str] = OrderedDict()
    for col in range(CASH_FLOW_FIRST_DATE_COL, len(header)):
        iso = normalize_date(header[col], serial_window=(DATE_SERIAL_MIN, DATE_SERIAL_MAX))
        if iso is not None:
            columns[col] = iso
    return columns


def _label_columns(header: Sequence[Any], vocabulary: Vocabulary) -> tuple[int, int]:
    """Marker and line-item columns, from header labels when present."""
    mapping = resolve_headers(header[:CASH_FLOW_FIRST_DATE_COL], vocabulary)
    marker_col = mapping.column_for(CashFlowField.LABEL)
    label_col = mapping.column_for(CashFlowField.LINE_ITEM)
    return (
        CASH_FLOW_MARKER_COL if marker_col is None else marker_col,
        CASH_FLOW_LABEL_COL if label_col is None else label_col,
    )


def parse_cash_flow(
    buffer: bytes,
    *,
    sheet_name: Optional[str] = None,
    vocabulary: Optional[Vocabulary] = None,
) -> ParseResult:
    """Parse a cash-flow sheet into dated transactions.

    Args:
        buffer: Raw workbook bytes (xlsx or xls).
        sheet_name: Sheet to read; defaults to the first sheet whose name
            mentions cash flow, else the first sheet.
        vocabulary: Section keywords and skip labels.

    Returns:
        ParseResult with CashFlowTransaction records, RowWarnings for text
        annotations, per-line-item counts and daily totals.

    Raises:
        StructuralError: If the workbook is unreadable, the sheet is missing,
            or the sheet is empty.
    """
    vocabulary = vocabulary_or_default(vocabulary, ParserKind.CASH_FLOW)
    name, df = load_sheet(buffer, ParserKind.CASH_FLOW, sheet_name)
    aggregator = ResultAggregator(ParserKind.CASH_FLOW, name)

    # ===================== MARK: Date Header ==================================
    header = row_cells(df, 0)
    date_columns = find_date_columns(header)
    marker_col, label_col = _label_columns(header, vocabulary)
    if not date_columns:
        logger.warning("Sheet %r has no date columns in row 1", name)
        aggregator.add_error(source_row(0), ["No date columns found in header row"])
        return aggregator.build()
    logger.debug("Date columns: %s", date_columns)

    # ===================== MARK: Main Loop ====================================
    state = SectionState(current_section=DEFAULT_SECTION)
    for i in range(1, len(df)):
        row = row_cells(df, i)
        row_num = source_row(i)
        line_item = cell_text(cell_at(row, label_col)) or cell_text(cell_at(row, marker_col))
        values = [cell_at(row, c) for c in date_columns]
        classification = state.track(
            cell_at(row, marker_col),
            line_item,
            values,
            vocabulary,
            amount_context=AmountContext.CASH_FLOW,
            text_counts_as_payload=True,
        )
        aggregator.count_row(classification.row_type)
        logger.debug(
            "Row %d: Type=%s, Section=%s, Data=%s",
            row_num,
            classification.row_type.name,
            state.current_section,
            row,
        )

        if classification.row_type == RowType.CATEGORY_HEADER:
            aggregator.add_category(state.current_category)
        if classification.row_type != RowType.DATA:
            continue

        # ===================== MARK: Data Extraction ==========================
        section = state.current_section or DEFAULT_SECTION
        direction = direction_for_section(section)
        for col, iso_date in date_columns.items():
            raw = cell_at(row, col)
            if is_blank(raw) or cell_text(raw) == "0":
                continue
            amount = normalize_amount(raw, AmountContext.CASH_FLOW)
            if amount is None:
                text = cell_text(raw)
                aggregator.add_warning(
                    RowWarning(
                        row=row_num,
                        column=col + 1,
                        line_item_name=classification.label,
                        date=iso_date,
                        raw_value=text,
                        message=f'Text annotation: "{text}"',
                    )
                )
                continue
            if amount == 0:
                continue
            aggregator.add_record(
                CashFlowTransaction(
                    date=iso_date,
                    line_item=classification.label,
                    section=section,
                    amount=amount,
                    direction=direction,
                    category=state.current_category,
                ),
                row_num,
            )

    if aggregator.total_rows == 0:
        raise StructuralError(f'Sheet "{name}" has no rows below the date header', sheet_name=name)
    return aggregator.build()


__all__ = ["DEFAULT_SECTION", "find_date_columns", "parse_cash_flow"]
