"""Budget-line parser and budget template generator.

Budget sheets are narrow: one line item per row, twelve month columns and an
annual total. Section markers sit in column A ("AIRCRAFT REVENUE", "FIXED
EXPENSES"), category headers are labels with no amounts, and computed rows
("TOTAL", "Net Charter Margin") are skipped.
"""

from __future__ import annotations

import logging
from datetime import date
from io import BytesIO
from typing import Any, List, Optional, Sequence, Tuple

import pandas as pd
from openpyxl.utils import get_column_letter

from command_center.core.enums import AmountContext, ParserKind
from command_center.core.exceptions import StructuralError
from command_center.core.schemas import (
    DEFAULT_BUDGET_CATEGORY,
    MONTH_FIELDS,
    BudgetField,
    Vocabulary,
)
from command_center.core.utils import extract_year
from ..aggregator import ResultAggregator
from ..classifier import RowType, SectionState
from ..config import BUDGET_MARKER_COL, FIXED_COST_MIN_SAMPLES_LINE_ITEM
from ..cost import classify_cost_behavior
from ..headers import HeaderMapping, resolve_budget_layout
from ..models import BudgetLine, ParseResult
from ..normalizers import cell_text, normalize_amount
from ..workbook import load_sheet
from ._common import cell_at, row_cells, source_row, vocabulary_or_default


logger = logging.getLogger(__name__)


def _read_amounts(
    row: Sequence[Any], mapping: HeaderMapping
) -> Tuple[List[int], int, List[str]]:
    """Monthly cents, total cents and any problems found on the row."""
    problems: List[str] = []
    months: List[int] = []
    for month in MONTH_FIELDS:
        raw = cell_at(row, mapping.column_for(month))
        amount = normalize_amount(raw, AmountContext.BUDGET)
        if amount is None:
            problems.append(f"Invalid amount for {month.value}: {cell_text(raw)!r}")
            amount = 0
        months.append(int(amount))

    raw_total = cell_at(row, mapping.column_for(BudgetField.TOTAL))
    total = normalize_amount(raw_total, AmountContext.BUDGET)
    if total is None:
        problems.append(f"Invalid annual total: {cell_text(raw_total)!r}")
        total = 0
    return months, int(total), problems


def parse_budget_sheet(
    buffer: bytes,
    *,
    sheet_name: Optional[str] = None,
    vocabulary: Optional[Vocabulary] = None,
    fixed_cost_min_samples: int = FIXED_COST_MIN_SAMPLES_LINE_ITEM,
) -> ParseResult:
    """Parse a budget sheet into BudgetLine records.

    The header row is the first row naming at least six months; without one
    the positional layout (label in C, months in E..P, total in Q) is used.
    The annual total is the total column when non-zero, otherwise the sum of
    the months.

    Args:
        buffer: Raw workbook bytes (xlsx, xls or CSV).
        sheet_name: Sheet to read; defaults to the first ``YYYY Budget`` sheet.
        vocabulary: Header aliases, section keywords and skip labels.
        fixed_cost_min_samples: Non-zero months needed before a line can be
            classified as a fixed cost.

    Returns:
        ParseResult with BudgetLine records (cents), ``categories`` in
        first-seen order and ``year`` from the sheet name.

    Raises:
        StructuralError: If the workbook is unreadable, the sheet is missing,
            or the sheet has no rows.

    Examples:
        >>> result = parse_budget_sheet(generate_budget_template(2026))
        >>> result.year, result.categories[:2]
        (2026, ('Lease Revenue', 'Warranties'))
    """
    vocabulary = vocabulary_or_default(vocabulary, ParserKind.BUDGET)
    name, df = load_sheet(buffer, ParserKind.BUDGET, sheet_name)
    mapping = resolve_budget_layout(df, vocabulary)
    label_col = mapping.column_for(BudgetField.LINE_ITEM)
    value_cols = [mapping.column_for(m) for m in MONTH_FIELDS] + [
        mapping.column_for(BudgetField.TOTAL)
    ]

    state = SectionState(category_follows_section=True)
    aggregator = ResultAggregator(ParserKind.BUDGET, name)

    # ===================== MARK: Main Loop ====================================
    for i in range(len(df)):
        if i == mapping.header_row:
            continue
        row = row_cells(df, i)
        row_num = source_row(i)
        classification = state.track(
            cell_at(row, BUDGET_MARKER_COL),
            cell_at(row, label_col),
            [cell_at(row, c) for c in value_cols],
            vocabulary,
            amount_context=AmountContext.BUDGET,
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

        # ===================== MARK: State Transition =========================
        if classification.row_type == RowType.CATEGORY_HEADER:
            aggregator.add_category(state.current_category)
        if classification.row_type != RowType.DATA:
            continue

        # ===================== MARK: Data Extraction ==========================
        months, total, problems = _read_amounts(row, mapping)
        if problems:
            aggregator.add_error(row_num, problems)
            continue
        computed = sum(months)
        if computed == 0 and total == 0:
            logger.debug("Row %d: all amounts cancel out, skipping", row_num)
            continue

        category = state.current_category or DEFAULT_BUDGET_CATEGORY
        line = BudgetLine(
            name=classification.label,
            category=category,
            section=state.current_section,
            monthly_cents=tuple(months),
            annual_total_cents=total if total != 0 else computed,
            cost_behavior=classify_cost_behavior(months, min_samples=fixed_cost_min_samples),
        )
        aggregator.add_record(line, row_num)
        aggregator.add_category(category)

    if aggregator.total_rows == 0:
        raise StructuralError(f'Sheet "{name}" has no budget rows', sheet_name=name)
    return aggregator.build(year=extract_year(name))


# ===================== MARK: Template ========================================

_TEMPLATE_HEADER = ["", "", "Account Description", ""] + [
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
] + ["Total"]

_TEMPLATE_COLUMN_WIDTHS = [30, 12, 35, 3] + [10] * 12 + [12]


def _template_line(name: str, months: Sequence[float]) -> List[Any]:
    return ["", "", name, ""] + list(months) + [round(sum(months), 2)]


def _template_rows() -> List[List[Any]]:
    engine = [3058.70] * 12
    airframe = [1500] * 12
    aircraft_ins = [0] * 10 + [25000, 0]
    liability_ins = [2000] * 12
    pilot_training = [0, 0, 15000, 0, 0, 0, 0, 0, 15000, 0, 0, 0]
    return [
        ["AIRCRAFT REVENUE"],
        _TEMPLATE_HEADER,
        _template_line("Lease Revenue", [0] * 12),
        [],
        ["FIXED EXPENSES"],
        _TEMPLATE_HEADER,
        [],
        ["", "", "Warranties"],
        _template_line("Engine Program", engine),
        _template_line("Airframe Program", airframe),
        _template_line("TOTAL", [a + b for a, b in zip(engine, airframe)]),
        [],
        ["", "", "Insurances"],
        _template_line("Aircraft Insurance", aircraft_ins),
        _template_line("Liability Insurance", liability_ins),
        _template_line("TOTAL", [a + b for a, b in zip(aircraft_ins, liability_ins)]),
        [],
        ["", "", "Training"],
        _template_line("Pilot Recurrent Training", pilot_training),
        _template_line("TOTAL", pilot_training),
    ]


def generate_budget_template(year: Optional[int] = None) -> bytes:
    """Build a starter ``YYYY Budget`` workbook in the layout the parser reads.

    Args:
        year: Year in the sheet name; defaults to the current year.

    Returns:
        The ``.xlsx`` file as bytes.
    """
    sheet_name = f"{year or date.today().year} Budget"
    width = len(_TEMPLATE_HEADER)
    rows = [
        [None if cell == "" else cell for cell in row] + [None] * (width - len(row))
        for row in _template_rows()
    ]
    df = pd.DataFrame(rows)

    out = BytesIO()
    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        worksheet = writer.sheets[sheet_name]
        for idx, col_width in enumerate(_TEMPLATE_COLUMN_WIDTHS, start=1):
            worksheet.column_dimensions[get_column_letter(idx)].width = col_width
    return out.getvalue()


__all__ = ["parse_budget_sheet", "generate_budget_template"]
