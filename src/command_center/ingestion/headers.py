"""Header resolution: raw header strings to canonical fields.

Headers are matched through the vocabulary's alias table after
`normalize_label`. Unknown headers land in the extension bucket and their
values are carried into record metadata. When two headers resolve to the same
field the rightmost column wins; the shadowed column is kept on the mapping so
its values are not lost.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

import pandas as pd

from command_center.core.schemas import EXTENSION, MONTH_FIELDS, BudgetField, Vocabulary
from .config import (
    BUDGET_FIRST_MONTH_COL,
    BUDGET_HEADER_SEARCH_ROWS,
    BUDGET_LABEL_COL,
    BUDGET_MIN_MONTH_HEADERS,
    BUDGET_TOTAL_COL,
)
from .normalizers import cell_text, is_blank, plain_cell


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedColumn:
    index: int
    raw_header: str
    target: Union[Enum, str]

    @property
    def is_extension(self) -> bool:
        return self.target == EXTENSION


@dataclass(frozen=True)
class HeaderMapping:
    """Column layout of one sheet.

    Attributes:
        columns: Every non-blank header, left to right.
        field_columns: Canonical field -> winning column index.
        shadowed: Columns that lost a duplicate-field conflict.
        header_row: 0-based row index of the header row, None for a
            positional layout.
    """

    columns: Tuple[ResolvedColumn, ...] = ()
    field_columns: Mapping[Enum, int] = field(default_factory=lambda: MappingProxyType({}))
    shadowed: Tuple[ResolvedColumn, ...] = ()
    header_row: Optional[int] = 0

    def column_for(self, target: Enum) -> Optional[int]:
        return self.field_columns.get(target)

    def has(self, target: Enum) -> bool:
        return target in self.field_columns

    @property
    def extension_columns(self) -> Tuple[ResolvedColumn, ...]:
        return tuple(c for c in self.columns if c.is_extension)

    def value(self, row: Sequence[Any], target: Enum) -> Any:
        """Raw cell for a canonical field, or None when the column is absent."""
        idx = self.field_columns.get(target)
        if idx is None or idx >= len(row):
            return None
        return row[idx]

    def metadata_for(self, row: Sequence[Any]) -> Dict[str, Any]:
        """Non-empty extension and shadowed cells keyed by their raw header."""
        metadata: Dict[str, Any] = {}
        for col in self.extension_columns + self.shadowed:
            if col.index >= len(row) or is_blank(row[col.index]):
                continue
            metadata[col.raw_header] = plain_cell(row[col.index])
        return metadata


def resolve_headers(
    headers: Sequence[Any], vocabulary: Vocabulary, *, header_row: Optional[int] = 0
) -> HeaderMapping:
    """Map raw header cells to canonical fields.

    Args:
        headers: Header cells in column order; blank cells are ignored.
        vocabulary: Alias table to resolve against.
        header_row: 0-based row the headers came from, recorded on the mapping.

    Returns:
        HeaderMapping with the rightmost column winning each field.

    Examples:
        >>> mapping = resolve_headers(["Bill", "Amt", "Due Date", "Account #"], vocab)
        >>> mapping.column_for(BillField.AMOUNT)
        1
        >>> [c.raw_header for c in mapping.extension_columns]
        ['Account #']
    """
    columns = []
    winners: Dict[Enum, ResolvedColumn] = {}
    shadowed = []

    for idx, raw in enumerate(headers):
        text = cell_text(raw)
        if not text:
            continue
        target = vocabulary.resolve_header(text)
        column = ResolvedColumn(index=idx, raw_header=text, target=target or EXTENSION)
        columns.append(column)
        if target is None:
            continue
        previous = winners.get(target)
        if previous is not None:
            logger.warning(
                "Duplicate header for %s: column %d (%r) shadows column %d (%r)",
                target.value,
                idx + 1,
                text,
                previous.index + 1,
                previous.raw_header,
            )
            shadowed.append(previous)
        winners[target] = column

    return HeaderMapping(
        columns=tuple(columns),
        field_columns=MappingProxyType({f: c.index for f, c in winners.items()}),
        shadowed=tuple(shadowed),
        header_row=header_row,
    )


# ===================== MARK: Budget Layout ===================================


def find_budget_header_row(df: pd.DataFrame, vocabulary: Vocabulary) -> Optional[int]:
    """Return the first row in the search window naming enough month columns."""
    months = set(MONTH_FIELDS)
    for i in range(min(len(df), BUDGET_HEADER_SEARCH_ROWS)):
        hits = sum(1 for raw in df.iloc[i].tolist() if vocabulary.resolve_header(cell_text(raw)) in months)
        if hits >= BUDGET_MIN_MONTH_HEADERS:
            return i
    return None


def positional_budget_mapping() -> HeaderMapping:
    """Classic budget layout: label in column C, months E..P, total in Q."""
    fields_by_col: Dict[Enum, int] = {BudgetField.LINE_ITEM: BUDGET_LABEL_COL}
    for offset, month in enumerate(MONTH_FIELDS):
        fields_by_col[month] = BUDGET_FIRST_MONTH_COL + offset
    fields_by_col[BudgetField.TOTAL] = BUDGET_TOTAL_COL
    columns = tuple(
        ResolvedColumn(index=idx, raw_header=f.value, target=f) for f, idx in fields_by_col.items()
    )
    return HeaderMapping(
        columns=columns,
        field_columns=MappingProxyType(fields_by_col),
        header_row=None,
    )


def resolve_budget_layout(df: pd.DataFrame, vocabulary: Vocabulary) -> HeaderMapping:
    """Find the budget header row, falling back to the positional layout.

    A located header that lacks a line-item column borrows the positional
    label column.
    """
    header_row = find_budget_header_row(df, vocabulary)
    if header_row is None:
        logger.warning(
            "No month header row in the first %d rows; using positional budget layout",
            BUDGET_HEADER_SEARCH_ROWS,
        )
        return positional_budget_mapping()

    mapping = resolve_headers(df.iloc[header_row].tolist(), vocabulary, header_row=header_row)
    if mapping.has(BudgetField.LINE_ITEM):
        return mapping
    logger.debug("Header row %d has no line-item column; using column %d", header_row, BUDGET_LABEL_COL)
    fields_by_col = dict(mapping.field_columns)
    fields_by_col[BudgetField.LINE_ITEM] = BUDGET_LABEL_COL
    return HeaderMapping(
        columns=mapping.columns,
        field_columns=MappingProxyType(fields_by_col),
        shadowed=mapping.shadowed,
        header_row=header_row,
    )


__all__ = [
    "ResolvedColumn",
    "HeaderMapping",
    "resolve_headers",
    "find_budget_header_row",
    "positional_budget_mapping",
    "resolve_budget_layout",
]
