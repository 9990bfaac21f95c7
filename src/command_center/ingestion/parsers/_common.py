"""Shared parser helpers."""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

import pandas as pd

from command_center.core.enums import ParserKind
from command_center.core.schemas import Vocabulary, default_vocabulary
from ..normalizers import is_blank


logger = logging.getLogger(__name__)


def row_cells(df: pd.DataFrame, i: int) -> List[Any]:
    """Cells of row ``i`` as a plain list."""
    return df.iloc[i].tolist()


def cell_at(row: Sequence[Any], col: Optional[int]) -> Any:
    """Cell at ``col``, or None when the column is absent or out of range."""
    if col is None or col < 0 or col >= len(row):
        return None
    return row[col]


def is_empty_row(row: Sequence[Any]) -> bool:
    """True if every cell is empty or whitespace."""
    return all(is_blank(v) for v in row)


def source_row(i: int) -> int:
    """1-based spreadsheet row number for a 0-based frame index."""
    return i + 1


def first_non_empty_row(df: pd.DataFrame) -> Optional[int]:
    for i in range(len(df)):
        if not is_empty_row(row_cells(df, i)):
            return i
    return None


def vocabulary_or_default(vocabulary: Optional[Vocabulary], kind: ParserKind) -> Vocabulary:
    return vocabulary if vocabulary is not None else default_vocabulary(kind)


__all__ = [
    "row_cells",
    "cell_at",
    "is_empty_row",
    "source_row",
    "first_non_empty_row",
    "vocabulary_or_default",
]
