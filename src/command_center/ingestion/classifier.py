"""Row classifier and section tracker.

`classify_row` is a pure function from a row's marker cell, label and value
cells to a tagged `RowClassification`. `SectionState` holds the section and
category carried forward through a single top-to-bottom pass.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional, Sequence

from command_center.core.enums import AmountContext, Section
from command_center.core.schemas import SECTION_LABELS, Vocabulary
from .normalizers import cell_text, is_blank, normalize_amount


logger = logging.getLogger(__name__)


class RowType(Enum):
    """
    Row types assigned during a sheet pass:
    - SECTION_MARKER: Marker cell names a known section (e.g. 'Cash In')
    - CATEGORY_HEADER: Label present, value columns carry no payload
    - SKIPPED: No label, or a computed/summary label such as 'Total'
    - DATA: Label present with payload in the value columns
    - EMPTY: Every cell empty or whitespace
    """

    SECTION_MARKER = auto()
    CATEGORY_HEADER = auto()
    SKIPPED = auto()
    DATA = auto()
    EMPTY = auto()


@dataclass(frozen=True)
class RowClassification:
    row_type: RowType
    label: str = ""
    section: Optional[Section] = None


def has_payload(
    values: Sequence[Any],
    *,
    amount_context: AmountContext = AmountContext.CASH_FLOW,
    text_counts_as_payload: bool = False,
) -> bool:
    """True if any value cell holds a non-zero amount.

    With ``text_counts_as_payload`` a cell of text that is not an amount also
    counts, so annotation-only rows surface as data instead of headers.
    """
    for value in values:
        if is_blank(value):
            continue
        amount = normalize_amount(value, amount_context)
        if amount is None:
            if text_counts_as_payload and isinstance(value, str):
                return True
            continue
        if amount != 0:
            return True
    return False


def classify_row(
    marker: Any,
    label: Any,
    values: Sequence[Any],
    vocabulary: Vocabulary,
    *,
    amount_context: AmountContext = AmountContext.CASH_FLOW,
    text_counts_as_payload: bool = False,
) -> RowClassification:
    """Classify one row.

    Checks run in order: empty row, section marker, missing or deny-listed
    label, then the payload test that separates category headers from data.

    Args:
        marker: The cell that may hold a section keyword.
        label: The row's line-item label.
        values: The value cells (months or date columns).
        vocabulary: Section keywords and skip labels to use.
        amount_context: How value cells are read when testing for payload.
        text_counts_as_payload: Treat non-amount text in value cells as payload.

    Examples:
        >>> classify_row("Cash Out", "", [], vocab).row_type
        <RowType.SECTION_MARKER: 1>
        >>> classify_row("", "Insurance", [0, 0, None], vocab).row_type
        <RowType.CATEGORY_HEADER: 2>
    """
    marker_text = cell_text(marker)
    label_text = cell_text(label)

    if not marker_text and not label_text and all(is_blank(v) for v in values):
        return RowClassification(RowType.EMPTY)

    section = vocabulary.section_for(marker_text)
    if section is not None:
        return RowClassification(RowType.SECTION_MARKER, label=marker_text, section=section)

    if not label_text or vocabulary.is_skipped(label_text):
        return RowClassification(RowType.SKIPPED, label=label_text)

    if not has_payload(
        values, amount_context=amount_context, text_counts_as_payload=text_counts_as_payload
    ):
        return RowClassification(RowType.CATEGORY_HEADER, label=label_text)

    return RowClassification(RowType.DATA, label=label_text)


@dataclass
class SectionState:
    """Section and category in effect for the rows being scanned.

    Created fresh for every parse call.
    """

    current_section: Optional[Section] = None
    current_category: Optional[str] = None
    category_follows_section: bool = False

    def apply(self, classification: RowClassification) -> None:
        if classification.row_type == RowType.SECTION_MARKER:
            self.current_section = classification.section
            if self.category_follows_section and classification.section is not None:
                self.current_category = SECTION_LABELS[classification.section]
            logger.debug("Section -> %s", self.current_section)
        elif classification.row_type == RowType.CATEGORY_HEADER:
            self.current_category = classification.label
            logger.debug("Category -> %s", self.current_category)

    def track(
        self,
        marker: Any,
        label: Any,
        values: Sequence[Any],
        vocabulary: Vocabulary,
        **options: Any,
    ) -> RowClassification:
        """Classify a row and carry its section and category forward.

        A section keyword in the marker cell next to a different line-item
        label opens that section, then the row is classified on its label
        alone, so a line item sharing a row with its section marker is kept.
        """
        classification = classify_row(marker, label, values, vocabulary, **options)
        label_text = cell_text(label)
        if (
            classification.row_type == RowType.SECTION_MARKER
            and label_text
            and label_text.casefold() != classification.label.casefold()
        ):
            self.apply(classification)
            classification = classify_row(None, label_text, values, vocabulary, **options)
        self.apply(classification)
        return classification


__all__ = [
    "RowType",
    "RowClassification",
    "has_payload",
    "classify_row",
    "SectionState",
]
