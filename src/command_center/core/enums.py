"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class ParserKind(str, Enum):
    """Supported spreadsheet parser variants.

    Values are strings to ease serialization and CLI interchange.
    """

    BILLS = "BILLS"
    BUDGET = "BUDGET"
    CASH_FLOW = "CASH_FLOW"


class Section(str, Enum):
    """Top-level groupings tracked by the row classifier."""

    CASH_IN = "cash_in"
    CASH_OUT = "cash_out"
    INVESTMENTS = "investments"
    REVENUE = "revenue"
    FIXED_EXPENSES = "fixed_expenses"
    VARIABLE_EXPENSES = "variable_expenses"


class Direction(str, Enum):
    IN = "in"
    OUT = "out"


class CostBehavior(str, Enum):
    FIXED = "fixed"
    VARIABLE = "variable"


class AmountContext(str, Enum):
    """Selects how the amount normalizer treats numbers and empty cells.

    - BILL: dollars to integer cents; empty is missing (None).
    - BUDGET: dollars to integer cents; empty and placeholders are 0.
    - CASH_FLOW: plain magnitude kept as float; empty is 0.
    """

    BILL = "bill"
    BUDGET = "budget"
    CASH_FLOW = "cash_flow"


def direction_for_section(section: Section | None) -> Direction:
    """Cash out is the only outflow section; everything else flows in."""
    return Direction.OUT if section == Section.CASH_OUT else Direction.IN


__all__ = [
    "ParserKind",
    "Section",
    "Direction",
    "CostBehavior",
    "AmountContext",
    "direction_for_section",
]
