"""Canonical fields and vocabulary tables for each parser variant.

This module defines the header alias tables, section keywords and summary-row
deny-lists used by the parsers. The tables are static data: extending the
vocabulary means editing (or overriding) a table, never the control flow.

All keys are stored in `normalize_label` form.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple, Type

from .enums import ParserKind, Section
from .utils import normalize_label

# Headers that match no alias are kept as metadata under this bucket name.
EXTENSION = "extension"


class BillField(str, Enum):
    TITLE = "title"
    AMOUNT = "amount"
    DUE_DATE = "due_date"
    CATEGORY = "category"
    PAYEE = "payee"
    NOTES = "notes"


class BudgetField(str, Enum):
    LINE_ITEM = "line_item"
    JAN = "jan"
    FEB = "feb"
    MAR = "mar"
    APR = "apr"
    MAY = "may"
    JUN = "jun"
    JUL = "jul"
    AUG = "aug"
    SEP = "sep"
    OCT = "oct"
    NOV = "nov"
    DEC = "dec"
    TOTAL = "total"


class CashFlowField(str, Enum):
    LABEL = "label"
    LINE_ITEM = "line_item"
    DATE = "date"


MONTH_FIELDS: Tuple[BudgetField, ...] = (
    BudgetField.JAN,
    BudgetField.FEB,
    BudgetField.MAR,
    BudgetField.APR,
    BudgetField.MAY,
    BudgetField.JUN,
    BudgetField.JUL,
    BudgetField.AUG,
    BudgetField.SEP,
    BudgetField.OCT,
    BudgetField.NOV,
    BudgetField.DEC,
)

# ============================================================================
# HEADER ALIASES
# ============================================================================

BILL_HEADER_ALIASES: Mapping[str, BillField] = MappingProxyType(
    {
        "due_date": BillField.DUE_DATE,
        "duedate": BillField.DUE_DATE,
        "date": BillField.DUE_DATE,
        "due": BillField.DUE_DATE,
        "title": BillField.TITLE,
        "name": BillField.TITLE,
        "bill": BillField.TITLE,
        "description": BillField.TITLE,
        "amount": BillField.AMOUNT,
        "amt": BillField.AMOUNT,
        "total": BillField.AMOUNT,
        "category": BillField.CATEGORY,
        "cat": BillField.CATEGORY,
        "type": BillField.CATEGORY,
        "payee": BillField.PAYEE,
        "vendor": BillField.PAYEE,
        "paid_to": BillField.PAYEE,
        "paidto": BillField.PAYEE,
        "notes": BillField.NOTES,
        "note": BillField.NOTES,
        "memo": BillField.NOTES,
        "comments": BillField.NOTES,
    }
)

_MONTH_ALIASES = {
    BudgetField.JAN: ("jan", "january"),
    BudgetField.FEB: ("feb", "february"),
    BudgetField.MAR: ("mar", "march"),
    BudgetField.APR: ("apr", "april"),
    BudgetField.MAY: ("may",),
    BudgetField.JUN: ("jun", "june"),
    BudgetField.JUL: ("jul", "july"),
    BudgetField.AUG: ("aug", "august"),
    BudgetField.SEP: ("sep", "sept", "september"),
    BudgetField.OCT: ("oct", "october"),
    BudgetField.NOV: ("nov", "november"),
    BudgetField.DEC: ("dec", "december"),
}

BUDGET_HEADER_ALIASES: Mapping[str, BudgetField] = MappingProxyType(
    {
        "account_description": BudgetField.LINE_ITEM,
        "account": BudgetField.LINE_ITEM,
        "description": BudgetField.LINE_ITEM,
        "line_item": BudgetField.LINE_ITEM,
        "item": BudgetField.LINE_ITEM,
        "name": BudgetField.LINE_ITEM,
        "total": BudgetField.TOTAL,
        "annual_total": BudgetField.TOTAL,
        "annual": BudgetField.TOTAL,
        **{alias: month for month, aliases in _MONTH_ALIASES.items() for alias in aliases},
    }
)

CASH_FLOW_HEADER_ALIASES: Mapping[str, CashFlowField] = MappingProxyType(
    {
        "section": CashFlowField.LABEL,
        "line_item": CashFlowField.LINE_ITEM,
        "item": CashFlowField.LINE_ITEM,
        "description": CashFlowField.LINE_ITEM,
    }
)

# ============================================================================
# SECTION KEYWORDS
# ============================================================================

CASH_FLOW_SECTION_KEYWORDS: Mapping[str, Section] = MappingProxyType(
    {
        "cash_in": Section.CASH_IN,
        "cash_out": Section.CASH_OUT,
        "investments": Section.INVESTMENTS,
        "investements": Section.INVESTMENTS,
    }
)

BUDGET_SECTION_KEYWORDS: Mapping[str, Section] = MappingProxyType(
    {
        "revenue": Section.REVENUE,
        "aircraft_revenue": Section.REVENUE,
        "fixed_expenses": Section.FIXED_EXPENSES,
        "variable_expenses": Section.VARIABLE_EXPENSES,
        "variable_expenses_charter": Section.VARIABLE_EXPENSES,
    }
)

SECTION_LABELS: Mapping[Section, str] = MappingProxyType(
    {
        Section.CASH_IN: "Cash In",
        Section.CASH_OUT: "Cash Out",
        Section.INVESTMENTS: "Investments",
        Section.REVENUE: "Revenue",
        Section.FIXED_EXPENSES: "Fixed Expenses",
        Section.VARIABLE_EXPENSES: "Variable Expenses",
    }
)

DEFAULT_BUDGET_CATEGORY = "General"

# ============================================================================
# COMPUTED / SUMMARY ROW DENY-LISTS
# ============================================================================

BUDGET_SKIP_LABELS: FrozenSet[str] = frozenset(
    {
        "account_description",
        "total",
        "grand_total",
        "net_aircraft_revenue",
        "net_variable_charter_expenses",
        "net_charter_margin",
        "charter_margin_per_hour",
        "fixed_expenses",
        "variable_expenses",
        "total_fixed_expenses",
        "total_variable_expenses",
    }
)

CASH_FLOW_SKIP_LABELS: FrozenSet[str] = frozenset(
    {
        "total",
        "subtotal",
        "beg_balance",
        "beginning_balance",
        "end_balance",
        "ending_balance",
        "net_cash",
        "net",
    }
)

SUMMARY_SKIP_PREFIXES: Tuple[str, ...] = ("total", "subtotal", "net_")

# A label is also skipped when it contains every token of one of these groups,
# so "Beginning Cash Balance" and "Beg Bank Balance" both count as balances.
CASH_FLOW_SKIP_CONTAINS: Tuple[Tuple[str, ...], ...] = (("beg", "balance"), ("ending", "balance"))


def get_required_fields(kind: ParserKind) -> Tuple[Enum, ...]:
    """Get the canonical fields a record of this kind cannot be built without.

    Examples:
        >>> BillField.DUE_DATE in get_required_fields(ParserKind.BILLS)
        True
    """
    if kind == ParserKind.BILLS:
        return (BillField.TITLE, BillField.AMOUNT, BillField.DUE_DATE)
    elif kind == ParserKind.BUDGET:
        return (BudgetField.LINE_ITEM,)
    elif kind == ParserKind.CASH_FLOW:
        return (CashFlowField.LINE_ITEM, CashFlowField.DATE)
    raise ValueError(f"Unsupported parser kind: {kind}")


def _as_mapping(overrides: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    table = overrides.get(key) or {}
    if not isinstance(table, Mapping):
        raise ValueError(f"'{key}' must be a mapping, got {type(table).__name__}")
    return table


def _as_list(value: Any, key: str) -> List[Any]:
    """A single string counts as a one-item list."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"'{key}' must be a list, got {type(value).__name__}")
    return list(value)


@dataclass(frozen=True)
class Vocabulary:
    """Lookup tables that drive header resolution and row classification.

    Instances are immutable; `extended()` returns a new vocabulary with extra
    aliases, section keywords or skip rules layered over this one.
    """

    field_type: Type[Enum]
    header_aliases: Mapping[str, Enum]
    section_keywords: Mapping[str, Section] = field(default_factory=lambda: MappingProxyType({}))
    skip_labels: FrozenSet[str] = frozenset()
    skip_prefixes: Tuple[str, ...] = ()
    skip_contains: Tuple[Tuple[str, ...], ...] = ()

    def resolve_header(self, raw_header: object) -> Optional[Enum]:
        """Return the canonical field for a raw header, or None."""
        return self.header_aliases.get(normalize_label(raw_header))

    def section_for(self, label: str) -> Optional[Section]:
        """Return the section a marker label names, or None."""
        if not label:
            return None
        return self.section_keywords.get(normalize_label(label))

    def is_skipped(self, label: str) -> bool:
        """True for computed/summary labels such as totals and balances.

        Examples:
            >>> cash_flow_vocab.is_skipped("Beginning Cash Balance")
            True
        """
        key = normalize_label(label)
        if key in self.skip_labels:
            return True
        if any(key.startswith(prefix) for prefix in self.skip_prefixes):
            return True
        return any(all(token in key for token in tokens) for tokens in self.skip_contains)

    def extended(self, overrides: Mapping[str, Any]) -> "Vocabulary":
        """Layer override tables over this vocabulary.

        Args:
            overrides: Mapping with optional keys ``header_aliases``
                ({field: [alias, ...]}), ``section_keywords`` ({keyword: section}),
                ``skip_labels`` ([label, ...]), ``skip_prefixes`` ([prefix, ...])
                and ``skip_contains`` ([[token, ...], ...]).

        Raises:
            ValueError: If a key is unknown, a table has the wrong shape, or a
                value names an unknown field/section.
        """
        if not isinstance(overrides, Mapping):
            raise ValueError(f"Vocabulary overrides must be a mapping, got {type(overrides).__name__}")
        known = {"header_aliases", "section_keywords", "skip_labels", "skip_prefixes", "skip_contains"}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown vocabulary keys: {', '.join(sorted(unknown))}")

        aliases: Dict[str, Enum] = dict(self.header_aliases)
        for field_name, names in _as_mapping(overrides, "header_aliases").items():
            try:
                target = self.field_type(str(field_name).lower())
            except ValueError as e:
                valid = ", ".join(f.value for f in self.field_type)
                raise ValueError(
                    f"Unknown field '{field_name}' for {self.field_type.__name__}. "
                    f"Valid fields: {valid}"
                ) from e
            for name in _as_list(names, f"header_aliases.{field_name}"):
                aliases[normalize_label(name)] = target

        keywords: Dict[str, Section] = dict(self.section_keywords)
        for keyword, section_name in _as_mapping(overrides, "section_keywords").items():
            try:
                keywords[normalize_label(keyword)] = Section(str(section_name).lower())
            except ValueError as e:
                valid = ", ".join(s.value for s in Section)
                raise ValueError(
                    f"Unknown section '{section_name}'. Valid sections: {valid}"
                ) from e

        skip_labels = self.skip_labels | {
            normalize_label(s) for s in _as_list(overrides.get("skip_labels"), "skip_labels")
        }
        skip_prefixes = self.skip_prefixes + tuple(
            normalize_label(s) for s in _as_list(overrides.get("skip_prefixes"), "skip_prefixes")
        )
        skip_contains = self.skip_contains + tuple(
            tuple(normalize_label(t) for t in _as_list(group, "skip_contains[]"))
            for group in _as_list(overrides.get("skip_contains"), "skip_contains")
        )
        return Vocabulary(
            field_type=self.field_type,
            header_aliases=MappingProxyType(aliases),
            section_keywords=MappingProxyType(keywords),
            skip_labels=frozenset(skip_labels),
            skip_prefixes=skip_prefixes,
            skip_contains=skip_contains,
        )


def default_vocabulary(kind: ParserKind) -> Vocabulary:
    """Get the built-in vocabulary for a parser kind."""
    if kind == ParserKind.BILLS:
        return Vocabulary(field_type=BillField, header_aliases=BILL_HEADER_ALIASES)
    elif kind == ParserKind.BUDGET:
        return Vocabulary(
            field_type=BudgetField,
            header_aliases=BUDGET_HEADER_ALIASES,
            section_keywords=BUDGET_SECTION_KEYWORDS,
            skip_labels=BUDGET_SKIP_LABELS,
            skip_prefixes=SUMMARY_SKIP_PREFIXES,
        )
    elif kind == ParserKind.CASH_FLOW:
        return Vocabulary(
            field_type=CashFlowField,
            header_aliases=CASH_FLOW_HEADER_ALIASES,
            section_keywords=CASH_FLOW_SECTION_KEYWORDS,
            skip_labels=CASH_FLOW_SKIP_LABELS,
            skip_prefixes=SUMMARY_SKIP_PREFIXES,
            skip_contains=CASH_FLOW_SKIP_CONTAINS,
        )
    raise ValueError(f"Unsupported parser kind: {kind}")


__all__ = [
    "EXTENSION",
    "BillField",
    "BudgetField",
    "CashFlowField",
    "MONTH_FIELDS",
    "BILL_HEADER_ALIASES",
    "BUDGET_HEADER_ALIASES",
    "CASH_FLOW_HEADER_ALIASES",
    "CASH_FLOW_SECTION_KEYWORDS",
    "BUDGET_SECTION_KEYWORDS",
    "SECTION_LABELS",
    "DEFAULT_BUDGET_CATEGORY",
    "BUDGET_SKIP_LABELS",
    "CASH_FLOW_SKIP_LABELS",
    "SUMMARY_SKIP_PREFIXES",
    "CASH_FLOW_SKIP_CONTAINS",
    "get_required_fields",
    "Vocabulary",
    "default_vocabulary",
]
