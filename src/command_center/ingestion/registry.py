"""Parser registry and console report.

This module dispatches parsing by kind:
- PARSERS: parser function per ParserKind
- parse_workbook(): runs the parser for a kind and returns its ParseResult
- print_report(): displays a ParseResult to the console
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Union

from command_center.core.enums import ParserKind
from command_center.core.utils import format_cents
from .models import ParseResult
from .parsers import parse_bills, parse_budget_sheet, parse_cash_flow


ParserFn = Callable[..., ParseResult]

# Registry of parser functions keyed by kind
PARSERS: Dict[ParserKind, ParserFn] = {
    ParserKind.BILLS: parse_bills,
    ParserKind.BUDGET: parse_budget_sheet,
    ParserKind.CASH_FLOW: parse_cash_flow,
}


def parse_workbook(buffer: bytes, kind: Union[ParserKind, str], **options: Any) -> ParseResult:
    """Parse a workbook with the parser registered for ``kind``.

    Args:
        buffer: Raw workbook bytes.
        kind: A ParserKind or its string value (e.g. "BUDGET").
        **options: Passed through to the parser (``sheet_name``,
            ``vocabulary``, ``fixed_cost_min_samples`` for budgets).

    Returns:
        The parser's ParseResult.

    Raises:
        ValueError: If ``kind`` is not a known parser kind.
        StructuralError: If the workbook cannot be parsed at all.

    Examples:
        >>> result = parse_workbook(buffer, "BILLS")
        >>> result.kind
        <ParserKind.BILLS: 'BILLS'>
    """
    try:
        parser_kind = ParserKind(kind)
    except ValueError as e:
        valid = ", ".join(k.value for k in ParserKind)
        raise ValueError(f"Unsupported parser kind: {kind}. Valid kinds: {valid}") from e
    return PARSERS[parser_kind](buffer, **options)


def _format_amount(result: ParseResult, amount: Union[int, float]) -> str:
    if result.kind == ParserKind.CASH_FLOW:
        return f"{amount:,.2f}"
    return format_cents(int(amount))


def print_report(result: ParseResult, max_messages: int = 10) -> None:
    """Print a parse result to the console.

    Displays the summary line, totals, then the first errors and warnings.

    Args:
        result: ParseResult to display.
        max_messages: Maximum errors (and warnings) to list.

    Examples:
        >>> print_report(parse_bills(buffer))
        Parse Summary: BILLS (Sheet1)
          2 of 3 rows imported, 1 errors, 0 warnings
          Records: 2
          Dates: 2026-01-15 .. 2026-02-01 (2 distinct)
        Totals:
          Utilities: $1,235
        ❌ Row 3: Invalid or missing amount
    """
    summary = result.summary
    header, *details = result.to_console_summary(max_messages=max_messages).split("\n")
    print(header)
    status = []
    for line in details:
        if line.startswith("  "):
            print(line)
        else:
            status.append(line)

    if result.kind == ParserKind.CASH_FLOW and summary.record_count:
        print("Cash Flow:")
        print(f"  In:  {_format_amount(result, summary.total_cash_in)}")
        print(f"  Out: {_format_amount(result, summary.total_cash_out)}")
        print(f"  Net: {_format_amount(result, summary.net_cash_flow)}")
    elif summary.totals_by_category:
        print("Totals:")
        for category, amount in summary.totals_by_category.items():
            print(f"  {category}: {_format_amount(result, amount)}")
        for behavior, amount in summary.totals_by_behavior.items():
            print(f"  ({behavior}): {_format_amount(result, amount)}")

    for line in status:
        print(line)


__all__ = ["PARSERS", "parse_workbook", "print_report"]
