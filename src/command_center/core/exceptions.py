"""Exception hierarchy for the ingestion engine.

Only whole-file failures are raised; per-row problems are reported as
RowError / RowWarning values on the returned ParseResult.
"""

from __future__ import annotations


class IngestError(Exception):
    """Base class for ingestion failures."""


class StructuralError(IngestError, ValueError):
    """The workbook has no parseable rows, or the requested sheet is absent."""

    def __init__(self, message: str, *, sheet_name: str | None = None) -> None:
        super().__init__(message)
        self.sheet_name = sheet_name


__all__ = ["IngestError", "StructuralError"]
