"""Workbook loading, sheet listing and sheet selection.

A buffer starting with the ZIP signature is read as ``.xlsx`` (openpyxl), one
starting with the OLE2 signature as ``.xls`` (xlrd). Anything else is read as
CSV text (UTF-8, else Windows-1252) and exposes a single sheet. Every sheet is returned raw: no header
row, ``dtype=object``, so row ``i`` of the frame is source row ``i + 1``.
"""

from __future__ import annotations

import csv
import logging
import re
import zipfile
from dataclasses import dataclass
from io import BytesIO, StringIO
from typing import List, Optional

import pandas as pd
import xlrd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from command_center.core.enums import ParserKind
from command_center.core.exceptions import StructuralError
from command_center.core.utils import extract_year
from .config import BUDGET_SHEET_PATTERN, CASH_FLOW_SHEET_HINTS


logger = logging.getLogger(__name__)

XLSX_MAGIC = b"PK\x03\x04"
XLS_MAGIC = b"\xd0\xcf\x11\xe0"
CSV_SHEET_NAME = "Sheet1"

_BUDGET_SHEET_RE = re.compile(BUDGET_SHEET_PATTERN, re.IGNORECASE)

_READ_ERRORS = (
    ValueError,
    csv.Error,
    KeyError,
    OSError,
    zipfile.BadZipFile,
    InvalidFileException,
    xlrd.XLRDError,
    CompDocError,
    pd.errors.ParserError,
    pd.errors.EmptyDataError,
)


@dataclass(frozen=True)
class SheetInfo:
    """A sheet name with the year it mentions; non ``YYYY Budget`` sheets are scenarios."""

    name: str
    year: Optional[int]
    is_scenario: bool


def sniff_format(buffer: bytes) -> str:
    """Return 'xlsx', 'xls' or 'csv' from the leading bytes."""
    if buffer.startswith(XLSX_MAGIC):
        return "xlsx"
    if buffer.startswith(XLS_MAGIC):
        return "xls"
    return "csv"


def decode_csv(buffer: bytes) -> str:
    """Decode CSV bytes as UTF-8 (BOM tolerated), falling back to Windows-1252."""
    try:
        return buffer.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("CSV is not valid UTF-8; decoding as cp1252")
        return buffer.decode("cp1252", errors="replace")


def read_csv_frame(buffer: bytes) -> pd.DataFrame:
    """Read CSV bytes into a raw frame as wide as the longest line.

    Rows with more fields than the first line keep their extra cells in extra
    columns instead of failing the read.
    """
    text = decode_csv(buffer)
    width = max((len(fields) for fields in csv.reader(StringIO(text))), default=0)
    if width == 0:
        raise pd.errors.EmptyDataError("No columns to parse from file")
    return pd.read_csv(
        StringIO(text),
        header=None,
        names=list(range(width)),
        dtype=object,
        skip_blank_lines=False,
    )


class Workbook:
    """Read-only view over the sheets of an in-memory workbook."""

    def __init__(self, buffer: bytes) -> None:
        if not isinstance(buffer, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected a bytes buffer, got {type(buffer).__name__}")
        self._buffer = bytes(buffer)
        self.format = sniff_format(self._buffer)
        self._excel: Optional[pd.ExcelFile] = None
        self._csv: Optional[pd.DataFrame] = None

        try:
            if self.format == "csv":
                self._csv = read_csv_frame(self._buffer)
            else:
                engine = "openpyxl" if self.format == "xlsx" else "xlrd"
                self._excel = pd.ExcelFile(BytesIO(self._buffer), engine=engine)
        except pd.errors.EmptyDataError as e:
            raise StructuralError("Workbook is empty") from e
        except _READ_ERRORS as e:
            raise StructuralError(f"Unable to read workbook ({self.format}): {e}") from e

        logger.debug("Loaded %s workbook with sheets %s", self.format, self.sheet_names)

    @property
    def sheet_names(self) -> List[str]:
        if self._excel is not None:
            return [str(name) for name in self._excel.sheet_names]
        return [CSV_SHEET_NAME]

    def read_sheet(self, name: str) -> pd.DataFrame:
        """Return a sheet's raw cells, raising StructuralError if it is absent."""
        if name not in self.sheet_names:
            raise StructuralError(f'Sheet "{name}" not found', sheet_name=name)
        if self._csv is not None:
            return self._csv
        try:
            return self._excel.parse(name, header=None, dtype=object)
        except _READ_ERRORS as e:
            raise StructuralError(f'Unable to read sheet "{name}": {e}', sheet_name=name) from e

    def select_sheet(self, kind: ParserKind, requested: Optional[str] = None) -> str:
        """Pick the sheet a parser should read.

        An explicit ``requested`` name always wins. Otherwise bills take the
        first sheet, budgets the first ``YYYY Budget`` sheet and cash flow the
        first sheet whose name mentions cash flow, each falling back to the
        first sheet.
        """
        names = self.sheet_names
        if not names:
            raise StructuralError("Workbook has no sheets")
        if requested is not None:
            if requested not in names:
                raise StructuralError(f'Sheet "{requested}" not found', sheet_name=requested)
            return requested
        if kind == ParserKind.BUDGET:
            return next((n for n in names if _BUDGET_SHEET_RE.match(n.strip())), names[0])
        if kind == ParserKind.CASH_FLOW:
            return next(
                (n for n in names if any(h in n.lower() for h in CASH_FLOW_SHEET_HINTS)),
                names[0],
            )
        return names[0]

    def sheets(self) -> List[SheetInfo]:
        return [
            SheetInfo(
                name=name,
                year=extract_year(name),
                is_scenario=not _BUDGET_SHEET_RE.match(name.strip()),
            )
            for name in self.sheet_names
        ]


def load_sheet(
    buffer: bytes, kind: ParserKind, sheet_name: Optional[str] = None
) -> tuple[str, pd.DataFrame]:
    """Load a workbook and return the selected sheet's name and raw frame.

    Raises:
        StructuralError: If the buffer is unreadable, the sheet is missing, or
            the sheet has no rows.
    """
    workbook = Workbook(buffer)
    name = workbook.select_sheet(kind, sheet_name)
    df = workbook.read_sheet(name)
    if df.empty or df.dropna(how="all").empty:
        raise StructuralError(f'Sheet "{name}" is empty', sheet_name=name)
    return name, df.reset_index(drop=True)


def list_sheets(buffer: bytes) -> List[SheetInfo]:
    """List a workbook's sheets with their year and scenario flag.

    Examples:
        >>> [s.name for s in list_sheets(buffer) if not s.is_scenario]
        ['2026 Budget']
    """
    return Workbook(buffer).sheets()


__all__ = [
    "XLSX_MAGIC",
    "XLS_MAGIC",
    "CSV_SHEET_NAME",
    "SheetInfo",
    "sniff_format",
    "decode_csv",
    "read_csv_frame",
    "Workbook",
    "load_sheet",
    "list_sheets",
]
