"""Pre-parse file admission checks (extension and size)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from numbers import Integral
from pathlib import PurePath
from typing import Any, Optional, Union

from command_center.core.enums import ParserKind
from .config import MB, get_allowed_extensions, get_max_bytes


logger = logging.getLogger(__name__)

_EXTENSION_MESSAGES = {
    ParserKind.BILLS: "Please upload a valid Excel file (.xlsx, .xls) or CSV file",
    ParserKind.BUDGET: "Please upload a valid Excel file (.xlsx, .xls) or CSV file",
    ParserKind.CASH_FLOW: "Please upload an Excel file (.xlsx or .xls)",
}


@dataclass(frozen=True)
class AdmissionResult:
    valid: bool
    error: Optional[str] = None


def file_extension(file_name: Any) -> str:
    """Lowercased extension with its dot, or "" when the name has none.

    A name that is only an extension, such as ``.xlsx``, still counts.
    """
    _, dot, tail = PurePath(str(file_name or "")).name.rpartition(".")
    return f".{tail.lower()}" if dot else ""


def check_admission(
    file_name: str, size_bytes: int, kind: Union[ParserKind, str]
) -> AdmissionResult:
    """Check an upload's extension and size before parsing.

    Never raises; every problem is reported through the result.

    Examples:
        >>> check_admission("bills.csv", 2048, ParserKind.BILLS)
        AdmissionResult(valid=True, error=None)
        >>> check_admission("flow.csv", 2048, ParserKind.CASH_FLOW).error
        'Please upload an Excel file (.xlsx or .xls)'
    """
    try:
        kind = ParserKind(kind)
    except (ValueError, TypeError):
        return AdmissionResult(valid=False, error=f"Unsupported parser kind: {kind}")

    extension = file_extension(file_name)
    if extension not in get_allowed_extensions(kind):
        logger.debug("Rejected %r: extension %r not allowed for %s", file_name, extension, kind.value)
        return AdmissionResult(valid=False, error=_EXTENSION_MESSAGES[kind])

    if isinstance(size_bytes, bool) or not isinstance(size_bytes, Integral):
        logger.debug("Rejected %r: size %r is not a byte count", file_name, size_bytes)
        return AdmissionResult(valid=False, error="Invalid file size")

    max_bytes = get_max_bytes(kind)
    if size_bytes < 0 or size_bytes > max_bytes:
        logger.debug("Rejected %r: %d bytes exceeds %d", file_name, size_bytes, max_bytes)
        return AdmissionResult(
            valid=False, error=f"File size must be less than {max_bytes // MB}MB"
        )

    return AdmissionResult(valid=True)


__all__ = ["AdmissionResult", "file_extension", "check_admission"]
