"""Sheet decoding for workbook-like uploads (CSV/XLSX)."""

from __future__ import annotations

from .core import (
    RawRow,
    TabularFormat,
    UndecodableFileError,
    WorkbookConfig,
    detect_format,
    read_rows,
    stringify_cell,
)

__all__ = [
    "RawRow",
    "TabularFormat",
    "UndecodableFileError",
    "WorkbookConfig",
    "detect_format",
    "read_rows",
    "stringify_cell",
]
