"""Sheet decoding for CSV/XLSX uploads.

This module is Frappe-agnostic. It turns a byte buffer into the ordered list
of header -> cell-text mappings that the importer consumes, keeping each row's
physical position in the sheet so error reports point at the right line.
"""

from __future__ import annotations

import csv
import io
import zipfile
import zlib
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any

from frappe_bulk_import.errors import UndecodableFileError

_ZIP_MAGIC = b"PK\x03\x04"
_XLSX_EXTENSIONS = (".xlsx", ".xlsm")


class TabularFormat(str, Enum):
    """Supported workbook formats."""

    auto = "auto"
    csv = "csv"
    xlsx = "xlsx"


@dataclass(frozen=True)
class RawRow:
    """One decoded data row.

    Attributes:
        row_number: 1-based physical sheet row (the header is row 1)
        cells: raw header text -> stringified cell value
    """

    row_number: int
    cells: Mapping[str, str]


@dataclass
class WorkbookConfig:
    """Configuration for sheet decoding."""

    format: TabularFormat = TabularFormat.auto
    delimiter: str = ","  # CSV delimiter
    encoding: str = "utf-8-sig"  # CSV text encoding; -sig strips an Excel BOM

    def __post_init__(self):
        if isinstance(self.format, str) and not isinstance(self.format, TabularFormat):
            self.format = TabularFormat(self.format)
        if len(self.delimiter) != 1:
            raise ValueError("delimiter must be a single character")


def detect_format(content: bytes, file_name: str | None = None) -> TabularFormat:
    """Detect the workbook format from the file name, then from magic bytes.

    XLSX files are ZIP archives, so anything starting with the ZIP local file
    header is treated as a workbook; everything else is read as CSV.
    """
    if file_name:
        lowered = file_name.lower()
        if lowered.endswith(_XLSX_EXTENSIONS):
            return TabularFormat.xlsx
        if lowered.endswith(".csv"):
            return TabularFormat.csv

    if content[:4] == _ZIP_MAGIC:
        return TabularFormat.xlsx
    return TabularFormat.csv


def stringify_cell(value: Any) -> str:
    """Render a cell value as the text a user sees in the spreadsheet."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat()
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def read_rows(
    content: bytes,
    *,
    file_name: str | None = None,
    config: WorkbookConfig | None = None,
) -> list[RawRow]:
    """Decode the first sheet of a CSV/XLSX buffer into :class:`RawRow` objects.

    Args:
        content: Raw file bytes
        file_name: Optional file name used for format detection
        config: Decoding configuration

    Returns:
        Data rows in sheet order; blank rows are dropped, row numbers are kept.
        An empty list when the sheet has no data rows (or no header row).

    Raises:
        UndecodableFileError: If the buffer is not a readable CSV/XLSX file
    """
    if config is None:
        config = WorkbookConfig()

    if config.format == TabularFormat.auto:
        format_to_use = detect_format(content, file_name)
    else:
        format_to_use = config.format

    if format_to_use == TabularFormat.xlsx:
        return list(_iter_xlsx_rows(content))
    return list(_iter_csv_rows(content, config))


def _build_rows(header: Iterable[Any], records: Iterable[tuple[int, Iterable[Any]]]) -> Iterator[RawRow]:
    # Columns with a blank header cell carry no field and are dropped.
    columns = [
        (index, stringify_cell(cell).strip())
        for index, cell in enumerate(header)
        if stringify_cell(cell).strip()
    ]
    if not columns:
        return

    for row_number, values in records:
        values = list(values)
        cells: dict[str, str] = {}
        for index, name in columns:
            cells[name] = stringify_cell(values[index]) if index < len(values) else ""

        if all(not value.strip() for value in cells.values()):
            continue

        yield RawRow(row_number=row_number, cells=cells)


def _iter_csv_rows(content: bytes, config: WorkbookConfig) -> Iterator[RawRow]:
    """Internal helper to decode CSV rows."""
    try:
        text = content.decode(config.encoding)
    except (UnicodeDecodeError, LookupError) as e:
        raise UndecodableFileError(str(e)) from e

    try:
        records = list(csv.reader(io.StringIO(text, newline=""), delimiter=config.delimiter))
    except csv.Error as e:
        raise UndecodableFileError(str(e)) from e

    if not records:
        return

    yield from _build_rows(records[0], enumerate(records[1:], start=2))


def _xlsx_cell_text(cell: Any) -> str:
    """Render a worksheet cell, showing percent-formatted numbers as displayed ("7.5%")."""
    value = cell.value
    number_format = getattr(cell, "number_format", None) or ""
    if "%" in number_format and isinstance(value, (int, float)) and not isinstance(value, bool):
        percent = (Decimal(repr(value)) * 100).normalize()
        return f"{format(percent, 'f')}%"
    return stringify_cell(value)


def _iter_xlsx_rows(content: bytes) -> Iterator[RawRow]:
    """Internal helper to decode the first worksheet of an XLSX workbook."""
    from openpyxl import load_workbook
    from openpyxl.utils.exceptions import InvalidFileException

    try:
        wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise UndecodableFileError(str(e)) from e

    try:
        if not wb.worksheets:
            return
        ws = wb.worksheets[0]

        # Read-only worksheets parse their XML lazily, so a damaged sheet part
        # only fails here. XML parse errors of both etree and lxml subclass SyntaxError.
        try:
            rows = [[_xlsx_cell_text(cell) for cell in row] for row in ws.iter_rows()]
        except (SyntaxError, zipfile.BadZipFile, zlib.error, KeyError, ValueError, EOFError) as e:
            raise UndecodableFileError(str(e)) from e
    finally:
        wb.close()

    if not rows:
        return
    yield from _build_rows(rows[0], enumerate(rows[1:], start=2))
