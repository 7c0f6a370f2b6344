import io
import textwrap

import pytest
from openpyxl import Workbook


def dedent_csv(text: str) -> bytes:
    """Dedent a triple-quoted CSV literal and return it as UTF-8 bytes."""
    return textwrap.dedent(text).strip().encode("utf-8")


def create_xlsx_workbook(headers: list, rows: list[list]) -> bytes:
    """Build an in-memory XLSX workbook with one sheet."""
    wb = Workbook()
    ws = wb.active
    ws.append(headers)
    for row in rows:
        ws.append(row)

    fp = io.BytesIO()
    wb.save(fp)
    return fp.getvalue()


@pytest.fixture
def csv_bytes():
    return dedent_csv


@pytest.fixture
def xlsx_bytes():
    return create_xlsx_workbook
