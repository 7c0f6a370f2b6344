"""Header normalisation: raw spreadsheet headers -> canonical field names."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any


def normalize_header(header: str) -> str:
    """Lower-case and trim a header for alias lookup."""
    return header.strip().lower()


def resolve_header(header: str, aliases: Mapping[str, str]) -> str:
    """Map a raw header to its canonical name.

    Unknown headers are kept under their normalised spelling; no validator
    reads them, so they are ignored downstream.
    """
    key = normalize_header(header)
    return aliases.get(key, key)


def _clean_cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def decode_row(cells: Mapping[str, Any], aliases: Mapping[str, str]) -> dict[str, str]:
    """Rename the cells of one raw row to canonical fields and trim the values.

    When several headers resolve to the same field, the right-most column wins.
    """
    decoded: dict[str, str] = {}
    for header, value in cells.items():
        decoded[resolve_header(str(header), aliases)] = _clean_cell(value)
    return decoded
