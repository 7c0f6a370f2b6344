"""Cast helpers for settings read from environment variables or site config.

Environment values always arrive as strings; site config values may already
be JSON-typed. Every caster accepts both.
"""

from __future__ import annotations

import re
from typing import Any, Callable

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([kmg]?i?b?)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {
    "": 1,
    "b": 1,
    "k": 1024,
    "kb": 1024,
    "kib": 1024,
    "m": 1024**2,
    "mb": 1024**2,
    "mib": 1024**2,
    "g": 1024**3,
    "gb": 1024**3,
    "gib": 1024**3,
}


def parse_file_size(value: Any) -> int | None:
    """Parse a human file size ("10MB", "512 KiB", 2048) into bytes.

    ``None``, ``""`` and ``"none"`` mean "no limit" and return ``None``.

    >>> parse_file_size("10MB")
    10485760
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("file size must be a number or a size string")
    if isinstance(value, (int, float)):
        return int(value)

    text = str(value).strip()
    if text == "" or text.lower() == "none":
        return None

    match = _SIZE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Cannot parse file size {value!r}")
    number, unit = match.groups()
    multiplier = _SIZE_UNITS.get((unit or "").lower())
    if multiplier is None:
        raise ValueError(f"Unknown file size unit in {value!r}")
    return int(float(number) * multiplier)


class Csv:
    """Split a string into a list, with optional per-element casting.

    >>> Csv()(".csv, .xlsx")
    ['.csv', '.xlsx']
    """

    def __init__(
        self,
        cast: Callable[[str], Any] = str,
        delimiter: str = ",",
        strip: bool = True,
    ) -> None:
        self.cast = cast
        self.delimiter = delimiter
        self.strip = strip

    def __call__(self, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return [self.cast(v) for v in value]

        parts = str(value).split(self.delimiter)
        if self.strip:
            parts = [p.strip() for p in parts]
        return [self.cast(p) for p in parts if p]
