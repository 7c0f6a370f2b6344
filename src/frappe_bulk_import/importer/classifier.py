"""Detection of rows that are silently dropped before validation."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum

from .schema import EntitySchema


class RowDisposition(str, Enum):
    skip = "skip"
    proceed = "continue"


def classify_row(decoded: Mapping[str, str], schema: EntitySchema) -> RowDisposition:
    """Decide whether a decoded row is data or leftover noise.

    A row is skipped when its primary field is empty or equals one of the
    entity's header sentinels (a header row repeated mid-sheet). A real record
    whose name collides with a sentinel is dropped too; that is accepted.
    """
    primary = decoded.get(schema.primary_field, "").strip()
    if not primary or primary in schema.skip_sentinels:
        return RowDisposition.skip
    return RowDisposition.proceed
