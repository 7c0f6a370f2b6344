"""Drives decode -> classify -> validate over a sheet and, when clean, commits it."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Optional

from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from frappe_bulk_import.errors import CommitError, EmptyFileError
from frappe_bulk_import.workbook.core import RawRow

from .classifier import RowDisposition, classify_row
from .decoder import decode_row
from .gateway import CommitGateway
from .schema import EntitySchema
from .validators import Err, validate_row

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RowError:
    """First validation problem found on a row."""

    row: int
    field: str
    message: str

    def to_dict(self) -> dict[str, object]:
        """Wire form; ``field`` uses the camelCase alias of the record field."""
        return {"row": self.row, "field": to_camel(self.field), "message": self.message}


@dataclass(frozen=True)
class RowOutcome:
    """Result of processing one row: skipped, a record, or an error."""

    row_number: int
    record: Optional[BaseModel] = None
    error: Optional[RowError] = None

    @property
    def skipped(self) -> bool:
        return self.record is None and self.error is None


@dataclass(frozen=True)
class ImportOutcome:
    """Aggregated result of one import.

    ``errors`` and ``valid_records`` are in ascending row order. ``committed``
    is only ever true when ``errors`` is empty, and then ``committed_count``
    equals ``len(valid_records)``.
    """

    errors: tuple[RowError, ...] = ()
    valid_records: tuple[BaseModel, ...] = ()
    skipped_rows: tuple[int, ...] = ()
    committed: bool = False
    committed_count: int = 0

    @property
    def valid_count(self) -> int:
        return len(self.valid_records)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)


def process_row(raw: RawRow, schema: EntitySchema) -> RowOutcome:
    """Decode, classify and validate a single row."""
    decoded = decode_row(raw.cells, schema.aliases)

    if classify_row(decoded, schema) == RowDisposition.skip:
        logger.debug("Skipping row %s (blank or repeated header)", raw.row_number)
        return RowOutcome(row_number=raw.row_number)

    result = validate_row(decoded, schema)
    if isinstance(result, Err):
        return RowOutcome(
            row_number=raw.row_number,
            error=RowError(row=raw.row_number, field=result.field, message=result.message),
        )
    return RowOutcome(row_number=raw.row_number, record=result.value)


def validate_rows(
    rows: Sequence[RawRow],
    schema: EntitySchema,
    *,
    workers: int = 1,
) -> ImportOutcome:
    """Validate every row of a sheet, accumulating records and errors.

    All rows are processed even after failures so a user sees every problem
    in one pass. Nothing is committed here.

    Args:
        rows: Decoded data rows of the first sheet
        schema: Entity definition to validate against
        workers: Number of threads used to validate rows; 1 validates inline

    Raises:
        EmptyFileError: If ``rows`` is empty
    """
    if not rows:
        raise EmptyFileError()
    if workers < 1:
        raise ValueError("workers must be >= 1")

    if workers == 1:
        outcomes = [process_row(raw, schema) for raw in rows]
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda raw: process_row(raw, schema), rows))

    outcomes.sort(key=lambda outcome: outcome.row_number)

    errors: list[RowError] = []
    records: list[BaseModel] = []
    skipped: list[int] = []
    for outcome in outcomes:
        if outcome.error is not None:
            errors.append(outcome.error)
        elif outcome.record is not None:
            records.append(outcome.record)
        else:
            skipped.append(outcome.row_number)

    return ImportOutcome(
        errors=tuple(errors),
        valid_records=tuple(records),
        skipped_rows=tuple(skipped),
    )


def commit_outcome(
    outcome: ImportOutcome,
    schema: EntitySchema,
    *,
    tenant_id: str,
    gateway: CommitGateway,
) -> ImportOutcome:
    """Persist the valid records of a clean outcome in one atomic call.

    Raises:
        ValueError: If the outcome carries validation errors
        CommitError: If the store rejects the batch or reports a short write
    """
    if outcome.has_errors:
        raise ValueError("refusing to commit an import with validation errors")

    records = list(outcome.valid_records)
    count = gateway.create_many(tenant_id, schema.kind, records)
    if count != len(records):
        raise CommitError(
            f"Expected to persist {len(records)} {schema.plural}, store reported {count}",
            entity_kind=schema.kind.value,
        )
    return replace(outcome, committed=True, committed_count=count)


def run_import(
    rows: Sequence[RawRow],
    schema: EntitySchema,
    *,
    tenant_id: str,
    gateway: CommitGateway,
    workers: int = 1,
) -> ImportOutcome:
    """Validate a sheet and commit it only when every row is valid."""
    outcome = validate_rows(rows, schema, workers=workers)
    logger.info(
        "Validated %s import: %s valid, %s invalid, %s skipped",
        schema.plural,
        outcome.valid_count,
        outcome.error_count,
        len(outcome.skipped_rows),
    )

    if outcome.has_errors:
        logger.warning(
            "Not committing %s for tenant %s: %s row(s) failed validation",
            schema.plural,
            tenant_id,
            outcome.error_count,
        )
        return outcome

    committed = commit_outcome(outcome, schema, tenant_id=tenant_id, gateway=gateway)
    logger.info(
        "Committed %s %s for tenant %s", committed.committed_count, schema.plural, tenant_id
    )
    return committed
