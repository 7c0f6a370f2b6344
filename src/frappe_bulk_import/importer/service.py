"""Entry point that takes an uploaded buffer to a transport-ready response.

Failures are reported through :class:`ImportResponse.kind` so callers can tell
"fix your spreadsheet" (validation, structural) from "try again later"
(commit) without catching exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from frappe_bulk_import.config import ImportSettings
from frappe_bulk_import.errors import (
    CommitError,
    FileTooLargeError,
    StructuralImportError,
    UnsupportedFileTypeError,
)
from frappe_bulk_import.workbook.core import WorkbookConfig, read_rows

from .entities import get_schema
from .gateway import CommitGateway
from .orchestrator import ImportOutcome, run_import, validate_rows
from .schema import EntityKind, EntitySchema

logger = logging.getLogger(__name__)

VALIDATION_ERROR_MESSAGE = "Validation errors found"


class ResponseKind(str, Enum):
    success = "success"
    validation_failed = "validation_failed"
    structural_error = "structural_error"
    commit_failed = "commit_failed"


@dataclass(frozen=True)
class ImportResponse:
    """Result of :func:`import_workbook`.

    Attributes:
        kind: Which branch the import ended in
        entity_kind: Entity kind requested ("customers" / "products")
        message: Human summary for the branch
        outcome: Validation/commit outcome; ``None`` for structural errors
        details: Underlying reason for commit failures
    """

    kind: ResponseKind
    entity_kind: str
    message: str
    outcome: ImportOutcome | None = None
    details: str | None = None

    @property
    def ok(self) -> bool:
        return self.kind == ResponseKind.success

    def to_dict(self) -> dict[str, Any]:
        """Render the JSON body the transport layer returns."""
        if self.kind == ResponseKind.success:
            return {
                "success": True,
                "message": self.message,
                "count": _success_count(self.outcome),
            }
        if self.kind == ResponseKind.validation_failed and self.outcome is not None:
            return {
                "error": VALIDATION_ERROR_MESSAGE,
                "errors": [error.to_dict() for error in self.outcome.errors],
                "validCount": self.outcome.valid_count,
                "errorCount": self.outcome.error_count,
            }
        if self.kind == ResponseKind.commit_failed:
            return {"error": self.message, "details": self.details}
        return {"error": self.message}


def check_upload(
    content: bytes,
    file_name: str | None,
    settings: ImportSettings,
) -> None:
    """Reject uploads with a disallowed extension or an oversized buffer."""
    if not settings.allows(file_name):
        raise UnsupportedFileTypeError(file_name)

    limit = settings.max_file_size_bytes
    if limit is not None and len(content) > limit:
        raise FileTooLargeError(len(content), limit, file_name)


def import_workbook(
    content: bytes,
    *,
    file_name: str | None,
    entity_kind: EntityKind | str,
    tenant_id: str | None,
    gateway: CommitGateway | None,
    settings: ImportSettings | None = None,
    dry_run: bool = False,
) -> ImportResponse:
    """Decode, validate and (when clean) commit one uploaded spreadsheet.

    Args:
        content: Uploaded file bytes
        file_name: Original file name; its extension selects the format
        entity_kind: ``"customers"`` or ``"products"``
        tenant_id: Tenant the records are created under
        gateway: Atomic persistence capability
        settings: Import settings; loaded from the environment if omitted
        dry_run: Validate only; the gateway is not called and may be ``None``

    Returns:
        ImportResponse describing success, validation failure, a structural
        error or a commit failure.
    """
    if settings is None:
        settings = ImportSettings.load()

    kind_label = getattr(entity_kind, "value", entity_kind)
    try:
        schema = get_schema(entity_kind)
        check_upload(content, file_name, settings)
        rows = read_rows(
            content,
            file_name=file_name,
            config=WorkbookConfig(delimiter=settings.csv_delimiter),
        )
        logger.info("Importing %s %s row(s) from %s", len(rows), schema.plural, file_name)
        if dry_run:
            outcome = validate_rows(rows, schema, workers=settings.parallel_workers)
        else:
            if gateway is None or not tenant_id:
                raise ValueError("tenant_id and gateway are required unless dry_run is set")
            outcome = run_import(
                rows,
                schema,
                tenant_id=tenant_id,
                gateway=gateway,
                workers=settings.parallel_workers,
            )
    except StructuralImportError as e:
        logger.info("Rejected %s upload %s: %s", kind_label, file_name, e)
        return ImportResponse(
            kind=ResponseKind.structural_error,
            entity_kind=str(kind_label),
            message=str(e),
        )
    except CommitError as e:
        logger.error("Failed to commit %s import for tenant %s", kind_label, tenant_id, exc_info=True)
        return ImportResponse(
            kind=ResponseKind.commit_failed,
            entity_kind=str(kind_label),
            message=f"Failed to import {kind_label}",
            details=str(e),
        )

    return _outcome_response(outcome, schema)


def _outcome_response(outcome: ImportOutcome, schema: EntitySchema) -> ImportResponse:
    if outcome.has_errors:
        return ImportResponse(
            kind=ResponseKind.validation_failed,
            entity_kind=schema.plural,
            message=VALIDATION_ERROR_MESSAGE,
            outcome=outcome,
        )
    if outcome.committed:
        message = f"Successfully imported {outcome.committed_count} {schema.singular}(s)"
    else:
        message = f"{outcome.valid_count} {schema.singular}(s) ready to import"
    return ImportResponse(
        kind=ResponseKind.success,
        entity_kind=schema.plural,
        message=message,
        outcome=outcome,
    )


def _success_count(outcome: ImportOutcome | None) -> int:
    if outcome is None:
        return 0
    if outcome.committed:
        return outcome.committed_count
    return outcome.valid_count
