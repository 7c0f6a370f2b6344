"""Bulk import pipeline: header aliasing, row classification, validation and commit.

The Frappe adapter (``frappe_bulk_import.importer.frappe``) is not imported
here so the pipeline stays usable without a bench.
"""

from __future__ import annotations

from .classifier import RowDisposition, classify_row
from .decoder import decode_row, normalize_header, resolve_header
from .entities import CUSTOMER_SCHEMA, PRODUCT_SCHEMA, SCHEMAS, get_schema
from .gateway import CommitGateway, InMemoryCommitGateway
from .orchestrator import (
    ImportOutcome,
    RowError,
    RowOutcome,
    commit_outcome,
    process_row,
    run_import,
    validate_rows,
)
from .records import CustomerRecord, ImportRecord, ProductRecord
from .schema import EntityKind, EntitySchema, FieldKind, FieldSchema, alias_table
from .service import ImportResponse, ResponseKind, check_upload, import_workbook
from .validators import Err, Ok, parse_decimal, validate_field, validate_row

__all__ = [
    # Definitions
    "EntityKind",
    "EntitySchema",
    "FieldKind",
    "FieldSchema",
    "alias_table",
    "CUSTOMER_SCHEMA",
    "PRODUCT_SCHEMA",
    "SCHEMAS",
    "get_schema",
    # Records
    "ImportRecord",
    "CustomerRecord",
    "ProductRecord",
    # Stages
    "normalize_header",
    "resolve_header",
    "decode_row",
    "RowDisposition",
    "classify_row",
    "Ok",
    "Err",
    "parse_decimal",
    "validate_field",
    "validate_row",
    # Orchestration
    "RowError",
    "RowOutcome",
    "ImportOutcome",
    "process_row",
    "validate_rows",
    "commit_outcome",
    "run_import",
    # Persistence
    "CommitGateway",
    "InMemoryCommitGateway",
    # Service
    "ImportResponse",
    "ResponseKind",
    "check_upload",
    "import_workbook",
]
