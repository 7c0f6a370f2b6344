"""Exception hierarchy for the import pipeline.

Only structural and commit failures are raised. Row-level validation problems
are reported as data on :class:`~frappe_bulk_import.importer.orchestrator.ImportOutcome`.
"""

from __future__ import annotations


class BulkImportError(Exception):
    """Base exception for bulk import failures."""


class StructuralImportError(BulkImportError):
    """The uploaded file cannot be processed at all; the pipeline does not run."""


class UnsupportedFileTypeError(StructuralImportError):
    """Raised when the file extension is not an accepted spreadsheet format."""

    def __init__(self, file_name: str | None = None) -> None:
        self.file_name = file_name
        super().__init__("Invalid file type. Please upload a CSV or Excel file.")


class UndecodableFileError(StructuralImportError):
    """Raised when the buffer cannot be decoded into a sheet."""

    def __init__(self, reason: str | None = None) -> None:
        self.reason = reason
        super().__init__(
            "Failed to parse file. Please ensure it is a valid CSV or Excel file."
        )


class EmptyFileError(StructuralImportError):
    """Raised when a sheet has no data rows below its header."""

    def __init__(self) -> None:
        super().__init__("File is empty or contains no data")


class FileTooLargeError(StructuralImportError):
    """Raised when the buffer exceeds the configured size limit."""

    def __init__(self, size: int, limit: int, file_name: str | None = None) -> None:
        self.size = size
        self.limit = limit
        self.file_name = file_name
        size_mb = size / (1024 * 1024)
        limit_mb = limit / (1024 * 1024)
        super().__init__(
            f"File size exceeds maximum limit. "
            f"File '{file_name or 'Unknown'}' is {size_mb:.2f} MB, "
            f"but maximum allowed size is {limit_mb:.2f} MB."
        )


class UnknownEntityKindError(StructuralImportError):
    """Raised when an import is requested for an entity kind with no schema."""

    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"Unknown entity kind: {kind!r}")


class CommitError(BulkImportError):
    """The persistence layer rejected an already-validated batch.

    Nothing from the batch was persisted.
    """

    def __init__(self, message: str, *, entity_kind: str | None = None) -> None:
        self.entity_kind = entity_kind
        super().__init__(message)


class ConfigError(BulkImportError):
    """Import settings from the environment or site config failed validation."""
