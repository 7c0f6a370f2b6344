from ._version import __version__
from .errors import BulkImportError, CommitError, StructuralImportError
from .importer import (
    EntityKind,
    ImportOutcome,
    ImportResponse,
    InMemoryCommitGateway,
    ResponseKind,
    import_workbook,
    run_import,
    validate_rows,
)

__all__ = [
    "__version__",
    "BulkImportError",
    "CommitError",
    "StructuralImportError",
    "EntityKind",
    "ImportOutcome",
    "ImportResponse",
    "InMemoryCommitGateway",
    "ResponseKind",
    "import_workbook",
    "run_import",
    "validate_rows",
]
