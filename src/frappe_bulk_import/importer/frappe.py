"""Frappe-specific adapter for the bulk importer.

Provides a commit gateway that inserts DocType documents inside one savepoint,
and helpers that run an import straight from a Frappe ``File`` document.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

try:
    import frappe
    from frappe.model.document import Document
except ImportError:
    frappe = None  # type: ignore[assignment]
    Document = None  # type: ignore[assignment, misc]

from pydantic import BaseModel

from frappe_bulk_import.config import ImportSettings
from frappe_bulk_import.errors import CommitError, FileTooLargeError
from frappe_bulk_import.transaction.atomic import atomic

from .orchestrator import ImportOutcome
from .schema import EntityKind
from .service import ImportResponse, ResponseKind, import_workbook

if TYPE_CHECKING:
    from frappe.model.document import Document as FrappeDocument

logger = logging.getLogger(__name__)


def _require_frappe() -> None:
    if frappe is None:
        raise ImportError("frappe is required to read File documents or insert DocTypes")


class FrappeCommitGateway:
    """Create one document per record, all inside a single ``atomic()`` block.

    If any insert raises, the savepoint is rolled back so none of the batch
    survives, and the failure is re-raised as :class:`CommitError`.

    Args:
        doctypes: Entity kind -> DocType name
        tenant_field: Link field that scopes a document to its tenant
        field_maps: Optional entity kind -> {record field: DocType fieldname}
        ignore_permissions: Passed to ``Document.insert``
    """

    def __init__(
        self,
        doctypes: Mapping[EntityKind, str] | None = None,
        *,
        tenant_field: str = "company",
        field_maps: Mapping[EntityKind, Mapping[str, str]] | None = None,
        ignore_permissions: bool = False,
    ) -> None:
        self.doctypes: dict[EntityKind, str] = {
            EntityKind.customers: "Customer",
            EntityKind.products: "Item",
        }
        if doctypes:
            self.doctypes.update({EntityKind(k): v for k, v in doctypes.items()})
        self.tenant_field = tenant_field
        self.field_maps: dict[EntityKind, dict[str, str]] = {
            EntityKind(k): dict(v) for k, v in (field_maps or {}).items()
        }
        self.ignore_permissions = ignore_permissions

    @classmethod
    def from_settings(cls, settings: ImportSettings, **kwargs: Any) -> "FrappeCommitGateway":
        return cls(
            {
                EntityKind.customers: settings.customer_doctype,
                EntityKind.products: settings.product_doctype,
            },
            tenant_field=settings.tenant_field,
            **kwargs,
        )

    def build_doc(self, tenant_id: str, entity_kind: EntityKind, record: BaseModel) -> dict[str, Any]:
        """Return the ``frappe.get_doc`` payload for one record."""
        kind = EntityKind(entity_kind)
        field_map = self.field_maps.get(kind, {})

        doc: dict[str, Any] = {"doctype": self.doctypes[kind]}
        for field_name, value in record.model_dump(exclude_none=True).items():
            doc[field_map.get(field_name, field_name)] = value
        doc[self.tenant_field] = tenant_id
        return doc

    def create_many(
        self,
        tenant_id: str,
        entity_kind: EntityKind,
        records: Sequence[BaseModel],
    ) -> int:
        _require_frappe()
        kind = EntityKind(entity_kind)

        try:
            with atomic():
                for record in records:
                    doc = frappe.get_doc(self.build_doc(tenant_id, kind, record))
                    doc.insert(ignore_permissions=self.ignore_permissions)
        except Exception as e:
            raise CommitError(
                f"Could not create {kind.value}: {e}", entity_kind=kind.value
            ) from e

        logger.info("Inserted %s %s document(s)", len(records), self.doctypes[kind])
        return len(records)


def _get_file_doc(file):
    if isinstance(file, str):
        try:
            return frappe.get_doc("File", file)
        except frappe.DoesNotExistError:
            raise ValueError(f"No File named {file!r}") from None

    is_document = Document is not None and isinstance(file, Document)
    # Anything shaped like a File document is accepted (test doubles included).
    if not is_document and not (hasattr(file, "doctype") and hasattr(file, "get_content")):
        raise TypeError(f"Expected a File name or document, got {type(file).__name__}")
    if file.doctype != "File":
        raise ValueError(f"{file.doctype} document passed where a File was expected")
    return file


def _read_content(file_doc) -> bytes:
    try:
        content = file_doc.get_content()
    except Exception as e:
        raise ValueError(f"Could not read File {file_doc.name}: {e}") from e

    if content is None:
        raise ValueError(f"File {file_doc.name} has no content")
    return content.encode("utf-8") if isinstance(content, str) else content


def import_file(
    file: str | FrappeDocument,
    entity_kind: EntityKind | str,
    *,
    tenant_id: str | None = None,
    settings: ImportSettings | None = None,
    gateway=None,
    dry_run: bool = False,
) -> ImportResponse:
    """Import the spreadsheet attached to a Frappe ``File`` document.

    Args:
        file: File document name or instance
        entity_kind: ``"customers"`` or ``"products"``
        tenant_id: Company to import into; defaults to the user's default company
        settings: Import settings; loaded from site config if omitted
        gateway: Commit gateway; a :class:`FrappeCommitGateway` built from settings by default
        dry_run: Validate only, write nothing

    Raises:
        ImportError: If frappe is not installed
        ValueError: If the File does not exist or has no readable content
        PermissionError: If the session user cannot read the File
    """
    _require_frappe()

    if settings is None:
        settings = ImportSettings.load()

    file_doc = _get_file_doc(file)
    if not file_doc.has_permission("read"):
        raise PermissionError(f"Permission denied: cannot read File {file_doc.name}")

    file_name = getattr(file_doc, "file_name", None)

    # The stored size is checked before the content is loaded into memory.
    stored_size = getattr(file_doc, "file_size", None)
    limit = settings.max_file_size_bytes
    if limit is not None and isinstance(stored_size, int) and stored_size > limit:
        return ImportResponse(
            kind=ResponseKind.structural_error,
            entity_kind=str(getattr(entity_kind, "value", entity_kind)),
            message=str(FileTooLargeError(stored_size, limit, file_name)),
        )

    content = _read_content(file_doc)

    if not dry_run:
        if tenant_id is None:
            tenant_id = frappe.defaults.get_user_default("Company")
        if gateway is None:
            gateway = FrappeCommitGateway.from_settings(settings)

    return import_workbook(
        content,
        file_name=file_name,
        entity_kind=entity_kind,
        tenant_id=tenant_id,
        gateway=gateway,
        settings=settings,
        dry_run=dry_run,
    )


def build_error_messages(
    result: ImportResponse | ImportOutcome,
    *,
    max_errors: int = 50,
) -> list[str]:
    """Build flat ``Row N, field: message`` lines for ``frappe.throw(as_list=True)``.

    Example:
        >>> response = import_file(file_doc.name, "customers")
        >>> if not response.ok:
        ...     frappe.throw(build_error_messages(response), title="Import Failed", as_list=True)
    """
    if isinstance(result, ImportResponse):
        if result.outcome is None or not result.outcome.has_errors:
            lines = [result.message]
            if result.details:
                lines.append(result.details)
            return lines
        outcome = result.outcome
    else:
        outcome = result

    messages = [
        f"Row {error.row}, {error.field}: {error.message}"
        for error in outcome.errors[:max_errors]
    ]

    if outcome.error_count > max_errors:
        remaining = outcome.error_count - max_errors
        messages.append(
            f"... and {remaining} more error(s) not shown. Fix the rows above and upload again."
        )
    return messages
