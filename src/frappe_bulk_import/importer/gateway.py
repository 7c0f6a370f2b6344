"""Persistence boundary for validated records and an in-memory implementation."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from frappe_bulk_import.errors import CommitError

from .schema import EntityKind


@runtime_checkable
class CommitGateway(Protocol):
    """Atomic bulk-create capability scoped to a tenant.

    ``create_many`` must persist every record or none of them and return the
    number persisted. Any rejection surfaces as :class:`CommitError`.
    """

    def create_many(
        self,
        tenant_id: str,
        entity_kind: EntityKind,
        records: Sequence[BaseModel],
    ) -> int:
        ...


class InMemoryCommitGateway:
    """Dict-backed gateway for tests and dry runs.

    Optionally enforces unique business keys per tenant and entity kind, so a
    batch can be rejected the way a database constraint would reject it.

    >>> gateway = InMemoryCommitGateway(unique_fields={EntityKind.customers: ["email"]})
    >>> gateway.stored("acme", EntityKind.customers)
    []
    """

    def __init__(
        self,
        unique_fields: Mapping[EntityKind, Iterable[str]] | None = None,
    ) -> None:
        self._unique_fields: dict[EntityKind, tuple[str, ...]] = {
            EntityKind(kind): tuple(fields) for kind, fields in (unique_fields or {}).items()
        }
        self._store: dict[tuple[str, EntityKind], list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, EntityKind, int]] = []

    def create_many(
        self,
        tenant_id: str,
        entity_kind: EntityKind,
        records: Sequence[BaseModel],
    ) -> int:
        kind = EntityKind(entity_kind)
        self.calls.append((tenant_id, kind, len(records)))

        existing = self._store.get((tenant_id, kind), [])
        pending = [record.model_dump() for record in records]

        # Check the whole batch before touching the store.
        for field_name in self._unique_fields.get(kind, ()):
            seen = {row.get(field_name) for row in existing if row.get(field_name) is not None}
            for row in pending:
                value = row.get(field_name)
                if value is None:
                    continue
                if value in seen:
                    raise CommitError(
                        f"Unique constraint failed on {kind.value}.{field_name}: {value!r}",
                        entity_kind=kind.value,
                    )
                seen.add(value)

        self._store[(tenant_id, kind)] = existing + pending
        return len(pending)

    # -- Inspection helpers for tests ------------------------------------------

    def stored(self, tenant_id: str, entity_kind: EntityKind) -> list[dict[str, Any]]:
        return list(self._store.get((tenant_id, EntityKind(entity_kind)), []))

    def seed(self, tenant_id: str, entity_kind: EntityKind, rows: Iterable[Mapping[str, Any]]) -> None:
        key = (tenant_id, EntityKind(entity_kind))
        self._store.setdefault(key, []).extend(dict(row) for row in rows)
