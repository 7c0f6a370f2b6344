"""Static per-entity definitions: field schemas, header aliases and sentinels.

An entity kind is described entirely by data. Adding one means adding an
alias table, a tuple of :class:`FieldSchema` and a record model, then
registering an :class:`EntitySchema`; nothing is subclassed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any, Type

from pydantic import BaseModel


class EntityKind(str, Enum):
    """Business object types that can be bulk imported."""

    customers = "customers"
    products = "products"


class FieldKind(str, Enum):
    """How a cell is coerced."""

    string = "string"
    email = "email"
    boolean = "boolean"
    decimal = "decimal"
    choice = "choice"


@dataclass(frozen=True)
class FieldSchema:
    """Definition of one canonical field.

    Attributes:
        name: Canonical field name (key in the decoded row and the record model)
        kind: Coercion rule applied to the cell
        label: Human label used in error messages ("Price", "Tax rate")
        required: Whether an empty cell is an error
        default: Value substituted for an empty optional cell
        minimum: Inclusive lower bound for decimal fields
        maximum: Inclusive upper bound for decimal fields
        sentinels: Literal header texts treated as "no value" (leftover header rows)
        choices: Allowed spellings for ``choice`` fields
    """

    name: str
    kind: FieldKind = FieldKind.string
    label: str = ""
    required: bool = False
    default: Any = None
    minimum: Decimal | None = None
    maximum: Decimal | None = None
    sentinels: frozenset[str] = frozenset()
    choices: tuple[str, ...] = ()

    def __post_init__(self):
        if not self.label:
            object.__setattr__(self, "label", self.name.replace("_", " ").capitalize())
        if not isinstance(self.sentinels, frozenset):
            object.__setattr__(self, "sentinels", frozenset(self.sentinels))
        if self.kind == FieldKind.choice and not self.choices:
            raise ValueError(f"choice field '{self.name}' needs at least one choice")
        if (
            self.minimum is not None
            and self.maximum is not None
            and self.minimum > self.maximum
        ):
            raise ValueError(f"field '{self.name}': minimum must be <= maximum")


def alias_table(aliases: Mapping[str, Iterable[str]]) -> Mapping[str, str]:
    """Build an immutable header alias table.

    ``aliases`` maps a canonical field name to the header spellings that
    should resolve to it. Keys of the result are lower-cased and trimmed.

    >>> alias_table({"tax_id": ["Tax ID", "VAT"]})["vat"]
    'tax_id'
    """
    table: dict[str, str] = {}
    for canonical, spellings in aliases.items():
        for spelling in spellings:
            key = spelling.strip().lower()
            if key in table and table[key] != canonical:
                raise ValueError(
                    f"header alias {spelling!r} maps to both {table[key]!r} and {canonical!r}"
                )
            table[key] = canonical
    return MappingProxyType(table)


@dataclass(frozen=True)
class EntitySchema:
    """Everything the pipeline needs to import one entity kind."""

    kind: EntityKind
    singular: str  # "customer" - used in user-facing messages
    fields: tuple[FieldSchema, ...]
    aliases: Mapping[str, str]
    record_model: Type[BaseModel]
    primary_field: str = "name"
    skip_sentinels: frozenset[str] = frozenset()

    def __post_init__(self):
        names = [f.name for f in self.fields]
        if len(set(names)) != len(names):
            raise ValueError(f"duplicate field names in {self.kind.value} schema")
        if self.primary_field not in names:
            raise ValueError(
                f"primary field '{self.primary_field}' is not defined for {self.kind.value}"
            )
        unknown = set(self.aliases.values()) - set(names)
        if unknown:
            raise ValueError(f"aliases target undefined fields: {sorted(unknown)}")

    @property
    def plural(self) -> str:
        return self.kind.value

    def get_field(self, name: str) -> FieldSchema:
        for candidate in self.fields:
            if candidate.name == name:
                return candidate
        raise KeyError(name)
