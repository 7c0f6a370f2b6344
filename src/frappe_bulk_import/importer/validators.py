"""Per-field validation rules.

Every rule is a pure function ``(value, FieldSchema) -> Ok | Err``. A row is
validated by running its fields in schema order and stopping at the first
``Err``; no exceptions are used for control flow, which keeps rows independent
of each other and safe to validate concurrently.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Union

from pydantic import ValidationError

from .schema import EntitySchema, FieldKind, FieldSchema


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    field: str
    message: str


FieldResult = Union[Ok, Err]

EMAIL_PATTERN = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
TRUE_TOKENS = frozenset({"true", "yes", "1", "y"})

_NON_NUMERIC = re.compile(r"[^0-9.\-]")
_DECIMAL_PREFIX = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


def parse_decimal(text: str) -> Decimal | None:
    """Parse a locale-agnostic decimal out of human-entered text.

    Everything except digits, ``.`` and ``-`` is stripped first ("$99.99" ->
    99.99), then the longest leading number is taken ("1.2.3" -> 1.2). There is
    no thousands-separator handling. Returns ``None`` when nothing parses.
    """
    match = _DECIMAL_PREFIX.match(_NON_NUMERIC.sub("", text))
    if match is None:
        return None
    return Decimal(match.group())


def _is_blank(value: str, field: FieldSchema) -> bool:
    return value == "" or value in field.sentinels


def _format_bound(bound: Decimal) -> str:
    return format(bound.normalize(), "f") if bound == bound.to_integral() else str(bound)


def _range_message(field: FieldSchema) -> str:
    if field.minimum is not None and field.maximum is not None:
        return (
            f"{field.label} must be between "
            f"{_format_bound(field.minimum)} and {_format_bound(field.maximum)}"
        )
    if field.minimum is not None:
        return f"{field.label} must be >= {_format_bound(field.minimum)}"
    return f"{field.label} must be <= {_format_bound(field.maximum)}"


def _in_range(number: Decimal, field: FieldSchema) -> bool:
    if field.minimum is not None and number < field.minimum:
        return False
    if field.maximum is not None and number > field.maximum:
        return False
    return True


def validate_string(value: str, field: FieldSchema) -> FieldResult:
    if not _is_blank(value, field):
        return Ok(value)
    if field.required:
        return Err(field.name, f"{field.label} is required")
    if field.default is None:
        return Ok(None)

    default = str(field.default).strip()
    if default == "":
        return Err(field.name, f"{field.label} cannot be empty")
    return Ok(default)


def validate_email(value: str, field: FieldSchema) -> FieldResult:
    if _is_blank(value, field):
        if field.required:
            return Err(field.name, f"{field.label} is required")
        return Ok(None)
    if not EMAIL_PATTERN.fullmatch(value):
        return Err(field.name, f'Invalid email format: "{value}"')
    return Ok(value)


def validate_boolean(value: str, field: FieldSchema) -> FieldResult:
    """Enumerated-token boolean; unknown tokens are false, never an error."""
    if value == "":
        return Ok(bool(field.default))
    return Ok(value.strip().lower() in TRUE_TOKENS)


def validate_decimal(value: str, field: FieldSchema) -> FieldResult:
    """Required decimals reject unparseable input; optional ones fall back to the default.

    The asymmetry is intentional (see DESIGN.md): an unreadable optional
    value such as a tax rate of "abc" becomes the default, while an
    unreadable price is an error.
    """
    if _is_blank(value, field):
        if field.required:
            return Err(field.name, f"{field.label} is required")
        return Ok(field.default)

    number = parse_decimal(value)

    if field.required:
        if number is None or (field.minimum is not None and number < field.minimum):
            if field.minimum is not None:
                expectation = f"must be a number >= {_format_bound(field.minimum)}"
            else:
                expectation = "must be a number"
            return Err(
                field.name,
                f'Valid {field.label.lower()} is required ({expectation}). Received: "{value}"',
            )
        if not _in_range(number, field):
            return Err(field.name, _range_message(field))
        return Ok(number)

    if number is None:
        return Ok(field.default)
    if not _in_range(number, field):
        return Err(field.name, _range_message(field))
    return Ok(number)


def validate_choice(value: str, field: FieldSchema) -> FieldResult:
    if _is_blank(value, field):
        if field.required:
            return Err(field.name, f"{field.label} is required")
        return Ok(field.default)

    lookup = {choice.lower(): choice for choice in field.choices}
    canonical = lookup.get(value.strip().lower())
    if canonical is None:
        return Err(
            field.name,
            f'{field.label} must be one of: {", ".join(field.choices)}. Received: "{value}"',
        )
    return Ok(canonical)


VALIDATORS: Mapping[FieldKind, Callable[[str, FieldSchema], FieldResult]] = {
    FieldKind.string: validate_string,
    FieldKind.email: validate_email,
    FieldKind.boolean: validate_boolean,
    FieldKind.decimal: validate_decimal,
    FieldKind.choice: validate_choice,
}


def validate_field(decoded: Mapping[str, str], field: FieldSchema) -> FieldResult:
    """Validate one field of a decoded row."""
    return VALIDATORS[field.kind](decoded.get(field.name, ""), field)


def validate_row(decoded: Mapping[str, str], schema: EntitySchema) -> FieldResult:
    """Validate every field in schema order and build the record.

    Returns ``Ok(record)`` or the first ``Err``.
    """
    values: dict[str, Any] = {}
    for field in schema.fields:
        result = validate_field(decoded, field)
        if isinstance(result, Err):
            return result
        if result.value is not None:
            values[field.name] = result.value

    try:
        return Ok(schema.record_model.model_validate(values))
    except ValidationError as e:
        # Only reachable when a record model is stricter than its field schemas.
        first = e.errors()[0]
        loc = first.get("loc") or ()
        field_name = str(loc[0]) if loc else schema.primary_field
        return Err(field_name, first.get("msg", "Invalid value"))
