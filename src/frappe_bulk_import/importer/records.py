"""Typed records produced for rows that pass validation."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ImportRecord(BaseModel):
    """Base class for validated rows.

    Field names are snake_case; ``model_dump(by_alias=True)`` yields the
    camelCase names used on the wire.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CustomerRecord(ImportRecord):
    name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None
    address: str | None = None
    tax_exempt: bool = False
    tax_exemption_reason: str | None = None
    tax_id: str | None = None


class ProductRecord(ImportRecord):
    name: str = Field(min_length=1)
    description: str | None = None
    price: Decimal = Field(ge=0)
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100)
    unit: str = Field(default="piece", min_length=1)
    image_url: str | None = None
