"""Built-in entity definitions for customers and products."""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType

from frappe_bulk_import.errors import UnknownEntityKindError

from .records import CustomerRecord, ProductRecord
from .schema import EntityKind, EntitySchema, FieldKind, FieldSchema, alias_table

CUSTOMER_ALIASES = alias_table(
    {
        "name": ["Customer Name", "Name", "Customer"],
        "email": ["Email", "Email Address"],
        "phone": ["Phone", "Phone Number", "Tel"],
        "address": ["Address"],
        "tax_exempt": ["Tax Exempt", "TaxExempt"],
        "tax_exemption_reason": ["Tax Exemption Reason", "Exemption Reason"],
        "tax_id": ["Tax ID", "TaxID", "VAT", "EIN"],
    }
)

PRODUCT_ALIASES = alias_table(
    {
        "name": ["Product Name", "Name", "Product"],
        "description": ["Description", "Desc"],
        "price": ["Price", "Cost"],
        "tax_rate": ["Tax Rate (%)", "Tax Rate", "Tax"],
        "unit": ["Unit"],
        "image_url": ["Image URL", "Image", "ImageURL"],
    }
)

CUSTOMER_SCHEMA = EntitySchema(
    kind=EntityKind.customers,
    singular="customer",
    fields=(
        FieldSchema("name", required=True),
        FieldSchema("email", FieldKind.email, sentinels={"Email", "Email Address"}),
        FieldSchema("phone"),
        FieldSchema("address"),
        FieldSchema("tax_exempt", FieldKind.boolean, default=False),
        FieldSchema("tax_exemption_reason"),
        FieldSchema("tax_id", label="Tax ID"),
    ),
    aliases=CUSTOMER_ALIASES,
    record_model=CustomerRecord,
    skip_sentinels=frozenset({"Customer Name", "Name"}),
)

PRODUCT_SCHEMA = EntitySchema(
    kind=EntityKind.products,
    singular="product",
    fields=(
        FieldSchema("name", required=True),
        FieldSchema("description"),
        FieldSchema(
            "price",
            FieldKind.decimal,
            required=True,
            minimum=Decimal("0"),
            sentinels={"Price"},
        ),
        FieldSchema(
            "tax_rate",
            FieldKind.decimal,
            label="Tax rate",
            default=Decimal("0"),
            minimum=Decimal("0"),
            maximum=Decimal("100"),
        ),
        FieldSchema("unit", default="piece"),
        FieldSchema("image_url", label="Image URL"),
    ),
    aliases=PRODUCT_ALIASES,
    record_model=ProductRecord,
    skip_sentinels=frozenset({"Product Name", "Name"}),
)

SCHEMAS: Mapping[EntityKind, EntitySchema] = MappingProxyType(
    {
        EntityKind.customers: CUSTOMER_SCHEMA,
        EntityKind.products: PRODUCT_SCHEMA,
    }
)


def get_schema(kind: EntityKind | str) -> EntitySchema:
    """Return the schema for an entity kind, accepting its string value."""
    try:
        return SCHEMAS[EntityKind(kind)]
    except (ValueError, KeyError):
        raise UnknownEntityKindError(kind) from None
