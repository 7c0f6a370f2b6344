"""Tests for row accumulation and the all-or-nothing commit."""

from decimal import Decimal

import pytest

from frappe_bulk_import.errors import CommitError, EmptyFileError
from frappe_bulk_import.importer.entities import CUSTOMER_SCHEMA, PRODUCT_SCHEMA
from frappe_bulk_import.importer.gateway import InMemoryCommitGateway
from frappe_bulk_import.importer.orchestrator import (
    ImportOutcome,
    RowError,
    commit_outcome,
    process_row,
    run_import,
    validate_rows,
)
from frappe_bulk_import.importer.schema import EntityKind
from frappe_bulk_import.workbook.core import RawRow


def customer_rows(*names_and_emails):
    return [
        RawRow(row_number=i + 2, cells={"Customer Name": name, "Email": email})
        for i, (name, email) in enumerate(names_and_emails)
    ]


class ShortWriteGateway:
    def create_many(self, tenant_id, entity_kind, records):
        return len(records) - 1


class TestProcessRow:
    def test_skipped_row(self):
        outcome = process_row(RawRow(5, {"Name": "Name", "Price": "Price"}), PRODUCT_SCHEMA)

        assert outcome.skipped
        assert outcome.row_number == 5

    def test_error_carries_physical_row_number(self):
        outcome = process_row(RawRow(7, {"Name": "Widget", "Price": "abc"}), PRODUCT_SCHEMA)

        assert outcome.error == RowError(
            row=7,
            field="price",
            message='Valid price is required (must be a number >= 0). Received: "abc"',
        )

    def test_record(self):
        outcome = process_row(RawRow(2, {"Name": "Widget", "Cost": "$3"}), PRODUCT_SCHEMA)

        assert not outcome.skipped
        assert outcome.record.price == Decimal("3")


class TestValidateRows:
    def test_empty_sheet_is_structural(self):
        with pytest.raises(EmptyFileError):
            validate_rows([], CUSTOMER_SCHEMA)

    def test_workers_must_be_positive(self):
        with pytest.raises(ValueError):
            validate_rows(customer_rows(("Jane", "")), CUSTOMER_SCHEMA, workers=0)

    def test_accumulates_every_error(self):
        rows = customer_rows(
            ("Jane Doe", "bad"),
            ("Customer Name", "Email"),
            ("John Roe", "john@x.com"),
            ("", "orphan@x.com"),
            ("Max", "also-bad"),
        )

        outcome = validate_rows(rows, CUSTOMER_SCHEMA)

        assert [error.row for error in outcome.errors] == [2, 6]
        assert [record.name for record in outcome.valid_records] == ["John Roe"]
        assert outcome.skipped_rows == (3, 5)
        assert outcome.error_count == 2
        assert outcome.valid_count == 1
        assert not outcome.committed

    def test_parallel_results_keep_row_order(self):
        rows = customer_rows(*[(f"Customer {i}", "bad" if i % 3 == 0 else "") for i in range(60)])

        sequential = validate_rows(rows, CUSTOMER_SCHEMA)
        parallel = validate_rows(list(reversed(rows)), CUSTOMER_SCHEMA, workers=4)

        assert parallel == sequential
        assert [error.row for error in parallel.errors] == sorted(e.row for e in parallel.errors)

    def test_only_skipped_rows_is_not_an_error(self):
        outcome = validate_rows(customer_rows(("Name", "Email")), CUSTOMER_SCHEMA)

        assert outcome == ImportOutcome(skipped_rows=(2,))


class TestRunImport:
    def test_clean_customers_are_committed(self):
        gateway = InMemoryCommitGateway()
        rows = customer_rows(("Jane Doe", "jane@x.com"), ("John Roe", ""))

        outcome = run_import(rows, CUSTOMER_SCHEMA, tenant_id="acme", gateway=gateway)

        assert outcome.committed
        assert outcome.committed_count == 2
        assert [row["name"] for row in gateway.stored("acme", EntityKind.customers)] == [
            "Jane Doe",
            "John Roe",
        ]

    def test_any_error_blocks_the_commit(self):
        gateway = InMemoryCommitGateway()
        rows = [
            RawRow(2, {"Product Name": "Widget", "Price": "10"}),
            RawRow(3, {"Product Name": "Gadget", "Price": "$-5.00"}),
        ]

        outcome = run_import(rows, PRODUCT_SCHEMA, tenant_id="acme", gateway=gateway)

        assert not outcome.committed
        assert outcome.valid_count == 1
        assert outcome.error_count == 1
        assert outcome.errors[0].row == 3
        assert gateway.calls == []
        assert gateway.stored("acme", EntityKind.products) == []

    def test_all_skipped_commits_empty_batch(self):
        gateway = InMemoryCommitGateway()

        outcome = run_import(
            customer_rows(("Customer Name", "Email")),
            CUSTOMER_SCHEMA,
            tenant_id="acme",
            gateway=gateway,
        )

        assert outcome.committed
        assert outcome.committed_count == 0
        assert gateway.calls == [("acme", EntityKind.customers, 0)]

    def test_gateway_failure_propagates(self):
        gateway = InMemoryCommitGateway(unique_fields={EntityKind.customers: ["email"]})
        gateway.seed("acme", EntityKind.customers, [{"name": "Old", "email": "jane@x.com"}])

        with pytest.raises(CommitError, match="Unique constraint failed"):
            run_import(
                customer_rows(("Jane Doe", "jane@x.com")),
                CUSTOMER_SCHEMA,
                tenant_id="acme",
                gateway=gateway,
            )


class TestCommitOutcome:
    def test_refuses_outcome_with_errors(self):
        outcome = ImportOutcome(errors=(RowError(2, "name", "Name is required"),))

        with pytest.raises(ValueError):
            commit_outcome(outcome, CUSTOMER_SCHEMA, tenant_id="acme", gateway=InMemoryCommitGateway())

    def test_short_write_is_a_commit_error(self):
        outcome = validate_rows(customer_rows(("Jane", ""), ("John", "")), CUSTOMER_SCHEMA)

        with pytest.raises(CommitError, match="store reported 1"):
            commit_outcome(outcome, CUSTOMER_SCHEMA, tenant_id="acme", gateway=ShortWriteGateway())

    def test_row_error_to_dict(self):
        assert RowError(4, "email", "bad").to_dict() == {"row": 4, "field": "email", "message": "bad"}

    @pytest.mark.parametrize(
        "field, wire",
        [("tax_rate", "taxRate"), ("tax_exemption_reason", "taxExemptionReason"), ("name", "name")],
    )
    def test_row_error_to_dict_uses_camel_case_field(self, field, wire):
        assert RowError(2, field, "bad").to_dict()["field"] == wire
