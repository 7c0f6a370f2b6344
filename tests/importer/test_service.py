"""End-to-end tests for import_workbook and its response shapes."""

from decimal import Decimal

import pytest

from frappe_bulk_import.config import ImportSettings
from frappe_bulk_import.importer.gateway import InMemoryCommitGateway
from frappe_bulk_import.importer.schema import EntityKind
from frappe_bulk_import.importer.service import ImportResponse, ResponseKind, import_workbook


@pytest.fixture
def settings():
    return ImportSettings()


@pytest.fixture
def gateway():
    return InMemoryCommitGateway(unique_fields={EntityKind.customers: ["email"]})


def run(content, file_name, entity_kind, gateway, settings, **kwargs):
    return import_workbook(
        content,
        file_name=file_name,
        entity_kind=entity_kind,
        tenant_id="acme",
        gateway=gateway,
        settings=settings,
        **kwargs,
    )


class TestSuccess:
    def test_customers_csv(self, csv_bytes, gateway, settings):
        content = csv_bytes(
            """
            Customer Name,Email Address,Tax Exempt,TAX ID
            Jane Doe,jane@x.com,yes,DE123
            John Roe,,,
            """
        )

        response = run(content, "customers.csv", "customers", gateway, settings)

        assert response.ok
        assert response.to_dict() == {
            "success": True,
            "message": "Successfully imported 2 customer(s)",
            "count": 2,
        }
        stored = gateway.stored("acme", EntityKind.customers)
        assert stored[0]["tax_exempt"] is True
        assert stored[0]["tax_id"] == "DE123"
        assert stored[1]["email"] is None

    def test_products_xlsx(self, xlsx_bytes, gateway, settings):
        content = xlsx_bytes(
            ["Product Name", "Price", "Tax Rate (%)", "Unit"],
            [["Widget", 10, 7.5, None], ["Gadget", "$99.99", None, "box"]],
        )

        response = run(content, "products.xlsx", EntityKind.products, gateway, settings)

        assert response.to_dict()["message"] == "Successfully imported 2 product(s)"
        stored = gateway.stored("acme", EntityKind.products)
        assert [row["unit"] for row in stored] == ["piece", "box"]
        assert str(stored[1]["price"]) == "99.99"

    def test_repeated_header_rows_are_ignored(self, csv_bytes, gateway, settings):
        content = csv_bytes(
            """
            Name,Email
            Jane,jane@x.com
            Name,Email
            John,john@x.com
            """
        )

        response = run(content, "customers.csv", "customers", gateway, settings)

        assert response.outcome.skipped_rows == (3,)
        assert response.to_dict()["count"] == 2


class TestValidationFailed:
    def test_nothing_is_committed(self, csv_bytes, gateway, settings):
        content = csv_bytes(
            """
            Product Name,Price
            Widget,10
            Gadget,$-5.00
            """
        )

        response = run(content, "products.csv", "products", gateway, settings)

        assert response.kind == ResponseKind.validation_failed
        assert response.to_dict() == {
            "error": "Validation errors found",
            "errors": [
                {
                    "row": 3,
                    "field": "price",
                    "message": 'Valid price is required (must be a number >= 0). Received: "$-5.00"',
                }
            ],
            "validCount": 1,
            "errorCount": 1,
        }
        assert gateway.calls == []

    def test_row_numbers_count_blank_lines(self, csv_bytes, gateway, settings):
        content = csv_bytes(
            """
            Name,Email
            Jane,jane@x.com

            John,not-an-email
            """
        )

        response = run(content, "customers.csv", "customers", gateway, settings)

        assert response.to_dict()["errors"][0]["row"] == 4


class TestStructuralErrors:
    @pytest.mark.parametrize("file_name", ["customers.txt", "customers.xls", None])
    def test_unsupported_file_type(self, file_name, gateway, settings):
        response = run(b"Name\nJane\n", file_name, "customers", gateway, settings)

        assert response.to_dict() == {"error": "Invalid file type. Please upload a CSV or Excel file."}

    def test_too_large(self, gateway):
        settings = ImportSettings(max_file_size_bytes=8)

        response = run(b"Name\nJane Doe\n", "customers.csv", "customers", gateway, settings)

        assert response.kind == ResponseKind.structural_error
        assert response.message.startswith("File size exceeds maximum limit.")

    def test_no_size_limit(self, gateway):
        settings = ImportSettings(max_file_size_bytes=None)

        response = run(b"Name\nJane Doe\n", "customers.csv", "customers", gateway, settings)

        assert response.ok

    def test_undecodable(self, gateway, settings):
        response = run(b"PK\x03\x04garbage", "customers.xlsx", "customers", gateway, settings)

        assert response.to_dict() == {
            "error": "Failed to parse file. Please ensure it is a valid CSV or Excel file."
        }

    def test_header_only(self, csv_bytes, gateway, settings):
        response = run(csv_bytes("Name,Email"), "customers.csv", "customers", gateway, settings)

        assert response.to_dict() == {"error": "File is empty or contains no data"}
        assert gateway.calls == []

    def test_unknown_entity_kind(self, gateway, settings):
        response = run(b"Name\nJane\n", "orders.csv", "orders", gateway, settings)

        assert response.kind == ResponseKind.structural_error
        assert response.outcome is None


class TestCommitFailed:
    def test_unique_violation(self, csv_bytes, gateway, settings):
        gateway.seed("acme", EntityKind.customers, [{"name": "Old", "email": "jane@x.com"}])
        content = csv_bytes(
            """
            Name,Email
            New,new@x.com
            Jane,jane@x.com
            """
        )

        response = run(content, "customers.csv", "customers", gateway, settings)

        body = response.to_dict()
        assert response.kind == ResponseKind.commit_failed
        assert body["error"] == "Failed to import customers"
        assert "Unique constraint failed" in body["details"]
        assert len(gateway.stored("acme", EntityKind.customers)) == 1


class TestDryRun:
    def test_validates_without_gateway(self, csv_bytes, settings):
        content = csv_bytes("Name,Email\nJane,jane@x.com\nJohn,")

        response = import_workbook(
            content,
            file_name="customers.csv",
            entity_kind="customers",
            tenant_id=None,
            gateway=None,
            settings=settings,
            dry_run=True,
        )

        assert response.ok
        assert not response.outcome.committed
        assert response.to_dict() == {
            "success": True,
            "message": "2 customer(s) ready to import",
            "count": 2,
        }

    def test_gateway_required_without_dry_run(self, csv_bytes, settings):
        with pytest.raises(ValueError):
            import_workbook(
                csv_bytes("Name\nJane"),
                file_name="customers.csv",
                entity_kind="customers",
                tenant_id="acme",
                gateway=None,
                settings=settings,
            )


class TestParallelWorkers:
    def test_same_response_as_sequential(self, csv_bytes, gateway):
        lines = ["Name,Email"] + [
            f"Customer {i},{'bad' if i % 4 == 0 else f'c{i}@x.com'}" for i in range(40)
        ]
        content = csv_bytes("\n".join(lines))

        sequential = run(content, "c.csv", "customers", gateway, ImportSettings())
        parallel = run(content, "c.csv", "customers", gateway, ImportSettings(parallel_workers=4))

        assert parallel.to_dict() == sequential.to_dict()
        assert parallel.to_dict()["errorCount"] == 10


def test_structural_response_to_dict_has_only_error():
    response = ImportResponse(
        kind=ResponseKind.structural_error, entity_kind="customers", message="boom"
    )

    assert response.to_dict() == {"error": "boom"}
    assert not response.ok


class TestWireFieldNames:
    def test_error_field_uses_camel_case(self, csv_bytes, gateway, settings):
        content = csv_bytes(
            """
            Product Name,Price,Tax Rate
            Widget,10,150
            """
        )

        response = run(content, "products.csv", "products", gateway, settings)

        assert response.to_dict()["errors"] == [
            {"row": 2, "field": "taxRate", "message": "Tax rate must be between 0 and 100"}
        ]
        assert response.outcome.errors[0].field == "tax_rate"


class TestXlsxEdgeCases:
    def test_damaged_sheet_is_structural(self, xlsx_bytes, gateway, settings):
        import io
        import zipfile

        source = zipfile.ZipFile(io.BytesIO(xlsx_bytes(["Name"], [[f"C{i}"] for i in range(30)])))
        fp = io.BytesIO()
        with zipfile.ZipFile(fp, "w") as target:
            for item in source.infolist():
                data = source.read(item.filename)
                if item.filename == "xl/worksheets/sheet1.xml":
                    data = data[: len(data) // 2]
                target.writestr(item, data)

        response = run(fp.getvalue(), "c.xlsx", "customers", gateway, settings)

        assert response.kind == ResponseKind.structural_error
        assert response.to_dict() == {
            "error": "Failed to parse file. Please ensure it is a valid CSV or Excel file."
        }

    def test_percent_formatted_tax_rate(self, gateway, settings):
        import io

        from openpyxl import Workbook

        wb = Workbook()
        ws = wb.active
        ws.append(["Product Name", "Price", "Tax Rate (%)"])
        ws.append(["Widget", 10, 0.075])
        ws["C2"].number_format = "0.00%"
        fp = io.BytesIO()
        wb.save(fp)

        response = run(fp.getvalue(), "products.xlsx", "products", gateway, settings)

        assert response.ok
        assert gateway.stored("acme", EntityKind.products)[0]["tax_rate"] == Decimal("7.5")
