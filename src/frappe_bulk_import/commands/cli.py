"""Click commands for validating and running bulk imports from the shell."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

try:
    import frappe
    from frappe.commands import get_site, pass_context
except ImportError:
    frappe = None  # type: ignore
    pass_context = click.pass_obj  # type: ignore
    get_site = lambda ctx, **kw: None  # type: ignore

from frappe_bulk_import.config import ConfigError, ImportSettings
from frappe_bulk_import.importer import EntityKind, ImportResponse, ResponseKind, import_workbook
from frappe_bulk_import.importer.frappe import FrappeCommitGateway, build_error_messages
from frappe_bulk_import.transaction import commit, rollback

EXIT_SUCCESS = 0
EXIT_VALIDATION_FAILED = 1
EXIT_STRUCTURAL_ERROR = 2
EXIT_COMMIT_FAILED = 3

_EXIT_CODES = {
    ResponseKind.success: EXIT_SUCCESS,
    ResponseKind.validation_failed: EXIT_VALIDATION_FAILED,
    ResponseKind.structural_error: EXIT_STRUCTURAL_ERROR,
    ResponseKind.commit_failed: EXIT_COMMIT_FAILED,
}

_entity_argument = click.argument(
    "entity", type=click.Choice([kind.value for kind in EntityKind])
)
_path_argument = click.argument(
    "path", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
_json_option = click.option(
    "--json", "as_json", is_flag=True, help="Print the response body as JSON."
)


def exit_code(response: ImportResponse) -> int:
    return _EXIT_CODES[response.kind]


def _load_settings() -> ImportSettings:
    try:
        return ImportSettings.load()
    except ConfigError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(EXIT_STRUCTURAL_ERROR)


def report(response: ImportResponse, *, as_json: bool, max_errors: int) -> None:
    """Print a response for humans or as JSON."""
    if as_json:
        click.echo(json.dumps(response.to_dict(), indent=2, default=str))
        return

    if response.ok:
        click.secho(response.message, fg="green")
        return

    if response.kind == ResponseKind.validation_failed and response.outcome is not None:
        click.secho(
            f"{response.message}: {response.outcome.valid_count} valid, "
            f"{response.outcome.error_count} invalid row(s). Nothing was imported.",
            fg="red",
            err=True,
        )
    for line in build_error_messages(response, max_errors=max_errors):
        click.echo(line, err=True)


@click.group("bulk-import")
def bulk_import_group():
    """Bulk import customers and products from CSV/XLSX files."""
    pass


@bulk_import_group.command("validate")
@_entity_argument
@_path_argument
@_json_option
def validate_cli(entity: str, path: Path, as_json: bool) -> None:
    """Check a spreadsheet without writing anything.

    Examples:\n
        bulk-import validate customers customers.csv\n
        bulk-import validate products products.xlsx --json\n
    """
    settings = _load_settings()
    response = import_workbook(
        path.read_bytes(),
        file_name=path.name,
        entity_kind=entity,
        tenant_id=None,
        gateway=None,
        settings=settings,
        dry_run=True,
    )
    report(response, as_json=as_json, max_errors=settings.max_error_messages)
    sys.exit(exit_code(response))


@bulk_import_group.command("run")
@pass_context
@_entity_argument
@_path_argument
@click.option("--tenant", required=True, help="Company the records are created under.")
@_json_option
def run_cli(context, entity: str, path: Path, tenant: str, as_json: bool) -> None:
    """Import a spreadsheet into a site, all rows or none.

    Examples:\n
        bench --site mysite bulk-import run customers customers.csv --tenant "Acme Ltd"\n
    """
    if frappe is None:
        click.secho("Error: Frappe is required for this command", fg="red", err=True)
        sys.exit(EXIT_STRUCTURAL_ERROR)

    site = get_site(context)
    frappe.init(site=site)
    frappe.connect()

    try:
        settings = _load_settings()
        response = import_workbook(
            path.read_bytes(),
            file_name=path.name,
            entity_kind=entity,
            tenant_id=tenant,
            gateway=FrappeCommitGateway.from_settings(settings),
            settings=settings,
        )
        if response.ok:
            commit()
        else:
            rollback()
    finally:
        frappe.destroy()

    report(response, as_json=as_json, max_errors=settings.max_error_messages)
    sys.exit(exit_code(response))
