"""CSV import commands."""

import click

from ledgerpost.domain.entities import RecordKind
from ledgerpost.domain.errors import DomainError
from ledgerpost.domain.row_import import RowImportService
from ledgerpost.cli.error_handling import handle_domain_error


@click.group("import")
def import_group():
    """Import sales or expenses from CSV files."""
    pass


def _run_import(ctx, csv_file: str, org: str, source: str | None, kind: RecordKind) -> None:
    db = ctx.obj["db"]
    service = RowImportService(db)

    try:
        result = service.import_csv(csv_file, org_id=org, kind=kind, source_label=source)
    except (DomainError, FileNotFoundError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nImport complete:")
    click.echo(f"  Imported: {result['inserted']} {kind.value} rows")
    click.echo(f"  Skipped: {len(result['skipped_duplicates'])} duplicates")
    if result["errors"]:
        click.echo(f"  Errors: {len(result['errors'])}")
        for error in result["errors"]:
            click.echo(f"    {error}", err=True)


@import_group.command("sales")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--org", required=True, help="Organization ID")
@click.option("--source", help="Source label recorded with each row (defaults to the file name)")
@click.pass_context
def import_sales(ctx, csv_file: str, org: str, source: str | None):
    """Import marketplace sales.

    Required columns: marketplace, date, sale price. Optional columns cover
    shipping, fees, discounts, refunds, chargebacks, tax and order id.

    Examples:
        ledgerpost import sales etsy-march.csv --org acme
        ledgerpost import sales orders.csv --org acme --source "ebay export"
    """
    _run_import(ctx, csv_file, org, source, RecordKind.SALE)


@import_group.command("expenses")
@click.argument("csv_file", type=click.Path(exists=True))
@click.option("--org", required=True, help="Organization ID")
@click.option("--source", help="Source label recorded with each row (defaults to the file name)")
@click.pass_context
def import_expenses(ctx, csv_file: str, org: str, source: str | None):
    """Import expenses.

    Required columns: date, amount, category. Vendor, mileage and vehicle
    rate are optional.
    """
    _run_import(ctx, csv_file, org, source, RecordKind.EXPENSE)


def register_commands(cli):
    """Register import commands with main CLI."""
    cli.add_command(import_group, name="import")
