"""Export commands."""

import json

import click

from ledgerpost.domain.entities import ExportStatus
from ledgerpost.domain.errors import DomainError
from ledgerpost.domain.export import ExportService
from ledgerpost.domain.journal_builder import JournalBuilderService
from ledgerpost.cli.commands.journal import MODE_OPTION
from ledgerpost.cli.date_filters import date_range_options, pop_date_range, pop_epoch_range
from ledgerpost.cli.error_handling import handle_domain_error


@click.group()
def export_group():
    """Post journals to QuickBooks and review export history."""
    pass


@export_group.command("commit")
@click.option("--org", required=True, help="Organization ID")
@MODE_OPTION
@click.option("--dry-run", is_flag=True, help="Record previews without posting")
@date_range_options
@click.pass_context
def commit(ctx, org: str, mode: str, dry_run: bool, **filters):
    """Build journals for a date range and post them.

    Journals are posted one at a time; a failed journal does not undo
    the ones before it.

    Examples:
        ledgerpost export commit --org acme --last-month --dry-run
        ledgerpost export commit --org acme --start-date 2024-03-01 --end-date 2024-03-31
    """
    db = ctx.obj["db"]
    start_ms, end_ms = pop_epoch_range(ctx, filters)

    try:
        journals = JournalBuilderService(db).build(org, start_ms, end_ms, mode=mode)
        if not journals:
            click.echo("No sales found.")
            return
        service = ExportService(db, settings=ctx.obj.get("settings"))
        result = service.submit(org, journals, dry_run=dry_run)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    for item in result.results:
        label = "/".join(part for part in (item.date, item.marketplace, item.order_ref) if part)
        if item.status is ExportStatus.ERROR:
            status = f"HTTP {item.http_status}" if item.http_status else (item.failure or "no response")
            click.echo(f"  FAILED    {label} ({status}): {item.error}", err=True)
        elif item.status is ExportStatus.COMMITTED:
            click.echo(f"  COMMITTED {label} -> #{item.external_id}")
        else:
            click.echo(f"  PREVIEW   {label}")

    if result.dry_run:
        click.echo(f"\nDry run: {len(result.results)} journals previewed, nothing posted.")
        return

    click.echo(f"\nCommitted {result.committed_count} of {len(result.results)} journals.")
    if result.failed_count:
        ctx.exit(1)


@export_group.command("lookup")
@click.argument("entry_ids", nargs=-1, required=True)
@click.option("--org", required=True, help="Organization ID")
@click.pass_context
def lookup(ctx, entry_ids: tuple[str, ...], org: str):
    """Fetch posted journal entries by QuickBooks id."""
    service = ExportService(ctx.obj["db"], settings=ctx.obj.get("settings"))
    try:
        results = service.lookup_entries(org, entry_ids)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    for item in results:
        if item["status"] == "found":
            click.echo(f"#{item['id']}:")
            click.echo(json.dumps(item["entry"], indent=2))
        elif item["status"] == "not_found":
            click.echo(f"#{item['id']}: not found")
        else:
            click.echo(f"#{item['id']}: error: {item['error']}", err=True)


@export_group.command("history")
@click.option("--org", required=True, help="Organization ID")
@click.option("--provider", help="Only show exports for this provider")
@date_range_options
@click.pass_context
def history(ctx, org: str, provider: str | None, **filters):
    """List previewed and committed exports."""
    start, end = pop_date_range(ctx, filters)
    service = ExportService(ctx.obj["db"], settings=ctx.obj.get("settings"))
    try:
        records = service.list_exports(org, start, end, provider=provider)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not records:
        click.echo("No exports found.")
        return

    click.echo(f"\n{'ID':>5s} | {'Date':10s} | {'Provider':10s} | {'Status':9s} | {'Entry':8s} | HTTP")
    click.echo("-" * 64)
    for record in records:
        click.echo(
            f"{record.id:5d} | {record.period_start.isoformat():10s} | {record.provider:10s} | "
            f"{record.status.value:9s} | {record.external_id or '-':8s} | {record.http_status or '-'}"
        )


def register_commands(cli):
    """Register export commands with main CLI."""
    cli.add_command(export_group, name="export")
