"""Journal preview commands."""

import json

import click

from ledgerpost.domain.entities import Direction
from ledgerpost.domain.errors import DomainError
from ledgerpost.domain.export import GLPreviewService
from ledgerpost.domain.journal_builder import JournalBuilderService, JournalMode
from ledgerpost.utils.money_parser import format_cents
from ledgerpost.cli.date_filters import date_range_options, pop_epoch_range
from ledgerpost.cli.error_handling import handle_domain_error

MODE_OPTION = click.option(
    "--mode",
    type=click.Choice([m.value for m in JournalMode]),
    default=JournalMode.SUMMARIZED.value,
    show_default=True,
    help="One journal per day and marketplace, or one per order",
)


@click.group()
def journal_group():
    """Build journals from imported sales."""
    pass


@journal_group.command("preview")
@click.option("--org", required=True, help="Organization ID")
@MODE_OPTION
@click.option("--provider", type=click.Choice(["xero"]), help="Render in a provider's journal format (JSON)")
@date_range_options
@click.pass_context
def preview(ctx, org: str, mode: str, provider: str | None, **filters):
    """Show the balanced journals for a date range.

    Lines reference account types; use --provider xero to see Xero manual
    journals with account codes from your mappings (or the default chart).

    Examples:
        ledgerpost journal preview --org acme --last-month
        ledgerpost journal preview --org acme --mode per-order --provider xero
    """
    db = ctx.obj["db"]
    start_ms, end_ms = pop_epoch_range(ctx, filters)

    try:
        if provider:
            rendered = GLPreviewService(db).preview(org, start_ms, end_ms, mode=mode, provider=provider)
            click.echo(json.dumps(rendered, indent=2))
            return
        journals = JournalBuilderService(db).build(org, start_ms, end_ms, mode=mode)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not journals:
        click.echo("No sales found.")
        return

    for journal in journals:
        click.echo(f"\nJournal {journal.label}")
        click.echo("-" * 72)
        for line in journal.lines:
            debit = format_cents(line.amount_cents) if line.direction is Direction.DEBIT else ""
            credit = format_cents(line.amount_cents) if line.direction is Direction.CREDIT else ""
            click.echo(f"{str(line.account):22s} | {debit:>12s} | {credit:>12s} | {line.memo or ''}")
        click.echo(
            f"{'Total':22s} | {format_cents(journal.total_debits):>12s} | {format_cents(journal.total_credits):>12s} |"
        )


def register_commands(cli):
    """Register journal commands with main CLI."""
    cli.add_command(journal_group, name="journal")
