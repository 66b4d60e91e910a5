"""Round-trip verification command."""

import click

from ledgerpost.domain.errors import DomainError
from ledgerpost.domain.reversal import ReversalVerifier
from ledgerpost.cli.error_handling import handle_domain_error


@click.group()
def verify_group():
    """Check provider connectivity end to end."""
    pass


@verify_group.command("round-trip")
@click.option("--org", required=True, help="Organization ID")
@click.option("--same-day", is_flag=True, help="Date the reverse on the same day instead of the next")
@click.option("--class-id", help="QuickBooks class to tag both entries with")
@click.option("--location-id", help="QuickBooks location (department) to tag both entries with")
@click.option("--note", help="Extra text for the private notes")
@click.pass_context
def round_trip(ctx, org: str, same_day: bool, class_id: str | None, location_id: str | None, note: str | None):
    """Post a small journal touching every mapped account, then reverse it.

    Requires all account types to be mapped and a live QuickBooks credential.
    """
    verifier = ReversalVerifier(ctx.obj["db"], settings=ctx.obj.get("settings"))
    try:
        result = verifier.run_round_trip(
            org, same_day=same_day, class_id=class_id, location_id=location_id, note_suffix=note
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Forward  {result.date}: #{result.forward_id or '-'} ({result.forward_status.value})")
    if result.reverse_status is not None:
        click.echo(f"Reverse  {result.reverse_date}: #{result.reverse_id or '-'} ({result.reverse_status.value})")
    for error in result.errors:
        click.echo(f"Error: {error}", err=True)
    if not result.ok:
        ctx.exit(1)


def register_commands(cli):
    """Register verify commands with main CLI."""
    cli.add_command(verify_group, name="verify")
