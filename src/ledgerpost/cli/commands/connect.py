"""Provider connection commands."""

from datetime import datetime, timedelta, timezone

import click

from ledgerpost.domain.account_mapping import PROVIDERS, QUICKBOOKS
from ledgerpost.domain.credentials import CredentialService
from ledgerpost.domain.errors import DomainError
from ledgerpost.cli.error_handling import handle_domain_error


@click.group()
def connect_group():
    """Manage provider credentials."""
    pass


@connect_group.command("set")
@click.option("--org", required=True, help="Organization ID")
@click.option("--provider", type=click.Choice(PROVIDERS), default=QUICKBOOKS, show_default=True)
@click.option("--access-token", required=True, envvar="LEDGERPOST_ACCESS_TOKEN", help="OAuth access token")
@click.option("--realm-id", help="QuickBooks company id")
@click.option("--refresh-token", help="OAuth refresh token (stored, not used)")
@click.option("--expires-in", type=int, default=3600, show_default=True, help="Token lifetime in seconds")
@click.pass_context
def set_credential(
    ctx,
    org: str,
    provider: str,
    access_token: str,
    realm_id: str | None,
    refresh_token: str | None,
    expires_in: int,
):
    """Store an access token for an organization."""
    service = CredentialService(ctx.obj["db"])
    expires_at = datetime.now(timezone.utc) + timedelta(seconds=expires_in)
    try:
        service.save(org, provider, access_token, expires_at, realm_id=realm_id, refresh_token=refresh_token)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Stored {provider} credential for {org} (expires {expires_at:%Y-%m-%d %H:%M} UTC)")


@connect_group.command("status")
@click.option("--org", required=True, help="Organization ID")
@click.option("--provider", type=click.Choice(PROVIDERS), default=QUICKBOOKS, show_default=True)
@click.pass_context
def credential_status(ctx, org: str, provider: str):
    """Show whether an organization has a live credential."""
    status = CredentialService(ctx.obj["db"]).status(org, provider)
    if status["expires_at"] is None:
        click.echo(f"{provider}: not connected")
        return
    state = "connected" if status["connected"] else "expired"
    click.echo(f"{provider}: {state}")
    click.echo(f"  Realm: {status['realm_id'] or '-'}")
    click.echo(f"  Expires: {status['expires_at']:%Y-%m-%d %H:%M} UTC ({status['expires_in_sec']}s left)")


def register_commands(cli):
    """Register connect commands with main CLI."""
    cli.add_command(connect_group, name="connect")
