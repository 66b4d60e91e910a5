"""Account mapping commands."""

import click

from ledgerpost.domain.account_mapping import PROVIDERS, QUICKBOOKS, AccountMappingService
from ledgerpost.domain.entities import ALL_ACCOUNT_TYPES
from ledgerpost.domain.errors import DomainError, ProviderError
from ledgerpost.domain.export import ExportService
from ledgerpost.cli.error_handling import handle_domain_error

ACCOUNT_TYPE_CHOICE = click.Choice([t.value for t in ALL_ACCOUNT_TYPES], case_sensitive=False)
PROVIDER_OPTION = click.option(
    "--provider", type=click.Choice(PROVIDERS), default=QUICKBOOKS, show_default=True, help="Ledger provider"
)


@click.group()
def mapping_group():
    """Map account types to provider account ids."""
    pass


@mapping_group.command("set")
@click.argument("account_type", type=ACCOUNT_TYPE_CHOICE)
@click.argument("account_id")
@click.option("--org", required=True, help="Organization ID")
@PROVIDER_OPTION
@click.pass_context
def set_mapping(ctx, account_type: str, account_id: str, org: str, provider: str):
    """Bind ACCOUNT_TYPE to the provider's ACCOUNT_ID.

    Examples:
        ledgerpost mapping set revenue 79 --org acme
        ledgerpost mapping set clearing 1000 --org acme --provider xero
    """
    service = AccountMappingService(ctx.obj["db"])
    try:
        service.set_mapping(org, provider, account_type, account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Mapped {account_type} -> {account_id} ({provider})")


@mapping_group.command("list")
@click.option("--org", required=True, help="Organization ID")
@PROVIDER_OPTION
@click.pass_context
def list_mappings(ctx, org: str, provider: str):
    """List active mappings."""
    service = AccountMappingService(ctx.obj["db"])
    mappings = {m.account_type: m for m in service.list_mappings(org, provider)}

    click.echo(f"\n{provider} mappings for {org}:")
    click.echo("-" * 60)
    for account_type in ALL_ACCOUNT_TYPES:
        m = mappings.get(account_type)
        target = m.external_account_id if m else "(unmapped)"
        click.echo(f"{account_type.value:22s} | {target}")


@mapping_group.command("remove")
@click.argument("account_type", type=ACCOUNT_TYPE_CHOICE)
@click.option("--org", required=True, help="Organization ID")
@PROVIDER_OPTION
@click.pass_context
def remove_mapping(ctx, account_type: str, org: str, provider: str):
    """Deactivate the mapping for ACCOUNT_TYPE."""
    service = AccountMappingService(ctx.obj["db"])
    try:
        service.remove_mapping(org, provider, account_type)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Removed {account_type} mapping ({provider})")


@mapping_group.command("check")
@click.option("--org", required=True, help="Organization ID")
@PROVIDER_OPTION
@click.option(
    "--verify-accounts",
    is_flag=True,
    help="Also check mapped ids against the live QuickBooks chart of accounts",
)
@click.pass_context
def check_mappings(ctx, org: str, provider: str, verify_accounts: bool):
    """Verify that every account type is mapped.

    With --verify-accounts, each mapped QuickBooks id must also be an active
    account of a type that suits its bucket.
    """
    if verify_accounts and provider != QUICKBOOKS:
        click.echo("Error: --verify-accounts is only available for quickbooks", err=True)
        ctx.exit(1)

    service = AccountMappingService(ctx.obj["db"])
    try:
        service.resolve_mappings(org, provider)
        warnings = []
        if verify_accounts:
            warnings = ExportService(ctx.obj["db"], settings=ctx.obj.get("settings")).audit_mappings(org)
    except (DomainError, ProviderError) as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"All {len(ALL_ACCOUNT_TYPES)} account types are mapped for {provider}.")
    for warning in warnings:
        click.echo(f"Warning: {warning}", err=True)
    if warnings:
        ctx.exit(1)


@mapping_group.command("accounts")
@click.option("--org", required=True, help="Organization ID")
@click.pass_context
def list_accounts(ctx, org: str):
    """List the active QuickBooks chart of accounts, marking mapped ids."""
    service = ExportService(ctx.obj["db"], settings=ctx.obj.get("settings"))
    try:
        accounts = service.list_accounts(org)
    except (DomainError, ProviderError) as e:
        handle_domain_error(ctx, e)
        return

    mapped = {m.external_account_id: m.account_type.value for m in service.mappings.list_mappings(org, QUICKBOOKS)}
    if not accounts:
        click.echo("No active accounts found.")
        return

    click.echo(f"\n{'ID':>6s} | {'Name':30s} | {'Type':24s} | Mapped as")
    click.echo("-" * 84)
    for account in accounts:
        account_id = str(account.get("Id", ""))
        click.echo(
            f"{account_id:>6s} | {str(account.get('Name', ''))[:30]:30s} | "
            f"{str(account.get('AccountType', ''))[:24]:24s} | {mapped.get(account_id, '')}"
        )


def register_commands(cli):
    """Register mapping commands with main CLI."""
    cli.add_command(mapping_group, name="mapping")
