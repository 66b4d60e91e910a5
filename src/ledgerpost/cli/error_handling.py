"""CLI error handling helpers."""

import click

from ledgerpost.domain.errors import DomainError, MissingMappingError, ProviderError


def handle_domain_error(ctx: click.Context, error: DomainError | ProviderError | ValueError) -> None:
    """Render a domain or provider error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, MissingMappingError):
        provider = error.provider or "quickbooks"
        for key in error.missing_keys:
            click.echo(f"  ledgerpost mapping set --org ORG --provider {provider} {key} ACCOUNT_ID", err=True)
    ctx.exit(1)
