"""Main CLI entry point."""

import logging

import click

from ledgerpost.config import load_settings
from ledgerpost.database.factories import create_sqlite_database

# Import and register all commands at module level
from ledgerpost.cli.commands import (
    connect,
    export,
    import_cmd,
    journal,
    mapping,
    verify,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERPOST_DB_PATH environment variable)",
    envvar="LEDGERPOST_DB_PATH",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path: str | None, verbose: bool):
    """LedgerPost - Marketplace sales to general ledger.

    Import sales and expense CSVs, map account types to your chart of
    accounts, and post balanced journals to QuickBooks.
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        settings = load_settings()
        if db_path:
            settings.db_path = db_path
        problems = settings.validate()
        if problems:
            for problem in problems:
                click.echo(f"Error: {problem}", err=True)
            ctx.exit(1)

        db = create_sqlite_database(database_path=settings.db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["settings"] = settings
        ctx.call_on_close(db.disconnect)


# Register all commands
import_cmd.register_commands(cli)
mapping.register_commands(cli)
connect.register_commands(cli)
journal.register_commands(cli)
export.register_commands(cli)
verify.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
