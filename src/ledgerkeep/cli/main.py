"""The `ledgerkeep` command group and its global options."""

import click

from ledgerkeep.database.factories import create_sqlite_database
from ledgerkeep.domain.events import LedgerEvents
from ledgerkeep.logging_setup import LOG_LEVELS, setup_logging

# Each command module contributes its commands through register_commands()
from ledgerkeep.cli.commands import (
    account,
    add,
    category,
    filter,
    init_categories,
    operation,
    rate,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides LEDGERKEEP_DB_PATH environment variable)",
    envvar="LEDGERKEEP_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Log verbosity (overrides LEDGERKEEP_LOG_LEVEL environment variable)",
    envvar="LEDGERKEEP_LOG_LEVEL",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    help="Also write logs to this file, rotated daily",
    envvar="LEDGERKEEP_LOG_FILE",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str, log_file: str | None):
    """Ledgerkeep - personal finance ledger.

    Record expenses, income and multi-currency transfers between accounts,
    with balances kept in step with every change.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level, log_file)

    # --help never opens the database
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.obj["events"] = LedgerEvents()
        ctx.call_on_close(db.disconnect)


# Attach every command group to the root
account.register_commands(cli)
init_categories.register_commands(cli)
category.register_commands(cli)
add.register_commands(cli)
operation.register_commands(cli)
filter.register_commands(cli)
rate.register_commands(cli)


def main():
    """Console script entry point."""
    cli()


if __name__ == "__main__":
    main()
