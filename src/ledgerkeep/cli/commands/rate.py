"""Exchange rate lookup command."""

import click

from ledgerkeep.domain.rates import RATE_SOURCE_NONE, RATE_SOURCE_OFFLINE, ExchangeRateTable, LiveRateClient


@click.command("rate")
@click.argument("from_currency", metavar="FROM")
@click.argument("to_currency", metavar="TO")
@click.option("--offline", is_flag=True, help="Use only the bundled rate table")
@click.pass_context
def show_rate(ctx, from_currency: str, to_currency: str, offline: bool):
    """Show the exchange rate for one unit of FROM in TO.

    Examples:
        ledgerkeep rate USD EUR
        ledgerkeep rate EUR AMD --offline
    """
    table = ExchangeRateTable.bundled()
    if offline:
        rate = table.get_exchange_rate(from_currency, to_currency)
        source = RATE_SOURCE_OFFLINE if rate is not None else RATE_SOURCE_NONE
    else:
        client = LiveRateClient(table)
        try:
            rate, source = client.fetch_exchange_rate(from_currency, to_currency)
        finally:
            client.close()

    if rate is None:
        click.echo(f"Error: No rate available for {from_currency.upper()} -> {to_currency.upper()}", err=True)
        ctx.exit(1)

    click.echo(f"1 {from_currency.upper()} = {rate} {to_currency.upper()} ({source})")
    if source == RATE_SOURCE_OFFLINE:
        click.echo(f"Offline rates last updated {table.last_updated()}")


def register_commands(cli):
    """Register rate command with main CLI."""
    cli.add_command(show_rate)
