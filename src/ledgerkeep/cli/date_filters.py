"""CLI helpers for date range resolution."""

from datetime import date

import click

from ledgerkeep.utils.date_parser import get_date_range, parse_date

PERIODS = [
    "this-week",
    "this-month",
    "this-year",
    "last-week",
    "last-month",
    "last-year",
    "last-7-days",
    "last-30-days",
]

period_option = click.option(
    "--period",
    type=click.Choice(PERIODS, case_sensitive=False),
    help="Named date range (cannot be combined with --start-date/--end-date)",
)


def parse_date_or_exit(ctx, value: str | None, label: str) -> date | None:
    """Parse an optional date option, exiting with a CLI error if it is invalid."""
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        click.echo(f"Error: Invalid {label}: {e}", err=True)
        ctx.exit(1)


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period: str | None,
) -> tuple[date | None, date | None]:
    """Resolve CLI date range from a named period or explicit dates."""
    if period and (start_date or end_date):
        click.echo("Error: --period cannot be combined with --start-date or --end-date.", err=True)
        ctx.exit(1)

    if period:
        return get_date_range(period)

    start = parse_date_or_exit(ctx, start_date, "start date")
    end = parse_date_or_exit(ctx, end_date, "end date")
    if start is not None and end is not None and start > end:
        click.echo("Error: Start date must not be after end date.", err=True)
        ctx.exit(1)
    return start, end
