"""CLI helpers for date range resolution."""

from datetime import date

import click

from ledgerpost.utils.date_parser import date_bounds_to_epoch_ms, get_date_range, parse_date

PERIODS = ("this-month", "this-year", "this-week", "last-month", "last-year", "last-week")


def date_range_options(func):
    """Add --start-date/--end-date and the named period flags to a command."""
    options = [
        click.option("--start-date", help="Start date (YYYY-MM-DD or relative like 'last month', 'this year')"),
        click.option("--end-date", help="End date (YYYY-MM-DD or relative like 'today', 'this month')"),
    ] + [
        click.option(f"--{period}", is_flag=True, help=f"Filter to {period.replace('-', ' ')}")
        for period in PERIODS
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _fail(ctx, message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    ctx.exit(1)


def _parse_bound(ctx, value: str | None, which: str) -> date | None:
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as e:
        _fail(ctx, f"Invalid {which} date: {e}")


def resolve_cli_date_range(
    ctx,
    *,
    start_date: str | None,
    end_date: str | None,
    period_flags: dict[str, bool],
    default_range: tuple[date, date] | None = None,
) -> tuple[date | None, date | None]:
    """Turn a period flag or explicit --start-date/--end-date into inclusive bounds.

    Exits with status 1 on conflicting options, unparseable dates or an
    inverted range. ``default_range`` applies only when nothing was given.
    """
    chosen = [period for period, is_set in period_flags.items() if is_set]
    if len(chosen) > 1:
        _fail(ctx, f"Only one period option ({', '.join('--' + p for p in PERIODS)}) can be specified at a time.")
    if chosen and (start_date or end_date):
        _fail(ctx, "Period options cannot be combined with --start-date or --end-date.")

    if chosen:
        start, end = get_date_range(chosen[0])
    else:
        start = _parse_bound(ctx, start_date, "start")
        end = _parse_bound(ctx, end_date, "end")
        if start is None and end is None and default_range is not None:
            start, end = default_range

    if start and end and start > end:
        _fail(ctx, "Start date is after end date.")
    return start, end


def pop_date_range(ctx, options: dict) -> tuple[date | None, date | None]:
    """Consume the options added by ``date_range_options`` and resolve them."""
    period_flags = {period: options.pop(period.replace("-", "_"), False) for period in PERIODS}
    return resolve_cli_date_range(
        ctx,
        start_date=options.pop("start_date", None),
        end_date=options.pop("end_date", None),
        period_flags=period_flags,
    )


def pop_epoch_range(ctx, options: dict) -> tuple[int | None, int | None]:
    """Like ``pop_date_range`` but as inclusive epoch-millisecond bounds."""
    return date_bounds_to_epoch_ms(*pop_date_range(ctx, options))
