"""CLI entry point for twrcalc."""

from __future__ import annotations

import sys
from datetime import datetime

import click

from twrcalc import formatters, loader
from twrcalc.analysis import analyze
from twrcalc.errors import TWRError
from twrcalc.models import TimeSeries


def _parse_timestamp(value: str) -> datetime:
    try:
        return loader.parse_timestamp(value)
    except TWRError as exc:
        raise click.BadParameter(str(exc)) from exc


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


@click.command()
@click.option(
    "--valuations",
    "valuations_path",
    type=click.Path(dir_okay=False),
    help="CSV of portfolio valuations (timestamp,amount)",
)
@click.option(
    "--flows",
    "flows_path",
    type=click.Path(dir_okay=False),
    help="CSV of external cash flows (timestamp,amount)",
)
@click.option("--start", "start_text", help="Window start (YYYY-MM-DD[THH:MM])")
@click.option("--end", "end_text", help="Window end (YYYY-MM-DD[THH:MM])")
@click.option("--annualize", is_flag=True, help="Include the 365-day annualized return")
@click.option("--breakdown", is_flag=True, help="Show the sub-period breakdown")
@click.option(
    "--output",
    "output_format",
    default="table",
    envvar="TWR_OUTPUT",
    type=click.Choice(["table", "json", "csv"]),
    help="Output format (env: TWR_OUTPUT)",
)
@click.option("--sample", "sample_name", help="Run a bundled sample scenario")
@click.option("--list-samples", is_flag=True, help="List bundled sample scenarios")
def main(
    valuations_path: str | None,
    flows_path: str | None,
    start_text: str | None,
    end_text: str | None,
    annualize: bool,
    breakdown: bool,
    output_format: str,
    sample_name: str | None,
    list_samples: bool,
) -> None:
    """Time-Weighted Return Calculator.

    Chains sub-period returns between external cash flows so the result is
    independent of when money moved in or out of the portfolio.
    """
    if list_samples:
        for name, description in loader.list_samples().items():
            click.echo(f"  {name:22s}  {description}")
        return

    if sample_name is None and valuations_path is None:
        click.echo(click.get_current_context().get_help())
        return

    start: datetime | None = None
    end: datetime | None = None
    try:
        if sample_name is not None:
            sample = loader.load_sample(sample_name)
            valuations, flows = sample.valuations, sample.flows
            start, end = sample.start, sample.end
        else:
            assert valuations_path is not None
            valuations = loader.load_series(valuations_path, loader.VALUATION)
            flows = (
                loader.load_series(flows_path, loader.FLOW)
                if flows_path
                else TimeSeries()
            )
    except TWRError as exc:
        _fail(str(exc))
        return

    # Explicit dates override the sample window.
    if start_text:
        start = _parse_timestamp(start_text)
    if end_text:
        end = _parse_timestamp(end_text)

    missing = []
    if start is None:
        missing.append("--start")
    if end is None:
        missing.append("--end")
    if missing:
        _fail(f"Missing required options: {', '.join(missing)}")

    try:
        result = analyze(flows, valuations, start, end, annualize=annualize)
    except TWRError as exc:
        _fail(str(exc))
        return

    if output_format == "json":
        click.echo(formatters.format_json(result, show_breakdown=breakdown))
    elif output_format == "csv":
        click.echo(formatters.format_csv(result), nl=False)
    else:
        click.echo(formatters.format_table(result, show_breakdown=breakdown), nl=False)


if __name__ == "__main__":
    main()
