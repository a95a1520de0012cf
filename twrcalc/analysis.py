"""Full TWR analysis: figures, sub-period breakdown and data warnings."""

from __future__ import annotations

from datetime import date, datetime

from twrcalc import calculator
from twrcalc.calculator import Series
from twrcalc.errors import DegenerateReturn
from twrcalc.models import AnalysisPeriod, AnalysisResult, TimeSeries


def _boundary_warnings(nav_series: TimeSeries, start: datetime, end: datetime) -> list[str]:
    warnings: list[str] = []
    for label, ts in (("start", start), ("end", end)):
        used = calculator.valuation_timestamp_at(nav_series, ts)
        if used != ts:
            warnings.append(
                f"No valuation at window {label} {ts.isoformat()}; "
                f"carried forward from {used.isoformat()}."
            )
    return warnings


def _ignored_flow_count(flow_series: TimeSeries, start: datetime, end: datetime) -> int:
    return sum(1 for ts in flow_series.timestamps if ts < start or ts > end)


def analyze(
    flows: Series | None,
    valuations: Series | None,
    start: datetime | date | None,
    end: datetime | date | None,
    annualize: bool = False,
) -> AnalysisResult:
    """Run the TWR pipeline and keep the intermediate sub-periods.

    Raises the same errors as ``calculate_time_weighted_return``, except that
    an annualization of a total loss of 100% or more leaves
    ``annualized_return`` as None and adds a warning. The annualized figure
    is only computed when ``annualize`` is set.
    """
    flow_series, nav_series, start_ts, end_ts = calculator.prepare_inputs(
        flows, valuations, start, end
    )

    periods = list(calculator.sub_periods(flow_series, nav_series, start_ts, end_ts))
    total = calculator.chain(periods)

    warnings = _boundary_warnings(nav_series, start_ts, end_ts)

    annualized = None
    if annualize:
        try:
            annualized = calculator.quantize(
                calculator.annualize_total(total, start_ts, end_ts)
            )
        except DegenerateReturn:
            warnings.append(
                "Annualized return undefined for a total loss of 100% or more."
            )

    ignored = _ignored_flow_count(flow_series, start_ts, end_ts)
    if ignored:
        warnings.append(f"{ignored} flow(s) outside the evaluation window were ignored.")

    # Interior zero valuations are not an error, unlike a zero start.
    for p in periods:
        if p.zero_base:
            warnings.append(
                f"Valuation at {p.start.isoformat()} is zero; "
                "sub-period return treated as 0."
            )

    return AnalysisResult(
        period=AnalysisPeriod(
            start=start_ts,
            end=end_ts,
            days=calculator.calendar_days_between(start_ts, end_ts),
        ),
        total_return=calculator.quantize(total),
        annualized_return=annualized,
        sub_periods=periods,
        flow_count=len(flow_series) - ignored,
        valuation_count=len(nav_series),
        warnings=warnings,
    )
