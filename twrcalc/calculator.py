"""Pure calculation functions for time-weighted return.

TWR = [(1 + R1) x (1 + R2) x ... x (1 + Rn)] - 1, where each sub-period
return is R = (end value - begin value - net flow) / begin value. Sub-periods
are bounded by the flows that fall strictly inside the evaluation window.
"""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from collections.abc import Iterable, Iterator, Mapping
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal

from twrcalc.errors import (
    AnnualizationOverflow,
    DegenerateReturn,
    InvalidInput,
    NoValuationAvailable,
    ZeroStartingValuation,
)
from twrcalc.models import SubPeriod, TimeSeries, to_decimal, to_timestamp

PRECISION = 10
DAYS_PER_YEAR = 365

_QUANTUM = Decimal(1).scaleb(-PRECISION)

Series = Mapping[datetime, Decimal] | TimeSeries


def quantize(value: Decimal) -> Decimal:
    """Round to PRECISION fractional digits, half-up."""
    return value.quantize(_QUANTUM, rounding=ROUND_HALF_UP)


# --- Validation ---

def validate_inputs(
    flows: Series | None,
    valuations: Series | None,
    start: datetime | date | None,
    end: datetime | date | None,
) -> None:
    """Raise InvalidInput when the series or the window are unusable."""
    if flows is None or valuations is None:
        raise InvalidInput("Time series cannot be None")
    if start is None or end is None:
        raise InvalidInput("Evaluation dates cannot be None")
    if to_timestamp(end) <= to_timestamp(start):
        raise InvalidInput("Evaluation end must be after start")
    if len(valuations) == 0:
        raise InvalidInput("Valuation series cannot be empty")

    amounts = valuations.values if isinstance(valuations, TimeSeries) else valuations.values()
    if any(to_decimal(v) < 0 for v in amounts):
        raise InvalidInput("Valuations cannot be negative")


def prepare_inputs(
    flows: Series | None,
    valuations: Series | None,
    start: datetime | date | None,
    end: datetime | date | None,
) -> tuple[TimeSeries, TimeSeries, datetime, datetime]:
    """Validate, normalise to TimeSeries and check the starting valuation."""
    validate_inputs(flows, valuations, start, end)
    assert flows is not None and valuations is not None
    assert start is not None and end is not None

    flow_series = TimeSeries.from_mapping(flows)
    nav_series = TimeSeries.from_mapping(valuations)
    start_ts = to_timestamp(start)
    end_ts = to_timestamp(end)

    if value_at(nav_series, start_ts) == 0:
        raise ZeroStartingValuation("Starting valuation cannot be zero")

    return flow_series, nav_series, start_ts, end_ts


# --- Lookup and aggregation ---

def valuation_timestamp_at(series: TimeSeries, timestamp: datetime) -> datetime:
    """Timestamp of the entry that applies at ``timestamp`` (exact or carried forward)."""
    idx = bisect_right(series.timestamps, timestamp)
    if idx == 0:
        raise NoValuationAvailable(timestamp)
    return series.timestamps[idx - 1]


def value_at(series: TimeSeries, timestamp: datetime) -> Decimal:
    """Exact value at ``timestamp``, else the most recent earlier value."""
    idx = bisect_right(series.timestamps, timestamp)
    if idx == 0:
        raise NoValuationAvailable(timestamp)
    return series.values[idx - 1]


def net_flow(
    series: TimeSeries,
    period_start: datetime,
    period_end: datetime,
    *,
    include_end: bool = False,
) -> Decimal:
    """Sum of flows in [period_start, period_end), or [period_start, period_end]."""
    lo = bisect_left(series.timestamps, period_start)
    if include_end:
        hi = bisect_right(series.timestamps, period_end)
    else:
        hi = bisect_left(series.timestamps, period_end)
    return sum(series.values[lo:hi], Decimal(0))


def flow_breakpoints(series: TimeSeries, start: datetime, end: datetime) -> list[datetime]:
    """Flow timestamps strictly inside (start, end), ascending."""
    lo = bisect_right(series.timestamps, start)
    hi = bisect_left(series.timestamps, end)
    return list(series.timestamps[lo:hi])


# --- Sub-periods and compounding ---

def _sub_period(
    flows: TimeSeries,
    valuations: TimeSeries,
    period_start: datetime,
    period_end: datetime,
    include_end: bool,
) -> SubPeriod:
    begin_value = value_at(valuations, period_start)
    end_value = value_at(valuations, period_end)
    flow = net_flow(flows, period_start, period_end, include_end=include_end)

    if begin_value == 0:
        return SubPeriod(
            period_start, period_end, begin_value, end_value, flow, Decimal(0), zero_base=True
        )

    change = end_value - begin_value - flow
    return SubPeriod(
        period_start, period_end, begin_value, end_value, flow, quantize(change / begin_value)
    )


def sub_period_return(
    flows: TimeSeries,
    valuations: TimeSeries,
    period_start: datetime,
    period_end: datetime,
    *,
    include_end: bool = False,
) -> Decimal:
    """Return of one sub-period with its net flow taken out.

    A zero beginning valuation yields 0 rather than an error.
    """
    return _sub_period(flows, valuations, period_start, period_end, include_end).return_pct


def sub_periods(
    flows: TimeSeries,
    valuations: TimeSeries,
    start: datetime,
    end: datetime,
) -> Iterator[SubPeriod]:
    """Yield the sub-periods of the window in chronological order.

    The final sub-period is closed at ``end`` so a flow stamped exactly at
    the window end is netted there instead of being dropped.
    """
    period_start = start
    for breakpoint_ts in flow_breakpoints(flows, start, end):
        yield _sub_period(flows, valuations, period_start, breakpoint_ts, False)
        period_start = breakpoint_ts
    yield _sub_period(flows, valuations, period_start, end, True)


def chain(periods: Iterable[SubPeriod]) -> Decimal:
    """Geometrically chain sub-period returns; returns factor - 1."""
    factor = Decimal(1)
    for period in periods:
        factor *= 1 + period.return_pct
    return factor - 1


def compound(
    flows: TimeSeries,
    valuations: TimeSeries,
    start: datetime,
    end: datetime,
) -> Decimal:
    """Total return of the window before rounding."""
    return chain(sub_periods(flows, valuations, start, end))


# --- Annualization ---

def calendar_days_between(start: datetime, end: datetime) -> int:
    """Whole 24-hour days from start to end, truncated toward zero."""
    if end >= start:
        return (end - start).days
    return -(start - end).days


def annualize_total(total_return: Decimal, start: datetime, end: datetime) -> Decimal:
    """Rescale a total return to a 365-day basis.

    Uses binary floating-point power; callers quantize the result.
    """
    days = calendar_days_between(start, end)
    if days == 0:
        return Decimal(0)

    base = 1 + total_return
    if base <= 0:
        raise DegenerateReturn(
            f"Cannot annualize a total return of {total_return} (factor {base} <= 0)"
        )

    try:
        annualized = math.pow(float(base), DAYS_PER_YEAR / days) - 1
    except OverflowError as exc:
        raise AnnualizationOverflow(
            f"Annualized return of {total_return} over {days} day(s) is too large to represent"
        ) from exc
    if not math.isfinite(annualized):
        raise AnnualizationOverflow(
            f"Annualized return of {total_return} over {days} day(s) is too large to represent"
        )
    return Decimal(repr(annualized))


# --- Entry point ---

def calculate_time_weighted_return(
    flows: Series | None,
    valuations: Series | None,
    start: datetime | date | None,
    end: datetime | date | None,
    annualize: bool = False,
) -> Decimal:
    """Time-weighted return over [start, end] as a decimal fraction (0.10 = 10%).

    ``flows`` maps timestamps to signed external cash flows (positive =
    contribution); ``valuations`` maps timestamps to total portfolio value.
    The result is rounded half-up to PRECISION fractional digits.
    """
    flow_series, nav_series, start_ts, end_ts = prepare_inputs(flows, valuations, start, end)

    twr = compound(flow_series, nav_series, start_ts, end_ts)
    if annualize:
        twr = annualize_total(twr, start_ts, end_ts)

    return quantize(twr)
