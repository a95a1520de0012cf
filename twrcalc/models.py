"""Data models for TWR inputs and results."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from twrcalc.errors import InvalidInput


def to_timestamp(value: datetime | date) -> datetime:
    """Promote a date to midnight; naive datetimes pass through."""
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            raise InvalidInput(
                f"Timestamp {value.isoformat()} has a UTC offset; use naive timestamps."
            )
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    raise InvalidInput(f"Not a timestamp: {value!r}")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """Convert through str so floats keep their shortest repr."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise InvalidInput(f"Not a number: {value!r}")
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidInput(f"Not a number: {value!r}") from exc
    if not result.is_finite():
        raise InvalidInput(f"Not a finite number: {value!r}")
    return result


@dataclass(frozen=True, slots=True)
class TimeSeries:
    """Immutable timestamp -> amount series, sorted by timestamp.

    Lookups bisect over ``timestamps``; ``values`` is parallel to it.
    """

    timestamps: tuple[datetime, ...] = ()
    values: tuple[Decimal, ...] = ()

    @classmethod
    def from_pairs(
        cls, pairs: Iterable[tuple[datetime | date, Decimal | int | float | str]]
    ) -> TimeSeries:
        entries = sorted(
            ((to_timestamp(ts), to_decimal(v)) for ts, v in pairs),
            key=lambda e: e[0],
        )
        for (prev, _), (cur, _) in zip(entries, entries[1:]):
            if prev == cur:
                raise InvalidInput(f"Duplicate timestamp in series: {cur.isoformat()}")
        return cls(
            timestamps=tuple(ts for ts, _ in entries),
            values=tuple(v for _, v in entries),
        )

    @classmethod
    def from_mapping(
        cls, mapping: Mapping[datetime | date, Decimal | int | float | str]
    ) -> TimeSeries:
        if isinstance(mapping, TimeSeries):
            return mapping
        return cls.from_pairs(mapping.items())

    def __len__(self) -> int:
        return len(self.timestamps)

    def __iter__(self) -> Iterator[tuple[datetime, Decimal]]:
        return iter(zip(self.timestamps, self.values))

    def __bool__(self) -> bool:
        return bool(self.timestamps)

    @property
    def first_timestamp(self) -> datetime:
        return self.timestamps[0]

    @property
    def last_timestamp(self) -> datetime:
        return self.timestamps[-1]


@dataclass(slots=True)
class SubPeriod:
    start: datetime
    end: datetime
    begin_value: Decimal
    end_value: Decimal
    net_flow: Decimal
    return_pct: Decimal
    zero_base: bool = False


@dataclass(slots=True)
class AnalysisPeriod:
    start: datetime
    end: datetime
    days: int


@dataclass(slots=True)
class AnalysisResult:
    period: AnalysisPeriod
    total_return: Decimal
    annualized_return: Decimal | None = None
    sub_periods: list[SubPeriod] = field(default_factory=list)
    flow_count: int = 0
    valuation_count: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class Sample:
    name: str
    description: str
    start: datetime
    end: datetime
    valuations: TimeSeries
    flows: TimeSeries
