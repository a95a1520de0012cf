"""CSV ingestion for valuation and flow series, plus bundled sample scenarios.

Series files have a ``timestamp,amount`` header. Timestamps are ISO-8601
dates or datetimes; amounts are plain decimals.
"""

from __future__ import annotations

import csv
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from importlib import resources
from pathlib import Path

from twrcalc.errors import InvalidInput
from twrcalc.models import Sample, TimeSeries, to_decimal, to_timestamp

VALUATION = "valuation"
FLOW = "flow"
SERIES_KINDS = (VALUATION, FLOW)


def parse_timestamp(text: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(text.strip())
    except ValueError as exc:
        raise InvalidInput(
            f"Invalid timestamp: {text!r}. Use YYYY-MM-DD or YYYY-MM-DDTHH:MM."
        ) from exc
    return to_timestamp(parsed)


def parse_amount(text: str) -> Decimal:
    return to_decimal(text)


def _build_series(rows: list[tuple[datetime, Decimal]], kind: str) -> TimeSeries:
    if kind == FLOW:
        # Flows sharing a timestamp are netted into one entry.
        netted: dict[datetime, Decimal] = defaultdict(Decimal)
        for ts, amount in rows:
            netted[ts] += amount
        return TimeSeries.from_mapping(netted)

    for ts, amount in rows:
        if amount < 0:
            raise InvalidInput(f"Negative valuation at {ts.isoformat()}: {amount}")
    return TimeSeries.from_pairs(rows)


def read_series(text: str, kind: str) -> TimeSeries:
    """Parse CSV text into a series of the given kind."""
    if kind not in SERIES_KINDS:
        raise InvalidInput(f"Unknown series kind {kind!r}")

    reader = csv.DictReader(text.splitlines())
    fields = reader.fieldnames or []
    if "timestamp" not in fields or "amount" not in fields:
        raise InvalidInput("CSV must have 'timestamp' and 'amount' columns")

    rows: list[tuple[datetime, Decimal]] = []
    for line_no, row in enumerate(reader, start=2):
        if not (row["timestamp"] or "").strip():
            continue
        try:
            rows.append((parse_timestamp(row["timestamp"]), parse_amount(row["amount"] or "")))
        except InvalidInput as exc:
            raise InvalidInput(f"Line {line_no}: {exc}") from exc
    return _build_series(rows, kind)


def load_series(path: Path | str, kind: str) -> TimeSeries:
    """Read a series CSV file from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise InvalidInput(f"Cannot read {path}: {exc}") from exc
    return read_series(text, kind)


# --- Bundled samples ---

def _read_data_file(name: str) -> list[dict[str, str]]:
    text = resources.files("twrcalc.data").joinpath(name).read_text(encoding="utf-8")
    return list(csv.DictReader(text.splitlines()))


def list_samples() -> dict[str, str]:
    """Return {sample name: description} in file order."""
    return {row["sample"]: row["description"] for row in _read_data_file("windows.csv")}


def load_sample(name: str) -> Sample:
    """Load a bundled scenario by name."""
    windows = {row["sample"]: row for row in _read_data_file("windows.csv")}
    if name not in windows:
        supported = ", ".join(windows)
        raise InvalidInput(f"Sample {name!r} not found. Available: {supported}")

    rows: dict[str, list[tuple[datetime, Decimal]]] = {VALUATION: [], FLOW: []}
    for row in _read_data_file("samples.csv"):
        if row["sample"] == name:
            rows[row["series"]].append(
                (parse_timestamp(row["timestamp"]), parse_amount(row["amount"]))
            )

    window = windows[name]
    return Sample(
        name=name,
        description=window["description"],
        start=parse_timestamp(window["start"]),
        end=parse_timestamp(window["end"]),
        valuations=_build_series(rows[VALUATION], VALUATION),
        flows=_build_series(rows[FLOW], FLOW),
    )
