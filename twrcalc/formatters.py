"""Output formatters for table, JSON, and CSV."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table

from twrcalc.models import AnalysisResult


def _fmt_pct(val: Decimal, plus_sign: bool = True, places: int = 2) -> str:
    """Format a decimal fraction as a percentage."""
    pct = val * 100
    if plus_sign and pct > 0:
        return f"+{pct:.{places}f}%"
    return f"{pct:.{places}f}%"


def _fmt_decimal(value: Decimal) -> str:
    """Plain fixed-point text, never scientific notation."""
    return format(value, "f")


def _fmt_amount(value: Decimal) -> str:
    """Format an amount with thousands separators and 2 decimals."""
    return f"{value:,.2f}"


def _fmt_ts(ts: datetime) -> str:
    """Dates at midnight print without a time part."""
    if ts.hour == ts.minute == ts.second == ts.microsecond == 0:
        return ts.date().isoformat()
    return ts.isoformat(timespec="minutes")


def format_table(result: AnalysisResult, show_breakdown: bool = False) -> str:
    """Format results as a Rich table rendered to string."""
    buf = io.StringIO()
    rich_console = Console(file=buf, width=120, no_color=True)

    p = result.period
    header = (
        f"Time-Weighted Return Analysis\n"
        f"=============================\n"
        f"Period: {_fmt_ts(p.start)} → {_fmt_ts(p.end)} ({p.days} days)\n"
        f"Valuations: {result.valuation_count}  Flows in window: {result.flow_count}\n"
    )

    summary = Table(box=box.SIMPLE_HEAD, pad_edge=False)
    summary.add_column("Measure", style="bold")
    summary.add_column("Return", justify="right")
    summary.add_column("Decimal", justify="right")
    summary.add_row(
        "Total TWR",
        _fmt_pct(result.total_return),
        _fmt_decimal(result.total_return),
    )
    if result.annualized_return is not None:
        summary.add_row(
            "Annualized TWR",
            _fmt_pct(result.annualized_return),
            _fmt_decimal(result.annualized_return),
        )

    rich_console.print(header, end="")
    rich_console.print(summary)

    if show_breakdown:
        table = Table(box=box.SIMPLE_HEAD, pad_edge=False, title="Sub-periods")
        table.add_column("#", justify="right")
        table.add_column("From")
        table.add_column("To")
        table.add_column("Begin Value", justify="right")
        table.add_column("End Value", justify="right")
        table.add_column("Net Flow", justify="right")
        table.add_column("Return", justify="right")
        for i, sp in enumerate(result.sub_periods, start=1):
            table.add_row(
                str(i),
                _fmt_ts(sp.start),
                _fmt_ts(sp.end),
                _fmt_amount(sp.begin_value),
                _fmt_amount(sp.end_value),
                _fmt_amount(sp.net_flow),
                "—" if sp.zero_base else _fmt_pct(sp.return_pct),
            )
        rich_console.print(table)

    if result.warnings:
        footer = "Warnings:"
        for w in result.warnings:
            footer += f"\n  ⚠ {w}"
        rich_console.print(footer)

    return buf.getvalue()


def format_json(result: AnalysisResult, show_breakdown: bool = False) -> str:
    """Format results as JSON. Decimals are emitted as strings."""
    data: dict[str, Any] = {
        "period": {
            "start": result.period.start.isoformat(),
            "end": result.period.end.isoformat(),
            "days": result.period.days,
        },
        "total_return": _fmt_decimal(result.total_return),
        "annualized_return": (
            _fmt_decimal(result.annualized_return)
            if result.annualized_return is not None
            else None
        ),
        "valuation_count": result.valuation_count,
        "flow_count": result.flow_count,
    }

    if show_breakdown:
        data["sub_periods"] = [
            {
                "start": sp.start.isoformat(),
                "end": sp.end.isoformat(),
                "begin_value": _fmt_decimal(sp.begin_value),
                "end_value": _fmt_decimal(sp.end_value),
                "net_flow": _fmt_decimal(sp.net_flow),
                "return": _fmt_decimal(sp.return_pct),
                "zero_base": sp.zero_base,
            }
            for sp in result.sub_periods
        ]

    if result.warnings:
        data["warnings"] = result.warnings

    return json.dumps(data, indent=2)


def format_csv(result: AnalysisResult) -> str:
    """Format the sub-period breakdown as CSV, one row per sub-period."""
    buf = io.StringIO()
    fields = [
        "start",
        "end",
        "begin_value",
        "end_value",
        "net_flow",
        "return",
        "cumulative_return",
    ]
    writer = csv.DictWriter(buf, fieldnames=fields)
    writer.writeheader()

    factor = Decimal(1)
    for sp in result.sub_periods:
        factor *= 1 + sp.return_pct
        writer.writerow({
            "start": sp.start.isoformat(),
            "end": sp.end.isoformat(),
            "begin_value": _fmt_decimal(sp.begin_value),
            "end_value": _fmt_decimal(sp.end_value),
            "net_flow": _fmt_decimal(sp.net_flow),
            "return": _fmt_decimal(sp.return_pct),
            "cumulative_return": _fmt_decimal(factor - 1),
        })

    return buf.getvalue()
