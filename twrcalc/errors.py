"""Exceptions raised by the TWR engine.

All of them derive from ``ValueError`` so callers that treat bad input data
as a value problem keep working.
"""

from __future__ import annotations

from datetime import datetime


class TWRError(ValueError):
    """Base class for every failure of a single TWR computation."""


class InvalidInput(TWRError):
    """Series or evaluation window missing or malformed."""


class NoValuationAvailable(TWRError):
    """A lookup timestamp precedes every recorded valuation."""

    def __init__(self, timestamp: datetime) -> None:
        super().__init__(f"No valuation available at or before {timestamp.isoformat()}")
        self.timestamp = timestamp


class ZeroStartingValuation(TWRError):
    """The valuation at the evaluation start is zero."""


class DegenerateReturn(TWRError):
    """Annualization requested for a compounded factor <= 0."""


class AnnualizationOverflow(TWRError):
    """The annualized return is too large to represent."""
