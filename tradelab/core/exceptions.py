from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from tradelab.backtest.model import BacktestOutput


class TradeLabError(Exception):
    """Base class for all tradelab exceptions."""


class ConfigurationError(TradeLabError):
    """Raised for missing/malformed run configuration, before a run starts."""


class DataValidationError(TradeLabError):
    """Raised when a bar frame fails schema validation."""


class ComputationError(TradeLabError):
    """
    Raised when a run fails mid-loop.

    The trades and equity points recorded before the failure are kept on
    ``partial`` (with ``completed=False``) for diagnostics.
    """

    def __init__(self, message: str, partial: Optional["BacktestOutput"] = None):
        super().__init__(message)
        self.partial = partial


class BacktestCancelled(TradeLabError):
    """Raised when a run observes its cancellation token."""

    def __init__(self, message: str, partial: Optional["BacktestOutput"] = None):
        super().__init__(message)
        self.partial = partial


__all__ = [
    "TradeLabError",
    "ConfigurationError",
    "DataValidationError",
    "ComputationError",
    "BacktestCancelled",
]
