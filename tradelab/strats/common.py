from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import fields
from typing import ClassVar, Dict, NamedTuple, Optional

import numpy as np
import pandas as pd

from tradelab.backtest.model import Side
from tradelab.features.indicators import as_array

Indicators = Dict[str, np.ndarray]


class Signal(NamedTuple):
    """A trade intent produced by a strategy for one bar."""

    side: Side
    reason: str


def param_names(cls: type) -> set[str]:
    return {f.name for f in fields(cls)}


# -------- Crossing helpers --------
def crossed_above(prev_a: float, cur_a: float, prev_b: float, cur_b: float) -> bool:
    """True when ``a`` moves from at-or-below ``b`` to strictly above it."""
    return prev_a <= prev_b and cur_a > cur_b


def crossed_below(prev_a: float, cur_a: float, prev_b: float, cur_b: float) -> bool:
    """True when ``a`` moves from at-or-above ``b`` to strictly below it."""
    return prev_a >= prev_b and cur_a < cur_b


def close_array(bars: pd.DataFrame) -> np.ndarray:
    return as_array(bars["close"])


class Strategy(ABC):
    """
    Shared capability of every strategy variant.

    Concrete strategies are frozen dataclasses whose fields are their
    parameters. ``prepare`` runs once per backtest and returns the indicator
    arrays ``evaluate`` reads on each bar. Every prepared mapping includes
    ``close``.
    """

    strategy_id: ClassVar[str] = ""
    name: ClassVar[str] = ""
    description: ClassVar[str] = ""

    @property
    def warmup(self) -> int:
        """Bars of history needed before ``evaluate`` is meaningful."""
        return 1

    def prepare(self, bars: pd.DataFrame) -> Indicators:
        return {"close": close_array(bars)}

    @abstractmethod
    def evaluate(
        self, index: int, bars: pd.DataFrame, indicators: Indicators
    ) -> Optional[Signal]:
        raise NotImplementedError


__all__ = [
    "Indicators",
    "Signal",
    "Strategy",
    "param_names",
    "crossed_above",
    "crossed_below",
    "close_array",
]
