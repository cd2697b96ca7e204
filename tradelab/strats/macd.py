from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from tradelab.features.indicators import ema

from .common import Indicators, Signal, Strategy


@dataclass(frozen=True)
class MacdDivergence(Strategy):
    """
    Zero-line MACD crossover.

    The fast and slow EMAs are recomputed from scratch over the closes up to
    and including the evaluated bar; there is no signal line.
    """

    strategy_id = "macd-divergence"
    name = "MACD Divergence"
    description = "MACD signal line crossover strategy"

    fast: int = 12
    slow: int = 26

    @property
    def warmup(self) -> int:
        return self.slow

    def macd_tail(self, close, index: int) -> tuple[float, float]:
        """(previous, current) MACD values from the prefix ending at ``index``."""
        prefix = pd.Series(close[: index + 1], dtype=float)
        line = ema(prefix, self.fast) - ema(prefix, self.slow)
        return float(line.iat[-2]), float(line.iat[-1])

    def evaluate(
        self, index: int, bars: pd.DataFrame, indicators: Indicators
    ) -> Optional[Signal]:
        if index < 1:
            return None
        prev, cur = self.macd_tail(indicators["close"], index)
        if cur > 0 and prev <= 0:
            return Signal("buy", "MACD crossed above zero")
        if cur < 0 and prev >= 0:
            return Signal("sell", "MACD crossed below zero")
        return None
