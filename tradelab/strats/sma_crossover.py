from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from tradelab.features.indicators import as_array, sma

from .common import Indicators, Signal, Strategy, close_array, crossed_above, crossed_below


@dataclass(frozen=True)
class SmaCrossover(Strategy):
    """Fast/slow simple moving average crossover."""

    strategy_id = "sma-crossover"
    name = "SMA Crossover"
    description = "Simple Moving Average crossover strategy"

    fast: int = 20
    slow: int = 50

    @property
    def warmup(self) -> int:
        return max(self.fast, self.slow)

    def prepare(self, bars: pd.DataFrame) -> Indicators:
        close = bars["close"]
        return {
            "close": close_array(bars),
            "sma_fast": as_array(sma(close, self.fast)),
            "sma_slow": as_array(sma(close, self.slow)),
        }

    def evaluate(
        self, index: int, bars: pd.DataFrame, indicators: Indicators
    ) -> Optional[Signal]:
        if index < 1:
            return None
        fast = indicators["sma_fast"]
        slow = indicators["sma_slow"]
        if crossed_above(fast[index - 1], fast[index], slow[index - 1], slow[index]):
            return Signal("buy", f"SMA{self.fast} crossed above SMA{self.slow}")
        if crossed_below(fast[index - 1], fast[index], slow[index - 1], slow[index]):
            return Signal("sell", f"SMA{self.fast} crossed below SMA{self.slow}")
        return None
