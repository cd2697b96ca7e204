from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from tradelab.features.indicators import as_array, rsi

from .common import Indicators, Signal, Strategy, close_array


@dataclass(frozen=True)
class RsiOversold(Strategy):
    """Buy when RSI drops into oversold territory, sell when it reaches overbought."""

    strategy_id = "rsi-oversold"
    name = "RSI Oversold"
    description = "Buy when RSI < 30, sell when RSI > 70"

    period: int = 14
    oversold: float = 30.0
    overbought: float = 70.0

    @property
    def warmup(self) -> int:
        return self.period + 1

    def prepare(self, bars: pd.DataFrame) -> Indicators:
        return {
            "close": close_array(bars),
            "rsi": as_array(rsi(bars["close"], self.period)),
        }

    def evaluate(
        self, index: int, bars: pd.DataFrame, indicators: Indicators
    ) -> Optional[Signal]:
        if index < 1:
            return None
        values = indicators["rsi"]
        cur, prev = values[index], values[index - 1]
        if cur < self.oversold and prev >= self.oversold:
            return Signal("buy", "RSI oversold condition")
        if cur > self.overbought and prev <= self.overbought:
            return Signal("sell", "RSI overbought condition")
        return None
