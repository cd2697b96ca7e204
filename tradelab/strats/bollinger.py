from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from tradelab.features.indicators import as_array, bollinger_bands

from .common import Indicators, Signal, Strategy, close_array


@dataclass(frozen=True)
class BollingerReversion(Strategy):
    """
    Band-touch mean reversion: enter when the close first reaches the lower
    band, exit when it first reaches the upper band.
    """

    strategy_id = "bollinger-bands"
    name = "Bollinger Bands"
    description = "Mean reversion using Bollinger Bands"

    period: int = 20
    k: float = 2.0

    @property
    def warmup(self) -> int:
        return self.period

    def prepare(self, bars: pd.DataFrame) -> Indicators:
        bands = bollinger_bands(bars["close"], self.period, self.k)
        return {
            "close": close_array(bars),
            "bb_upper": as_array(bands.upper),
            "bb_lower": as_array(bands.lower),
        }

    def evaluate(
        self, index: int, bars: pd.DataFrame, indicators: Indicators
    ) -> Optional[Signal]:
        if index < 1:
            return None
        close = indicators["close"]
        upper = indicators["bb_upper"]
        lower = indicators["bb_lower"]
        if close[index] <= lower[index] and close[index - 1] > lower[index - 1]:
            return Signal("buy", "Price touched lower Bollinger Band")
        if close[index] >= upper[index] and close[index - 1] < upper[index - 1]:
            return Signal("sell", "Price touched upper Bollinger Band")
        return None
