from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .common import Indicators, Signal, Strategy


@dataclass(frozen=True)
class Momentum(Strategy):
    """
    Rate-of-change momentum over ``lookback`` bars.

    Buys while the return exceeds ``+threshold`` and sells while it is below
    ``-threshold``; the execution layer drops repeats.
    """

    strategy_id = "momentum"
    name = "Momentum"
    description = "Price momentum based strategy"

    lookback: int = 10
    threshold: float = 0.05

    @property
    def warmup(self) -> int:
        return self.lookback

    def evaluate(
        self, index: int, bars: pd.DataFrame, indicators: Indicators
    ) -> Optional[Signal]:
        if index < self.lookback:
            return None
        close = indicators["close"]
        base = close[index - self.lookback]
        if base == 0:
            return None
        momentum = (close[index] - base) / base
        if momentum > self.threshold:
            return Signal("buy", "Strong upward momentum detected")
        if momentum < -self.threshold:
            return Signal("sell", "Strong downward momentum detected")
        return None
