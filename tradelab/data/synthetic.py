"""Synthetic OHLCV history for assets without a real feed.

Prices follow a per-run drift plus bounded random-walk noise. Output is
structurally valid (OHLC invariant, gapless fixed interval) but deliberately
not reproducible: every call draws from a fresh, unseeded generator.
"""

from __future__ import annotations

from typing import Dict

import numpy as np
import pandas as pd
from loguru import logger

from tradelab.core.exceptions import ConfigurationError
from tradelab.core.models import empty_frame

TIMEFRAME_INTERVALS: Dict[str, pd.Timedelta] = {
    "1m": pd.Timedelta(minutes=1),
    "5m": pd.Timedelta(minutes=5),
    "15m": pd.Timedelta(minutes=15),
    "1h": pd.Timedelta(hours=1),
    "4h": pd.Timedelta(hours=4),
    "1d": pd.Timedelta(days=1),
}
DEFAULT_TIMEFRAME = "1h"

BASE_PRICES: Dict[str, float] = {
    "BTC/USD": 45000.0,
    "ETH/USD": 2800.0,
    "SOL/USD": 120.0,
    "AVAX/USD": 28.0,
    "LINK/USD": 12.0,
    "UNI/USD": 6.0,
    "AAVE/USD": 85.0,
}
DEFAULT_BASE_PRICE = 45000.0

TREND_SCALE = 0.0001  # per-bar drift drawn from ±TREND_SCALE/2
VOLATILITY = 0.02  # per-bar noise drawn from ±VOLATILITY/2
WICK_SCALE = 0.01
VOLUME_MIN = 100_000.0
VOLUME_SPAN = 1_000_000.0


def timeframe_interval(timeframe: str) -> pd.Timedelta:
    """Bar interval for a timeframe string; unknown values fall back to 1h."""
    interval = TIMEFRAME_INTERVALS.get(timeframe)
    if interval is None:
        logger.warning(
            "[synthetic] unknown timeframe {!r}; using {}", timeframe, DEFAULT_TIMEFRAME
        )
        return TIMEFRAME_INTERVALS[DEFAULT_TIMEFRAME]
    return interval


def _to_utc(value, name: str) -> pd.Timestamp:
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"unparseable {name}: {value!r}") from exc
    if ts is pd.NaT:
        raise ConfigurationError(f"missing {name}")
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def generate_historical_data(
    asset: str,
    start_date,
    end_date,
    timeframe: str = DEFAULT_TIMEFRAME,
) -> pd.DataFrame:
    """
    Generate an OHLCV frame for ``asset`` from ``start_date`` to ``end_date``.

    Parameters
    ----------
    asset : str
        Symbol used to pick the seed price (unknown symbols use 45000).
    start_date, end_date : str | date | datetime
        Inclusive range; ISO strings are accepted.
    timeframe : str
        One of 1m, 5m, 15m, 1h, 4h, 1d. Anything else falls back to 1h.

    Returns
    -------
    pd.DataFrame
        Indexed by UTC ``timestamp`` with open/high/low/close/volume columns.
        Empty when ``end_date`` precedes ``start_date``.
    """
    start = _to_utc(start_date, "start_date")
    end = _to_utc(end_date, "end_date")
    interval = timeframe_interval(timeframe)
    if end < start:
        logger.warning("[synthetic] end {} before start {}; no bars", end, start)
        return empty_frame()

    index = pd.date_range(start, end, freq=interval, name="timestamp")
    n = len(index)
    rng = np.random.default_rng()

    seed_price = BASE_PRICES.get(asset, DEFAULT_BASE_PRICE)
    trend = (rng.random() - 0.5) * TREND_SCALE
    noise = (rng.random(n) - 0.5) * VOLATILITY

    # close[i] = open[i] * (1 + trend) * (1 + noise[i]); open[i] = close[i-1]
    drifted_factor = 1.0 + trend
    close = seed_price * np.cumprod(drifted_factor * (1.0 + noise))
    open_ = np.empty(n)
    open_[0] = seed_price
    open_[1:] = close[:-1]

    change = np.abs(noise * open_ * drifted_factor)
    high = open_ + change + rng.random(n) * WICK_SCALE * close
    low = open_ - change - rng.random(n) * WICK_SCALE * close

    stacked = np.vstack([open_, high, low, close])
    high = stacked.max(axis=0)
    low = stacked.min(axis=0)
    volume = rng.random(n) * VOLUME_SPAN + VOLUME_MIN

    df = pd.DataFrame(
        {"open": open_, "high": high, "low": low, "close": close, "volume": volume},
        index=index,
    )
    logger.debug(
        "[synthetic] {} {} bars {}→{} seed={} trend={:.6f}",
        asset,
        n,
        index[0] if n else start,
        index[-1] if n else end,
        seed_price,
        trend,
    )
    return df


__all__ = [
    "BASE_PRICES",
    "TIMEFRAME_INTERVALS",
    "generate_historical_data",
    "timeframe_interval",
]
