"""
Feature engineering: technical indicators.

Vectorized indicator calculations built on pandas. Every function returns a
Series aligned to (and the same length as) its input, filling the warm-up
span with a fixed sentinel instead of NaN so strategies can index freely.
"""

import logging
from typing import NamedTuple

import numpy as np
import pandas as pd

log = logging.getLogger(__name__)

RSI_NEUTRAL = 50.0
RS_NO_LOSS = 100.0


class BollingerBands(NamedTuple):
    upper: pd.Series
    middle: pd.Series
    lower: pd.Series


def _check_period(period: int) -> int:
    period = int(period)
    if period < 1:
        raise ValueError(f"period must be >= 1 (got {period})")
    return period


def _as_float_series(series) -> pd.Series:
    if isinstance(series, pd.DataFrame):
        series = series["close"] if "close" in series.columns else series.iloc[:, 0]
    if not isinstance(series, pd.Series):
        return pd.Series(series, dtype=float)
    return series.astype(float)


def sma(series: pd.Series, period: int = 20) -> pd.Series:
    """
    Simple moving average with a zero sentinel.

    Values before index ``period - 1`` are 0; afterwards the mean of the
    trailing ``period`` closes, current bar included.
    """
    period = _check_period(period)
    s = _as_float_series(series)
    return s.rolling(window=period, min_periods=period).mean().fillna(0.0)


def ema(series: pd.Series, period: int = 20) -> pd.Series:
    """Exponential moving average seeded with the first close (no sentinel)."""
    period = _check_period(period)
    return _as_float_series(series).ewm(span=period, adjust=False).mean()


def rsi(series: pd.Series, period: int = 14) -> pd.Series:
    """
    Compute Relative Strength Index (RSI) from simple averages.

    Parameters
    ----------
    series : pd.Series
        Price series (e.g., closing prices).
    period : int, default 14
        Number of close-to-close deltas averaged per value.

    Returns
    -------
    pd.Series
        RSI values scaled 0–100. Indices before ``period`` hold the neutral 50.
        When the average loss is zero RS is taken as 100.
    """
    period = _check_period(period)
    s = _as_float_series(series)
    if len(s) <= period:
        log.warning(
            "RSI input too short (len=%s <= period=%s); returning neutral values",
            len(s),
            period,
        )
        return pd.Series(RSI_NEUTRAL, index=s.index, dtype=float)

    delta = s.diff()
    gain = delta.clip(lower=0)
    loss = -delta.clip(upper=0)

    avg_gain = gain.rolling(window=period, min_periods=period).mean()
    avg_loss = loss.rolling(window=period, min_periods=period).mean()

    rs = avg_gain / avg_loss.where(avg_loss > 0)
    rs = rs.where(avg_loss > 0, RS_NO_LOSS)
    rsi_val = 100 - (100 / (1 + rs))
    rsi_val = rsi_val.where(avg_gain.notna(), RSI_NEUTRAL).clip(0, 100)

    log.debug("RSI computed for %d bars", len(s))
    return rsi_val


def bollinger_bands(series: pd.Series, period: int = 20, k: float = 2.0) -> BollingerBands:
    """
    Bollinger Bands: SMA ± k population standard deviations.

    Both bands are 0 until the window fills.
    """
    period = _check_period(period)
    s = _as_float_series(series)
    mid = s.rolling(window=period, min_periods=period).mean()
    std = s.rolling(window=period, min_periods=period).std(ddof=0)
    upper = (mid + float(k) * std).fillna(0.0)
    lower = (mid - float(k) * std).fillna(0.0)
    return BollingerBands(upper=upper, middle=mid.fillna(0.0), lower=lower)


def as_array(series: pd.Series) -> np.ndarray:
    """Plain float ndarray view for tight per-bar loops."""
    return np.asarray(series, dtype=float)


__all__ = ["sma", "ema", "rsi", "bollinger_bands", "BollingerBands", "as_array"]
