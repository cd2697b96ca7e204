from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from tradelab.core.exceptions import ConfigurationError
from tradelab.data.synthetic import generate_historical_data


def test_bars_respect_ohlc_invariant():
    df = generate_historical_data("ETH/USD", "2024-01-01", "2024-02-01", "1h")
    body_lo = np.minimum(df["open"], df["close"])
    body_hi = np.maximum(df["open"], df["close"])
    assert (df["low"] <= body_lo).all()
    assert (body_hi <= df["high"]).all()
    assert (df["low"] > 0).all()


def test_fixed_interval_inclusive_range():
    df = generate_historical_data("BTC/USD", "2024-01-01", "2024-01-11", "1d")
    assert len(df) == 11
    steps = df.index.to_series().diff().dropna().unique()
    assert list(steps) == [pd.Timedelta(days=1)]
    assert df.index.is_monotonic_increasing


def test_open_chains_from_previous_close_and_seed():
    df = generate_historical_data("SOL/USD", "2024-01-01", "2024-01-03", "1h")
    assert df["open"].iloc[0] == 120.0
    np.testing.assert_allclose(df["open"].iloc[1:].to_numpy(), df["close"].iloc[:-1].to_numpy())


def test_unknown_asset_uses_default_seed():
    df = generate_historical_data("DOGE/USD", "2024-01-01", "2024-01-02", "1h")
    assert df["open"].iloc[0] == 45000.0


def test_unknown_timeframe_falls_back_to_hourly():
    df = generate_historical_data("BTC/USD", "2024-01-01", "2024-01-02", "7x")
    assert df.index[1] - df.index[0] == pd.Timedelta(hours=1)
    assert len(df) == 25


def test_volume_bounds():
    df = generate_historical_data("LINK/USD", "2024-01-01", "2024-01-05", "15m")
    assert (df["volume"] >= 100_000).all()
    assert (df["volume"] < 1_100_000).all()


def test_inverted_range_is_empty():
    df = generate_historical_data("BTC/USD", "2024-02-01", "2024-01-01", "1h")
    assert df.empty
    assert list(df.columns) == ["open", "high", "low", "close", "volume"]


def test_bad_date_raises_configuration_error():
    with pytest.raises(ConfigurationError):
        generate_historical_data("BTC/USD", "not-a-date", "2024-01-01", "1h")
