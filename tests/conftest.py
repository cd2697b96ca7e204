from __future__ import annotations

import os
from typing import Callable, Sequence

import numpy as np
import pandas as pd
import pytest

from tradelab.logging_utils import setup_test_logging
from tradelab.settings import reload_settings

os.environ.setdefault("ENV", "test")


@pytest.fixture(scope="session", autouse=True)
def configure_logging():
    setup_test_logging("tradelab-logs/")
    yield


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached; rebuild them around every test so env tweaks don't leak."""
    reload_settings()
    yield
    reload_settings()


def build_frame(closes: Sequence[float], *, freq: str = "h") -> pd.DataFrame:
    """OHLCV frame whose open/high/low collapse onto the close (open = prior close)."""
    close = np.asarray(closes, dtype=float)
    open_ = np.r_[close[:1], close[:-1]] if len(close) else close
    idx = pd.date_range("2024-01-01", periods=len(close), freq=freq, tz="UTC", name="timestamp")
    return pd.DataFrame(
        {
            "open": open_,
            "high": np.maximum(open_, close),
            "low": np.minimum(open_, close),
            "close": close,
            "volume": np.full(len(close), 1_000.0),
        },
        index=idx,
    )


@pytest.fixture
def frame_from_closes() -> Callable[..., pd.DataFrame]:
    return build_frame


@pytest.fixture
def v_shape_frame() -> pd.DataFrame:
    """
    60 bars alternating 105/106, a drop to 100 (bar 60), five bars back at
    105/106, then a spike to 110 on the last bar (bar 66).

    With Bollinger(20, 2): the drop is the only lower-band touch and the
    spike the only upper-band touch after warm-up.
    """
    closes = [105.0, 106.0] * 30 + [100.0] + [105.0, 106.0, 105.0, 106.0, 105.0] + [110.0]
    return build_frame(closes)


@pytest.fixture
def sine_frame() -> pd.DataFrame:
    i = np.arange(400)
    return build_frame(100.0 + 10.0 * np.sin(2 * np.pi * i / 80.0))


@pytest.fixture(scope="module")
def toy_ohlcv() -> pd.DataFrame:
    """
    Deterministic random-walk series with two regimes: slow climb then a fade.
    """
    rng = np.random.default_rng(seed=42)
    n = 400
    idx = pd.date_range("2021-01-01", periods=n, freq="D", tz="UTC", name="timestamp")

    drift = np.r_[np.full(200, 0.0015), np.full(200, -0.0010)]
    noise = rng.normal(0.0, 0.01, n)
    close = 100.0 * np.cumprod(1 + drift + noise)
    open_ = pd.Series(close).shift(1).fillna(close[0]).to_numpy()

    high = np.maximum(open_, close) * (1 + np.clip(rng.normal(0.003, 0.003, n), 0, None))
    low = np.minimum(open_, close) * (1 - np.clip(rng.normal(0.003, 0.003, n), 0, None))
    vol = rng.integers(1_000_000, 5_000_000, n)

    return pd.DataFrame(
        {"open": open_, "high": high, "low": low, "close": close, "volume": vol},
        index=idx,
    ).astype({"open": float, "high": float, "low": float, "close": float, "volume": float})
