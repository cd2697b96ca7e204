from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from tradelab.backtest import metrics
from tradelab.backtest.model import EquityPoint, TradeSignal

TS = pd.Timestamp("2024-01-01", tz="UTC")


def _trade(side, pnl=0.0):
    return TradeSignal(timestamp=TS, asset="BTC/USD", side=side, price=100.0, quantity=1.0, pnl=pnl)


def _curve(values):
    idx = pd.date_range("2024-01-01", periods=len(values), freq="h", tz="UTC")
    return [EquityPoint(timestamp=ts, value=float(v)) for ts, v in zip(idx, values)]


def test_trade_statistics_count_every_fill():
    trades = [_trade("buy"), _trade("sell", 100.0), _trade("buy"), _trade("sell", -50.0)]
    res = metrics.compute_summary(trades, _curve([100.0, 101.0]), 100.0, 101.0, 1.0, 0.5)

    assert res.total_trades == 4
    assert res.round_trips == 2
    assert (res.winning_trades, res.losing_trades) == (1, 1)
    assert res.win_rate == pytest.approx(25.0)
    assert res.avg_win == pytest.approx(100.0)
    assert res.avg_loss == pytest.approx(50.0)
    assert res.profit_factor == pytest.approx(2.0)
    assert res.calmar_ratio == pytest.approx(2.0)


def test_no_trades_gives_zero_ratios():
    res = metrics.compute_summary([], _curve([100.0] * 10), 100.0, 100.0, 0.0, 0.0)
    assert res.total_trades == 0
    assert res.win_rate == 0.0
    assert res.avg_win == 0.0 and res.avg_loss == 0.0
    assert res.profit_factor == 0.0
    assert res.calmar_ratio == 0.0


def test_flat_equity_has_zero_volatility_and_sharpe():
    res = metrics.compute_summary([], _curve([100.0] * 50), 100.0, 100.0, 0.0, 0.0)
    assert res.volatility == 0.0
    assert res.sharpe_ratio == 0.0
    assert res.var95 == 0.0


def test_volatility_is_annualized_population_std():
    rets = np.array([0.01, -0.01, 0.02, -0.02])
    expected = float(np.std(rets, ddof=0)) * np.sqrt(252) * 100.0
    assert metrics.annualized_volatility(rets) == pytest.approx(expected)
    assert metrics.annualized_volatility(rets, 365) == pytest.approx(expected * np.sqrt(365 / 252))


def test_value_at_risk_picks_fifth_percentile_index():
    rets = np.linspace(-0.10, 0.09, 40)  # sorted already; floor(0.05 * 40) == 2
    assert metrics.value_at_risk(rets) == pytest.approx(rets[2] * 100.0)
    assert metrics.value_at_risk(np.array([0.03])) == pytest.approx(3.0)
    assert metrics.value_at_risk(np.array([])) == 0.0


def test_sharpe_divides_return_by_volatility():
    curve = _curve([100.0, 110.0, 99.0, 120.0])
    res = metrics.compute_summary([], curve, 100.0, 120.0, 20.0, 10.0)
    assert res.sharpe_ratio == pytest.approx(20.0 / res.volatility)


def test_drawdown_series_is_positive_percent_from_peak():
    idx = pd.date_range("2024-01-01", periods=5, freq="D", tz="UTC")
    df = pd.DataFrame({"equity": [100.0, 120.0, 90.0, 130.0, 117.0]}, index=idx)
    dd = metrics.drawdown_series(df)
    assert dd.iloc[0] == 0.0
    assert dd.iloc[2] == pytest.approx(25.0)
    assert dd.iloc[4] == pytest.approx(10.0)
    assert dd.max() == pytest.approx(25.0)
