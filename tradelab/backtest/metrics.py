# tradelab/backtest/metrics.py
from __future__ import annotations

import math
from typing import Sequence, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from tradelab.backtest.model import BacktestResult, EquityPoint, TradeSignal

TRADING_DAYS = 252
VAR_CONFIDENCE = 0.95


# -------- Internals --------
def _safe_ratio(num: float, den: float) -> float:
    return float(num) / float(den) if den else 0.0


def _bar_returns(equity_curve: Sequence[EquityPoint]) -> np.ndarray:
    values = np.array([p.value for p in equity_curve], dtype=float)
    if len(values) < 2:
        return np.array([], dtype=float)
    prev = values[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        rets = np.where(prev != 0, (values[1:] - prev) / prev, 0.0)
    return rets


def annualized_volatility(returns: np.ndarray, periods_per_year: int = TRADING_DAYS) -> float:
    """Population stdev of per-bar returns, annualized, in percent."""
    if len(returns) == 0:
        return 0.0
    return float(np.std(returns, ddof=0)) * math.sqrt(periods_per_year) * 100.0


def value_at_risk(returns: np.ndarray, confidence: float = VAR_CONFIDENCE) -> float:
    """Empirical VaR: the return at the (1 - confidence) quantile index, in percent."""
    if len(returns) == 0:
        return 0.0
    ordered = np.sort(returns)
    idx = int(math.floor((1.0 - confidence) * len(ordered)))
    idx = min(idx, len(ordered) - 1)
    return float(ordered[idx]) * 100.0


def _trade_split(trades: Sequence[TradeSignal]) -> Tuple[np.ndarray, np.ndarray]:
    pnls = np.array([t.pnl for t in trades], dtype=float)
    return pnls[pnls > 0], pnls[pnls < 0]


# -------- Public API --------
def compute_summary(
    trades: Sequence[TradeSignal],
    equity_curve: Sequence[EquityPoint],
    initial_capital: float,
    final_value: float,
    total_return: float,
    max_drawdown: float,
    *,
    periods_per_year: int = TRADING_DAYS,
) -> BacktestResult:
    """
    Reduce a finished run to its summary statistics.

    Every fill counts toward ``total_trades``; a fill wins when its pnl is
    positive and loses when negative, so opening legs (pnl 0) are neither.
    Ratios with a zero denominator resolve to 0.
    """
    total_trades = len(trades)
    wins, losses = _trade_split(trades)
    win_rate = _safe_ratio(len(wins), total_trades) * 100.0
    avg_win = float(wins.mean()) if len(wins) else 0.0
    avg_loss = abs(float(losses.mean())) if len(losses) else 0.0

    rets = _bar_returns(equity_curve)
    volatility = annualized_volatility(rets, periods_per_year)
    sharpe = _safe_ratio(total_return, volatility)
    var95 = value_at_risk(rets)

    gross_profit = float(wins.sum()) if len(wins) else 0.0
    gross_loss = abs(float(losses.sum())) if len(losses) else 0.0
    profit_factor = _safe_ratio(gross_profit, gross_loss)
    calmar = _safe_ratio(total_return, max_drawdown)
    round_trips = sum(1 for t in trades if t.side == "sell")

    logger.debug(
        "[metrics] capital={:.2f} final={:.2f} n={} trades={} ret={:.4f}% vol={:.4f}% sharpe={:.3f} maxDD={:.4f}% var95={:.4f}% pf={:.3f}",
        float(initial_capital),
        float(final_value),
        len(equity_curve),
        total_trades,
        total_return,
        volatility,
        sharpe,
        max_drawdown,
        var95,
        profit_factor,
    )

    return BacktestResult(
        total_return=float(total_return),
        sharpe_ratio=sharpe,
        max_drawdown=float(max_drawdown),
        win_rate=win_rate,
        total_trades=total_trades,
        winning_trades=int(len(wins)),
        losing_trades=int(len(losses)),
        avg_win=avg_win,
        avg_loss=avg_loss,
        final_value=float(final_value),
        volatility=volatility,
        var95=var95,
        profit_factor=profit_factor,
        calmar_ratio=calmar,
        round_trips=round_trips,
    )


def drawdown_series(equity_df: pd.DataFrame) -> pd.Series:
    """Percent drawdown from the running peak, per equity point (positive numbers)."""
    s = equity_df["equity"].astype(float).dropna()
    if s.empty:
        return pd.Series(dtype=float)
    peak = s.cummax()
    return (peak - s) / peak * 100.0


__all__ = [
    "TRADING_DAYS",
    "compute_summary",
    "annualized_volatility",
    "value_at_risk",
    "drawdown_series",
]
