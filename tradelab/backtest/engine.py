from __future__ import annotations

import math
import threading
import uuid
from typing import Callable, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from tradelab.backtest.execution import ExecutionSimulator
from tradelab.backtest.metrics import compute_summary
from tradelab.backtest.model import BacktestOutput, BacktestResult, EquityPoint
from tradelab.core.exceptions import (
    BacktestCancelled,
    ComputationError,
    ConfigurationError,
    DataValidationError,
)
from tradelab.core.models import BacktestConfig, ensure_ohlcv_frame
from tradelab.data.synthetic import generate_historical_data
from tradelab.logging_utils import logging_context
from tradelab.settings import get_settings
from tradelab.strats import Strategy, resolve_strategy
from tradelab.telemetry.backtest import RunTelemetry, run_span

ProgressCallback = Callable[[float], None]


class CancellationToken:
    """Thread-safe flag a caller trips to stop a running backtest at the next bar."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class _ProgressReporter:
    """Throttles progress callbacks to at most one per ``step`` percent."""

    def __init__(self, callback: Optional[ProgressCallback], step: float):
        self.callback = callback
        self.step = float(step)
        self.last: Optional[float] = None

    def __call__(self, pct: float, *, force: bool = False) -> None:
        if self.callback is None:
            return
        pct = min(100.0, max(0.0, float(pct)))
        if not force and self.last is not None and pct - self.last < self.step:
            return
        self.last = pct
        self.callback(pct)


def _check_bar(index: int, close: float, ts: pd.Timestamp) -> None:
    if not math.isfinite(close) or close <= 0:
        raise ValueError(f"malformed bar at index {index} ({ts}): close={close!r}")


def _snapshot(
    sim: ExecutionSimulator, equity_curve: List[EquityPoint], *, max_drawdown: float
) -> BacktestOutput:
    """Output for a run that did not finish; the summary only reflects cash on hand."""
    last = equity_curve[-1].value if equity_curve else sim.cash
    return BacktestOutput(
        summary=BacktestResult(final_value=last, max_drawdown=max_drawdown),
        trades=list(sim.trades),
        equity_curve=list(equity_curve),
        completed=False,
    )


def _tally(telemetry: RunTelemetry, output: Optional[BacktestOutput]) -> None:
    if output is not None:
        telemetry.bars = len(output.equity_curve)
        telemetry.trades = len(output.trades)


def run_backtest(
    config: BacktestConfig,
    bars: pd.DataFrame,
    *,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancellationToken] = None,
    strategy: Optional[Strategy] = None,
) -> BacktestOutput:
    """
    Replay ``bars`` through the configured strategy.

    Args:
        config (BacktestConfig): Run inputs.
        bars (pd.DataFrame): OHLCV frame indexed by timestamp.
        on_progress (ProgressCallback | None): Receives percentages 0–100.
        cancel (CancellationToken | None): Checked before the first bar and at
            the top of every bar.
        strategy (Strategy | None): Pre-built strategy; resolved from
            ``config.strategy_id`` and ``config.strategy_params`` when omitted.

    Returns:
        BacktestOutput: Summary, fills and equity curve.

    Raises:
        ConfigurationError: Missing asset or unknown strategy, before any work.
        ComputationError: A bar, a calculation or the progress callback failed
            mid-run; ``partial`` holds what was recorded so far.
        BacktestCancelled: ``cancel`` was tripped; ``partial`` as above.
    """
    if not (config.asset or "").strip():
        raise ConfigurationError("asset is required")
    if strategy is None:
        strategy = resolve_strategy(config.strategy_id, config.strategy_params)

    try:
        frame = ensure_ohlcv_frame(bars)
    except DataValidationError as exc:
        raise ConfigurationError(f"unusable bar data: {exc}") from exc

    settings = get_settings()
    run_id = uuid.uuid4().hex[:12]
    with logging_context(run_id=run_id), run_span(
        strategy.strategy_id, config.asset, config.timeframe
    ) as telemetry:
        try:
            output = _run_loop(
                config,
                frame,
                strategy,
                warmup=max(settings.warmup_bars, strategy.warmup),
                progress=_ProgressReporter(on_progress, settings.progress_step_percent),
                cancel=cancel,
                periods_per_year=settings.periods_per_year,
            )
        except BacktestCancelled as exc:
            _tally(telemetry, exc.partial)
            telemetry.finish("cancelled", error=exc)
            raise
        except ComputationError as exc:
            _tally(telemetry, exc.partial)
            telemetry.finish("failed", error=exc)
            raise
        _tally(telemetry, output)
        telemetry.finish("completed")
    return output


def _run_loop(
    config: BacktestConfig,
    frame: pd.DataFrame,
    strategy: Strategy,
    *,
    warmup: int,
    progress: _ProgressReporter,
    cancel: Optional[CancellationToken],
    periods_per_year: int,
) -> BacktestOutput:
    n = len(frame)
    sim = ExecutionSimulator(config.asset, config.initial_capital, config.commission_percent)
    equity_curve: List[EquityPoint] = []
    peak = float(config.initial_capital)
    max_drawdown = 0.0

    def partial() -> BacktestOutput:
        return _snapshot(sim, equity_curve, max_drawdown=max_drawdown)

    def check_cancel(i: int) -> None:
        if cancel is not None and cancel.cancelled:
            logger.warning("[engine] cancelled at bar {}/{}", i, n)
            raise BacktestCancelled("backtest cancelled", partial=partial())

    def report(pct: float) -> None:
        try:
            progress(pct, force=True)
        except Exception as exc:
            logger.error("[engine] progress callback failed at {:.1f}%: {}", pct, exc)
            raise ComputationError(
                f"progress callback failed: {exc}", partial=partial()
            ) from exc

    logger.info(
        "[engine] start strategy={} asset={} bars={} warmup={} capital={:.2f} commission={}%",
        strategy.strategy_id,
        config.asset,
        n,
        warmup,
        config.initial_capital,
        config.commission_percent,
    )

    check_cancel(min(warmup, n))
    try:
        indicators = strategy.prepare(frame)
    except Exception as exc:
        raise ComputationError(
            f"indicator preparation failed: {exc}", partial=partial()
        ) from exc

    close = indicators.get("close")
    if close is None:
        close = np.asarray(frame["close"], dtype=float)
    timestamps = frame.index
    span = max(1, n - warmup)
    report(0.0)

    for i in range(warmup, n):
        check_cancel(i)
        ts = timestamps[i]
        try:
            price = float(close[i])
            _check_bar(i, price, ts)

            equity = sim.equity(price)
            equity_curve.append(EquityPoint(timestamp=ts, value=equity))

            if equity > peak:
                peak = equity
            drawdown = (peak - equity) / peak * 100.0 if peak > 0 else 0.0
            if drawdown > max_drawdown:
                max_drawdown = drawdown

            signal = strategy.evaluate(i, frame, indicators)
            if signal is not None:
                sim.apply(signal, ts, price)

            progress((i - warmup) / span * 100.0)
        except Exception as exc:
            logger.error("[engine] bar {} failed: {}", i, exc)
            raise ComputationError(
                f"backtest failed at bar {i}: {exc}", partial=partial()
            ) from exc

    try:
        if n and sim.is_long:
            sim.force_close(timestamps[-1], float(close[-1]))

        final_value = sim.cash
        total_return = (final_value - config.initial_capital) / config.initial_capital * 100.0
        summary = compute_summary(
            sim.trades,
            equity_curve,
            config.initial_capital,
            final_value,
            total_return,
            max_drawdown,
            periods_per_year=periods_per_year,
        )
    except Exception as exc:
        raise ComputationError(f"summary failed: {exc}", partial=partial()) from exc
    report(100.0)

    logger.info(
        "[engine] done strategy={} trades={} final={:.2f} return={:.2f}% maxDD={:.2f}%",
        strategy.strategy_id,
        summary.total_trades,
        summary.final_value,
        summary.total_return,
        summary.max_drawdown,
    )
    return BacktestOutput(
        summary=summary,
        trades=list(sim.trades),
        equity_curve=equity_curve,
        completed=True,
    )


def run_synthetic_backtest(
    config: BacktestConfig,
    *,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[CancellationToken] = None,
) -> BacktestOutput:
    """Generate synthetic history for ``config`` and backtest it."""
    if not (config.asset or "").strip():
        raise ConfigurationError("asset is required")
    strategy = resolve_strategy(config.strategy_id, config.strategy_params)
    bars = generate_historical_data(
        config.asset, config.start_date, config.end_date, config.timeframe
    )
    return run_backtest(
        config, bars, on_progress=on_progress, cancel=cancel, strategy=strategy
    )


__all__ = [
    "CancellationToken",
    "ProgressCallback",
    "run_backtest",
    "run_synthetic_backtest",
]
