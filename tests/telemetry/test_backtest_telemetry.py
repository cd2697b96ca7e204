from __future__ import annotations

import pytest

from tradelab.telemetry.backtest import RunTelemetry, run_span


def test_run_span_marks_completed_when_block_exits_cleanly():
    with run_span("momentum", "BTC/USD", "1h") as run:
        run.bars = 12
        run.trades = 2
    attrs = run.attributes()
    assert attrs["backtest.outcome"] == "completed"
    assert (attrs["backtest.bars"], attrs["backtest.trades"]) == (12, 2)
    assert attrs["backtest.asset"] == "BTC/USD"


def test_escaping_exception_marks_run_failed():
    with pytest.raises(KeyError):
        with run_span("momentum", "BTC/USD", "1h") as run:
            raise KeyError("close")
    assert run.outcome == "failed"
    assert run.attributes()["backtest.error"] == "KeyError"


def test_explicit_outcome_survives_the_exception():
    with pytest.raises(RuntimeError):
        with run_span("momentum", "ETH/USD", "4h") as run:
            run.finish("cancelled", error=RuntimeError("stop"))
            raise RuntimeError("stop")
    assert run.outcome == "cancelled"


def test_unknown_outcome_rejected():
    run = RunTelemetry(strategy="momentum", asset="BTC/USD", timeframe="1h")
    with pytest.raises(ValueError):
        run.finish("exploded")
    assert run.metric_labels() == {"strategy": "momentum", "outcome": "completed"}
