"""OpenTelemetry hooks for backtest runs; every call is a no-op when OTEL is absent."""

from __future__ import annotations

from contextlib import contextmanager, nullcontext
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Dict, Iterator, Optional

try:  # Optional dependency
    from opentelemetry import trace
    from opentelemetry.trace import Status, StatusCode
except ImportError:  # pragma: no cover - OTEL optional
    trace = None  # type: ignore
    Status = StatusCode = None  # type: ignore

try:
    from opentelemetry.metrics import get_meter
except ImportError:  # pragma: no cover
    get_meter = None  # type: ignore

OUTCOMES = ("completed", "failed", "cancelled")

_tracer = trace.get_tracer("tradelab.backtest") if trace else None
_meter = get_meter("tradelab.backtest") if get_meter else None

if _meter is not None:
    _runs = _meter.create_counter(
        "tradelab_backtest_runs", unit="1", description="Backtest runs by outcome"
    )
    _duration = _meter.create_histogram(
        "tradelab_backtest_duration_ms", unit="ms", description="Wall time per backtest run"
    )
    _bars = _meter.create_histogram(
        "tradelab_backtest_bars", unit="1", description="Bars evaluated per backtest run"
    )
else:
    _runs = _duration = _bars = None


@dataclass
class RunTelemetry:
    """
    Per-run measurements, exported once the run ends.

    ``bars`` counts evaluated (post warm-up) bars; ``trades`` counts fills.
    """

    strategy: str
    asset: str
    timeframe: str
    bars: int = 0
    trades: int = 0
    outcome: str = "completed"
    error: Optional[str] = None
    started: float = field(default_factory=perf_counter)
    duration_ms: float = 0.0
    finished: bool = False

    def finish(self, outcome: str, *, error: Optional[BaseException] = None) -> None:
        if outcome not in OUTCOMES:
            raise ValueError(f"unknown run outcome {outcome!r}")
        self.outcome = outcome
        self.error = type(error).__name__ if error is not None else None
        self.duration_ms = (perf_counter() - self.started) * 1000.0
        self.finished = True

    def attributes(self) -> Dict[str, Any]:
        """Span attributes for the finished run."""
        attrs: Dict[str, Any] = {
            "backtest.strategy": self.strategy,
            "backtest.asset": self.asset,
            "backtest.timeframe": self.timeframe,
            "backtest.outcome": self.outcome,
            "backtest.bars": self.bars,
            "backtest.trades": self.trades,
            "backtest.duration_ms": round(self.duration_ms, 3),
        }
        if self.error:
            attrs["backtest.error"] = self.error
        return attrs

    def metric_labels(self) -> Dict[str, str]:
        return {"strategy": self.strategy, "outcome": self.outcome}


def _export(span, run: RunTelemetry) -> None:
    if span is not None:
        span.set_attributes(run.attributes())
        if run.outcome == "failed" and Status is not None:
            span.set_status(Status(StatusCode.ERROR, run.error or "failed"))
    if _runs is not None:
        labels = run.metric_labels()
        _runs.add(1, attributes=labels)
        _duration.record(run.duration_ms, attributes=labels)
        _bars.record(run.bars, attributes=labels)


@contextmanager
def run_span(strategy: str, asset: str, timeframe: str) -> Iterator[RunTelemetry]:
    """
    Wrap one backtest run in a ``backtest.run`` span.

    The caller fills ``bars``/``trades`` and calls ``finish``; an exception
    escaping the block marks the run failed unless ``finish`` already ran.
    """
    run = RunTelemetry(strategy=strategy, asset=asset, timeframe=timeframe)
    span_cm = (
        _tracer.start_as_current_span(
            "backtest.run", record_exception=True, set_status_on_exception=False
        )
        if _tracer is not None
        else nullcontext()
    )
    with span_cm as span:
        try:
            yield run
        except BaseException as exc:
            if not run.finished:
                run.finish("failed", error=exc)
            raise
        finally:
            if not run.finished:
                run.finish("completed")
            _export(span, run)


__all__ = ["OUTCOMES", "RunTelemetry", "run_span"]
