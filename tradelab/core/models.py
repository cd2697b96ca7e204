from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator
from pydantic.alias_generators import to_camel

from tradelab.core.exceptions import ConfigurationError, DataValidationError

OHLCV_COLUMNS = ("open", "high", "low", "close", "volume")


class HistoricalBar(BaseModel):
    """
    One OHLCV sample for a fixed timeframe.

    Attributes:
        timestamp (datetime): Bar open time (UTC).
        open (float): The open price.
        high (float): The high price.
        low (float): The low price.
        close (float): The close price.
        volume (float): Traded volume.
    """

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    model_config = ConfigDict(frozen=True, extra="ignore")

    @model_validator(mode="after")
    def _check_ohlc(self) -> "HistoricalBar":
        body_lo = min(self.open, self.close)
        body_hi = max(self.open, self.close)
        if not (self.low <= body_lo <= body_hi <= self.high):
            raise ValueError(
                f"OHLC invariant violated: o={self.open} h={self.high} "
                f"l={self.low} c={self.close}"
            )
        return self

    @property
    def range(self) -> float:
        """The high-low range of the bar."""
        return self.high - self.low

    def __repr__(self) -> str:
        return (
            f"HistoricalBar({self.timestamp.isoformat()}, o={self.open:.2f}, "
            f"h={self.high:.2f}, l={self.low:.2f}, c={self.close:.2f}, v={self.volume:.0f})"
        )


class BacktestConfig(BaseModel):
    """
    Immutable inputs for one backtest run.

    Accepts snake_case names or the camelCase keys the dashboard sends
    (``strategyId``, ``initialCapital``, ``commissionPercent``...). ``commission``
    is accepted as a legacy alias for ``commission_percent``.
    """

    strategy_id: str
    asset: str
    timeframe: str = "1h"
    start_date: date
    end_date: date
    initial_capital: float = Field(gt=0)
    commission_percent: float = Field(default=0.0, ge=0)
    strategy_params: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        alias_generator=to_camel,
    )

    @model_validator(mode="before")
    @classmethod
    def _legacy_keys(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            data = dict(data)
            if "strategy" in data and "strategyId" not in data and "strategy_id" not in data:
                data["strategy_id"] = data.pop("strategy")
            if (
                "commission" in data
                and "commissionPercent" not in data
                and "commission_percent" not in data
            ):
                data["commission_percent"] = data.pop("commission")
        return data

    @classmethod
    def parse(cls, data: Mapping[str, Any]) -> "BacktestConfig":
        """Validate a raw mapping, raising ConfigurationError on any problem."""
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid backtest config: {exc}") from exc


def bars_to_frame(bars: Iterable[HistoricalBar | Mapping[str, Any]]) -> pd.DataFrame:
    """Build the engine's OHLCV frame from bar records (or bar-shaped dicts)."""
    rows: List[Dict[str, Any]] = []
    for bar in bars:
        item = bar if isinstance(bar, HistoricalBar) else HistoricalBar.model_validate(bar)
        rows.append(item.model_dump())
    if not rows:
        return empty_frame()
    df = pd.DataFrame(rows)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df.set_index("timestamp")[list(OHLCV_COLUMNS)].astype(float)


def frame_to_bars(df: pd.DataFrame) -> List[HistoricalBar]:
    """Inverse of ``bars_to_frame``."""
    frame = ensure_ohlcv_frame(df)
    return [
        HistoricalBar(timestamp=ts.to_pydatetime(), **row)
        for ts, row in zip(frame.index, frame.to_dict(orient="records"))
    ]


def empty_frame() -> pd.DataFrame:
    idx = pd.DatetimeIndex([], tz=timezone.utc, name="timestamp")
    return pd.DataFrame({c: pd.Series(dtype=float) for c in OHLCV_COLUMNS}, index=idx)


def ensure_ohlcv_frame(df: Optional[pd.DataFrame]) -> pd.DataFrame:
    """
    Check a bar frame has the OHLCV columns and a datetime index.

    Column names are matched case-insensitively; a ``timestamp`` column is
    promoted to the index when present.
    """
    if df is None:
        raise DataValidationError("bar frame is None")
    out = df.copy()
    out.columns = pd.Index([str(c).strip().lower() for c in out.columns])
    if "timestamp" in out.columns:
        out["timestamp"] = pd.to_datetime(out["timestamp"], utc=True)
        out = out.set_index("timestamp")
    missing = [c for c in OHLCV_COLUMNS if c not in out.columns]
    if missing:
        raise DataValidationError(f"bar frame missing columns: {missing}")
    if not isinstance(out.index, pd.DatetimeIndex):
        raise DataValidationError("bar frame must be indexed by timestamp")
    out.index.name = "timestamp"
    return out[list(OHLCV_COLUMNS)].astype(float)


__all__ = [
    "OHLCV_COLUMNS",
    "HistoricalBar",
    "BacktestConfig",
    "bars_to_frame",
    "frame_to_bars",
    "empty_frame",
    "ensure_ohlcv_frame",
]
