from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Literal

import pandas as pd

Side = Literal["buy", "sell"]


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


@dataclass
class Position:
    """
    The single long position held by the execution simulator.

    Attributes:
        quantity (float): Units held; 0 when flat.
        entry_price (float): Average fill price of the open position.
    """

    quantity: float = 0.0
    entry_price: float = 0.0

    @property
    def is_flat(self) -> bool:
        return self.quantity <= 0.0

    @property
    def entry_notional(self) -> float:
        return self.quantity * self.entry_price


@dataclass(frozen=True)
class TradeSignal:
    """
    An executed fill.

    pnl and pnl_percent are realized on the closing (sell) leg only; the
    opening (buy) leg carries zeros.
    """

    timestamp: pd.Timestamp
    asset: str
    side: Side
    price: float
    quantity: float
    pnl: float = 0.0
    pnl_percent: float = 0.0
    reason: str = ""

    def to_dict(self) -> Dict[str, Any]:
        out = {_camel(k): v for k, v in asdict(self).items()}
        out["timestamp"] = pd.Timestamp(self.timestamp).isoformat()
        return out


@dataclass(frozen=True)
class EquityPoint:
    timestamp: pd.Timestamp
    value: float

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": pd.Timestamp(self.timestamp).isoformat(), "value": self.value}


@dataclass(frozen=True)
class BacktestResult:
    """
    Aggregate statistics for one run. Percent-valued fields are in percent
    (10.0 means 10%).
    """

    total_return: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    win_rate: float = 0.0
    total_trades: int = 0
    winning_trades: int = 0
    losing_trades: int = 0
    avg_win: float = 0.0
    avg_loss: float = 0.0
    final_value: float = 0.0
    volatility: float = 0.0
    var95: float = 0.0
    profit_factor: float = 0.0
    calmar_ratio: float = 0.0
    round_trips: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {_camel(k): v for k, v in asdict(self).items()}


@dataclass
class BacktestOutput:
    summary: BacktestResult
    trades: List[TradeSignal] = field(default_factory=list)
    equity_curve: List[EquityPoint] = field(default_factory=list)
    completed: bool = True

    def trades_frame(self) -> pd.DataFrame:
        """Trades as a DataFrame (one row per fill)."""
        cols = [
            "timestamp",
            "asset",
            "side",
            "price",
            "quantity",
            "pnl",
            "pnl_percent",
            "reason",
        ]
        if not self.trades:
            return pd.DataFrame(columns=cols)
        return pd.DataFrame([asdict(t) for t in self.trades], columns=cols)

    def equity_frame(self) -> pd.DataFrame:
        """Equity curve as a DataFrame indexed by timestamp with an ``equity`` column."""
        idx = pd.DatetimeIndex([p.timestamp for p in self.equity_curve], name="timestamp")
        return pd.DataFrame({"equity": [p.value for p in self.equity_curve]}, index=idx)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable payload in the dashboard's camelCase shape."""
        return {
            "summary": self.summary.to_dict(),
            "trades": [t.to_dict() for t in self.trades],
            "equityCurve": [p.to_dict() for p in self.equity_curve],
            "completed": self.completed,
        }


__all__ = [
    "Side",
    "Position",
    "TradeSignal",
    "EquityPoint",
    "BacktestResult",
    "BacktestOutput",
]
