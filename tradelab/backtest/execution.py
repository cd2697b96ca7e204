from __future__ import annotations

from typing import List, Optional

import pandas as pd
from loguru import logger

from tradelab.backtest.model import Position, TradeSignal
from tradelab.strats.common import Signal

CASH_DEPLOYED = 0.95  # fraction of cash committed on entry; the rest is buffer
FORCED_CLOSE_REASON = "End of backtest: position closed"


class ExecutionSimulator:
    """
    Long-only, single-position fill simulator.

    States are FLAT (no position) and LONG. A buy while FLAT opens a position
    with 95% of cash at the bar close; a sell while LONG liquidates all of it.
    Any other combination is ignored and leaves no record. Commission is a
    percentage of notional charged on both legs.
    """

    def __init__(self, asset: str, initial_capital: float, commission_percent: float = 0.0):
        self.asset = asset
        self.cash: float = float(initial_capital)
        self.commission_rate: float = float(commission_percent) / 100.0
        self.position = Position()
        self.trades: List[TradeSignal] = []

    @property
    def is_long(self) -> bool:
        return not self.position.is_flat

    def equity(self, price: float) -> float:
        return self.cash + self.position.quantity * float(price)

    def accepts(self, signal: Signal) -> bool:
        """Whether ``signal`` is actionable in the current state."""
        if signal.side == "buy":
            return not self.is_long
        if signal.side == "sell":
            return self.is_long
        return False

    def apply(
        self, signal: Signal, timestamp: pd.Timestamp, price: float
    ) -> Optional[TradeSignal]:
        """Route a strategy signal; returns the recorded fill or None."""
        if not self.accepts(signal):
            return None
        if signal.side == "buy":
            return self.buy(timestamp, price, signal.reason)
        return self.sell(timestamp, price, signal.reason)

    def buy(self, timestamp: pd.Timestamp, price: float, reason: str = "") -> Optional[TradeSignal]:
        if self.is_long:
            return None
        price = float(price)
        if price <= 0:
            return None
        quantity = (self.cash * CASH_DEPLOYED) / price
        if quantity <= 0:
            return None

        self.cash -= quantity * price * (1.0 + self.commission_rate)
        self.position = Position(quantity=quantity, entry_price=price)

        trade = TradeSignal(
            timestamp=timestamp,
            asset=self.asset,
            side="buy",
            price=price,
            quantity=quantity,
            pnl=0.0,
            pnl_percent=0.0,
            reason=reason,
        )
        self.trades.append(trade)
        logger.debug(
            "[exec] BUY {} qty={:.6f} @ {:.4f} cash={:.2f} ({})",
            self.asset,
            quantity,
            price,
            self.cash,
            reason,
        )
        return trade

    def sell(self, timestamp: pd.Timestamp, price: float, reason: str = "") -> Optional[TradeSignal]:
        if not self.is_long:
            return None
        price = float(price)
        pos = self.position

        self.cash += pos.quantity * price * (1.0 - self.commission_rate)
        pnl = (price - pos.entry_price) * pos.quantity
        notional = pos.entry_notional
        pnl_percent = (pnl / notional) * 100.0 if notional else 0.0
        self.position = Position()

        trade = TradeSignal(
            timestamp=timestamp,
            asset=self.asset,
            side="sell",
            price=price,
            quantity=pos.quantity,
            pnl=pnl,
            pnl_percent=pnl_percent,
            reason=reason,
        )
        self.trades.append(trade)
        logger.debug(
            "[exec] SELL {} qty={:.6f} @ {:.4f} pnl={:.2f} ({:.2f}%) cash={:.2f} ({})",
            self.asset,
            pos.quantity,
            price,
            pnl,
            pnl_percent,
            self.cash,
            reason,
        )
        return trade

    def force_close(self, timestamp: pd.Timestamp, price: float) -> Optional[TradeSignal]:
        """
        Liquidate any open position at the final close.

        The close is booked like any other sell, so it is part of the trade
        list and of the win/loss statistics.
        """
        if not self.is_long:
            return None
        return self.sell(timestamp, price, FORCED_CLOSE_REASON)


__all__ = ["ExecutionSimulator", "CASH_DEPLOYED", "FORCED_CLOSE_REASON"]
