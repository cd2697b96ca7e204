from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type

from tradelab.core.exceptions import ConfigurationError

from .bollinger import BollingerReversion
from .common import Signal, Strategy, param_names
from .macd import MacdDivergence
from .momentum import Momentum
from .rsi_oversold import RsiOversold
from .sma_crossover import SmaCrossover

# Public API for strategies
STRATEGIES: Dict[str, Type[Strategy]] = {
    cls.strategy_id: cls
    for cls in (SmaCrossover, RsiOversold, BollingerReversion, MacdDivergence, Momentum)
}


def resolve_strategy(
    strategy_id: str, overrides: Optional[Mapping[str, Any]] = None
) -> Strategy:
    """
    Build the strategy for ``strategy_id`` with optional parameter overrides.

    Raises ConfigurationError for unknown ids or parameter names.
    """
    cls = STRATEGIES.get(strategy_id or "")
    if cls is None:
        raise ConfigurationError(
            f"unknown strategy {strategy_id!r}; expected one of {sorted(STRATEGIES)}"
        )
    params = dict(overrides or {})
    unknown = set(params) - param_names(cls)
    if unknown:
        raise ConfigurationError(
            f"unknown parameters for {strategy_id}: {sorted(unknown)}"
        )
    try:
        return cls(**params)
    except TypeError as exc:
        raise ConfigurationError(f"bad parameters for {strategy_id}: {exc}") from exc


def list_strategies() -> List[Dict[str, str]]:
    """Catalog for strategy pickers: id, display name, description."""
    return [
        {"id": cls.strategy_id, "name": cls.name, "description": cls.description}
        for cls in STRATEGIES.values()
    ]


__all__ = [
    "STRATEGIES",
    "Signal",
    "Strategy",
    "SmaCrossover",
    "RsiOversold",
    "BollingerReversion",
    "MacdDivergence",
    "Momentum",
    "resolve_strategy",
    "list_strategies",
]
