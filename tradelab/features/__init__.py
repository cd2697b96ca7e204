"""
Feature engineering package.

This package includes:
- `indicators`: SMA, EMA, RSI and Bollinger Bands with warm-up sentinels

All modules under this package are pure pandas operations (no I/O) and are
safe to share across concurrently running backtests.
"""

from . import indicators

__all__ = ["indicators"]
