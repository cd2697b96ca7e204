"""Centralized backtest settings powered by Pydantic.

Environment matrix:

| Environment Variable              | Default                | Purpose                                        |
|-----------------------------------|------------------------|------------------------------------------------|
| `TRADELAB_INITIAL_CAPITAL`        | `10000`                | Starting cash when a config omits it           |
| `TRADELAB_COMMISSION_PERCENT`     | `0.1`                  | Commission per fill, percent of notional       |
| `TRADELAB_WARMUP_BARS`            | `50`                   | Minimum bars skipped before signals evaluate   |
| `TRADELAB_PROGRESS_STEP_PERCENT`  | `1.0`                  | Minimum progress delta between callbacks       |
| `TRADELAB_PERIODS_PER_YEAR`       | `252`                  | Annualization factor for volatility            |
| `TRADELAB_DEFAULT_ASSET`          | `BTC/USD`              | Asset used by the CLI when none is given       |
| `TRADELAB_DEFAULT_TIMEFRAME`      | `1h`                   | Timeframe used by the CLI when none is given   |
| `TRADELAB_SWEEP_OUTPUT_DIR`       | `artifacts/sweeps`     | Root directory for sweep summaries             |
| `TRADELAB_SWEEP_MAX_WORKERS`      | `4`                    | Upper bound on concurrent sweep jobs           |

Settings source environment variables at construction time and are treated as
read-only; call ``reload_settings`` after changing the environment.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BacktestSettings(BaseSettings):
    """Engine defaults and runtime knobs."""

    model_config = SettingsConfigDict(
        env_prefix="TRADELAB_",
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    initial_capital: float = Field(default=10_000.0, gt=0)
    commission_percent: float = Field(default=0.1, ge=0)
    warmup_bars: int = Field(default=50, ge=1)
    progress_step_percent: float = Field(default=1.0, ge=0)
    periods_per_year: int = Field(default=252, ge=1)
    default_asset: str = "BTC/USD"
    default_timeframe: str = "1h"
    sweep_output_dir: str = "artifacts/sweeps"
    sweep_max_workers: int = Field(default=4, ge=1)


_settings: BacktestSettings | None = None


def get_settings() -> BacktestSettings:
    """Return the cached settings, building them from the environment once."""
    global _settings
    if _settings is None:
        _settings = BacktestSettings()
    return _settings


def reload_settings() -> BacktestSettings:
    """Re-read the environment and replace the cached settings."""
    global _settings
    _settings = BacktestSettings()
    return _settings


__all__ = ["BacktestSettings", "get_settings", "reload_settings"]
