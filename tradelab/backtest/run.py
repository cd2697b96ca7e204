from __future__ import annotations

import argparse
import json
import sys
import traceback
from pathlib import Path
from typing import Optional, Sequence

from loguru import logger

from tradelab.backtest.engine import run_synthetic_backtest
from tradelab.backtest.model import BacktestOutput
from tradelab.core.exceptions import TradeLabError
from tradelab.core.models import BacktestConfig
from tradelab.data.synthetic import TIMEFRAME_INTERVALS
from tradelab.logging_utils import setup_logging
from tradelab.settings import get_settings
from tradelab.strats import STRATEGIES


def _setup_cli_logging(level: str = "INFO") -> None:
    setup_logging(force=True, level=level)


def export_csv(output: BacktestOutput, export_dir: Path, asset: str) -> Path:
    """Write trades and equity curve CSVs; returns the directory used."""
    export_dir = Path(export_dir).expanduser()
    export_dir.mkdir(parents=True, exist_ok=True)
    stem = asset.replace("/", "")

    equity_path = (export_dir / f"{stem}_equity.csv").resolve()
    output.equity_frame().to_csv(equity_path)
    logger.info("Exported equity CSV -> {}", equity_path)

    trades_path = (export_dir / f"{stem}_trades.csv").resolve()
    output.trades_frame().to_csv(trades_path, index=False)
    logger.info("Exported trades CSV -> {}", trades_path)
    return export_dir


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    ap = argparse.ArgumentParser(description="Backtest a strategy on synthetic history")
    ap.add_argument("--strategy", default="sma-crossover", choices=sorted(STRATEGIES))
    ap.add_argument("--asset", default=settings.default_asset)
    ap.add_argument(
        "--timeframe",
        default=settings.default_timeframe,
        help=f"One of {', '.join(TIMEFRAME_INTERVALS)} (others fall back to 1h)",
    )
    ap.add_argument("--start", required=True, help="ISO start date")
    ap.add_argument("--end", required=True, help="ISO end date")
    ap.add_argument("--capital", type=float, default=settings.initial_capital)
    ap.add_argument(
        "--commission",
        type=float,
        default=settings.commission_percent,
        help="Commission percent per fill",
    )
    ap.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Strategy parameter override (repeatable), e.g. --param fast=10",
    )
    ap.add_argument("--export-csv", type=Path, help="Directory for trades/equity CSVs")
    ap.add_argument("--log-level", default="INFO")
    return ap


def _parse_params(pairs: Sequence[str]) -> dict:
    params = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise TradeLabError(f"bad --param {pair!r}; expected KEY=VALUE")
        params[key.strip()] = json.loads(raw) if raw.strip() else raw
    return params


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    _setup_cli_logging(args.log_level)

    try:
        config = BacktestConfig.parse(
            {
                "strategy_id": args.strategy,
                "asset": args.asset,
                "timeframe": args.timeframe,
                "start_date": args.start,
                "end_date": args.end,
                "initial_capital": args.capital,
                "commission_percent": args.commission,
                "strategy_params": _parse_params(args.param),
            }
        )
        output = run_synthetic_backtest(
            config, on_progress=lambda pct: logger.debug("progress {:.1f}%", pct)
        )
        if args.export_csv:
            export_csv(output, args.export_csv, config.asset)
    except (TradeLabError, json.JSONDecodeError) as e:
        logger.error("Backtest run failed, check configuration: {}", e)
        logger.debug("Traceback:\n{}", traceback.format_exc())
        return 1

    print(json.dumps(output.summary.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
