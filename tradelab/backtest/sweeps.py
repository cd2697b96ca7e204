from __future__ import annotations

import argparse
import itertools
import json
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from pathlib import Path
from time import perf_counter
from typing import Any, Dict, Iterable, List

import pandas as pd
import yaml
from loguru import logger

from tradelab.backtest.engine import run_backtest
from tradelab.core.exceptions import ConfigurationError, TradeLabError
from tradelab.core.models import BacktestConfig
from tradelab.data.synthetic import generate_historical_data
from tradelab.logging_utils import setup_logging
from tradelab.settings import get_settings


def _load_config(path: Path) -> Dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"cannot read sweep config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError("Sweep config must be a mapping")
    return data


def _expand_param_grid(grid: Dict[str, Iterable[Any]]) -> List[Dict[str, Any]]:
    if not grid:
        return [{}]
    keys = list(grid.keys())
    combos = []
    for values in itertools.product(*(grid[k] for k in keys)):
        combos.append(dict(zip(keys, values, strict=True)))
    return combos


def _base_config(cfg: Dict[str, Any]) -> BacktestConfig:
    settings = get_settings()
    return BacktestConfig.parse(
        {
            "strategy_id": cfg.get("strategy", "sma-crossover"),
            "asset": cfg.get("asset", settings.default_asset),
            "timeframe": cfg.get("timeframe", settings.default_timeframe),
            "start_date": cfg.get("start"),
            "end_date": cfg.get("end"),
            "initial_capital": cfg.get("initial_capital", settings.initial_capital),
            "commission_percent": cfg.get(
                "commission_percent", settings.commission_percent
            ),
        }
    )


def _execute_job(
    job_idx: int,
    base: BacktestConfig,
    bars: pd.DataFrame,
    params: Dict[str, Any],
) -> Dict[str, Any]:
    config = base.model_copy(update={"strategy_params": dict(params)})
    started = perf_counter()
    output = run_backtest(config, bars)
    payload = {
        "job_id": job_idx,
        "strategy": config.strategy_id,
        "params": params,
        "metrics": output.summary.to_dict(),
        "duration_ms": (perf_counter() - started) * 1000.0,
    }
    logger.info(
        "[sweep] job={} strategy={} params={} return={:.2f}% sharpe={:.3f}",
        job_idx,
        config.strategy_id,
        params,
        output.summary.total_return,
        output.summary.sharpe_ratio,
    )
    return payload


def run_sweep(config_path: Path, *, bars: pd.DataFrame | None = None) -> Dict[str, Any]:
    """
    Run every parameter combination in a YAML sweep definition.

    All jobs replay the same bar frame (generated once unless ``bars`` is
    given), each with its own engine state. Failed jobs are logged and left
    out of the results.
    """
    cfg = _load_config(config_path)
    base = _base_config(cfg)
    combos = _expand_param_grid(cfg.get("params", {}) or {})
    if bars is None:
        bars = generate_historical_data(
            base.asset, base.start_date, base.end_date, base.timeframe
        )

    settings = get_settings()
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    base_output = Path(cfg.get("output_dir") or settings.sweep_output_dir)
    sweep_dir = base_output / base.strategy_id / timestamp
    sweep_dir.mkdir(parents=True, exist_ok=True)
    logger.info(
        "[sweep] starting dir={} jobs={} bars={}", sweep_dir, len(combos), len(bars)
    )

    started = perf_counter()
    results: List[Dict[str, Any]] = []
    max_workers = int(
        cfg.get("max_workers", min(settings.sweep_max_workers, len(combos) or 1))
    ) or 1
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        future_map = {
            executor.submit(_execute_job, idx, base, bars, params): (idx, params)
            for idx, params in enumerate(combos, start=1)
        }
        for future in as_completed(future_map):
            job_idx, params = future_map[future]
            try:
                payload = future.result()
            except TradeLabError as exc:
                logger.error("[sweep] job={} params={} failed: {}", job_idx, params, exc)
                continue
            results.append(payload)

    results.sort(key=lambda r: r["job_id"])
    summary_path = sweep_dir / "summary.jsonl"
    with summary_path.open("w") as handle:
        for record in results:
            handle.write(json.dumps(record, default=str) + "\n")
    duration_ms = (perf_counter() - started) * 1000.0
    logger.info(
        "[sweep] completed dir={} succeeded={}/{} in {:.0f}ms",
        sweep_dir,
        len(results),
        len(combos),
        duration_ms,
    )
    return {
        "sweep_dir": str(sweep_dir),
        "summary_path": str(summary_path),
        "results": results,
    }


def main() -> None:
    setup_logging()
    parser = argparse.ArgumentParser(description="Run parameter sweeps for backtests")
    parser.add_argument("--config", required=True, help="Path to YAML sweep definition")
    args = parser.parse_args()
    run_sweep(Path(args.config))


if __name__ == "__main__":
    main()
