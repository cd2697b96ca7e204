from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from tradelab.backtest import sweeps
from tradelab.core.exceptions import ConfigurationError


def test_expand_param_grid():
    grid = {"a": [1, 2], "b": ["x"]}
    combos = sweeps._expand_param_grid(grid)
    assert combos == [{"a": 1, "b": "x"}, {"a": 2, "b": "x"}]
    assert sweeps._expand_param_grid({}) == [{}]


def _write_cfg(tmp_path: Path, **overrides) -> Path:
    cfg = {
        "strategy": "sma-crossover",
        "asset": "ETH/USD",
        "timeframe": "1h",
        "start": "2024-01-01",
        "end": "2024-01-17",
        "initial_capital": 5000,
        "commission_percent": 0.1,
        "output_dir": str(tmp_path / "sweeps"),
        "params": {"fast": [10, 20], "slow": [50]},
        "max_workers": 2,
    }
    cfg.update(overrides)
    path = tmp_path / "sweep.yml"
    path.write_text(yaml.safe_dump(cfg))
    return path


def test_run_sweep_writes_one_record_per_job(tmp_path: Path, sine_frame):
    result = sweeps.run_sweep(_write_cfg(tmp_path), bars=sine_frame)

    assert [r["job_id"] for r in result["results"]] == [1, 2]
    summary_path = Path(result["summary_path"])
    assert summary_path.exists()
    assert summary_path.parent.parent.name == "sma-crossover"
    saved = [json.loads(line) for line in summary_path.read_text().strip().splitlines()]
    assert {rec["params"]["fast"] for rec in saved} == {10, 20}
    assert all("totalReturn" in rec["metrics"] for rec in saved)


def test_run_sweep_generates_bars_when_none_given(tmp_path: Path):
    cfg = _write_cfg(tmp_path, params={"lookback": [5]}, strategy="momentum")
    result = sweeps.run_sweep(cfg)
    assert len(result["results"]) == 1
    assert result["results"][0]["strategy"] == "momentum"


def test_run_sweep_skips_jobs_with_bad_params(tmp_path: Path, sine_frame):
    cfg = _write_cfg(tmp_path, params={"speed": [1, 2]})
    result = sweeps.run_sweep(cfg, bars=sine_frame)
    assert result["results"] == []
    assert Path(result["summary_path"]).read_text() == ""


def test_unreadable_config_is_a_configuration_error(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        sweeps.run_sweep(tmp_path / "missing.yml")
    bad = tmp_path / "list.yml"
    bad.write_text("- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        sweeps.run_sweep(bad)
