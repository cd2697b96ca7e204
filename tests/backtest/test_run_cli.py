from __future__ import annotations

import json
from pathlib import Path

import pytest

from tradelab.backtest import run
from tradelab.logging_utils import setup_test_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    setup_test_logging("tradelab-logs/")


def test_main_prints_summary_and_exports(tmp_path: Path, capsys):
    code = run.main(
        [
            "--strategy",
            "momentum",
            "--asset",
            "ETH/USD",
            "--start",
            "2024-01-01",
            "--end",
            "2024-01-08",
            "--param",
            "lookback=5",
            "--export-csv",
            str(tmp_path),
            "--log-level",
            "ERROR",
        ]
    )
    assert code == 0
    summary = json.loads(capsys.readouterr().out)
    assert "totalReturn" in summary and "finalValue" in summary
    assert (tmp_path / "ETHUSD_equity.csv").exists()
    assert (tmp_path / "ETHUSD_trades.csv").exists()


def test_main_returns_error_code_on_bad_input():
    assert run.main(["--start", "yesterday", "--end", "2024-01-02", "--log-level", "CRITICAL"]) == 1
    assert (
        run.main(
            ["--start", "2024-01-01", "--end", "2024-01-02", "--param", "bogus=1", "--log-level", "CRITICAL"]
        )
        == 1
    )
