from __future__ import annotations

import pytest
from pydantic import ValidationError

from tradelab import settings as settings_module


def test_defaults(monkeypatch):
    for key in ("TRADELAB_WARMUP_BARS", "TRADELAB_INITIAL_CAPITAL", "TRADELAB_COMMISSION_PERCENT"):
        monkeypatch.delenv(key, raising=False)
    s = settings_module.reload_settings()
    assert s.warmup_bars == 50
    assert s.initial_capital == 10_000.0
    assert s.commission_percent == 0.1
    assert s.periods_per_year == 252


def test_env_overrides_after_reload(monkeypatch):
    monkeypatch.setenv("TRADELAB_WARMUP_BARS", "30")
    monkeypatch.setenv("TRADELAB_DEFAULT_ASSET", "SOL/USD")
    s = settings_module.reload_settings()
    assert s.warmup_bars == 30
    assert s.default_asset == "SOL/USD"
    assert settings_module.get_settings() is s


def test_invalid_values_rejected(monkeypatch):
    monkeypatch.setenv("TRADELAB_INITIAL_CAPITAL", "0")
    with pytest.raises(ValidationError):
        settings_module.reload_settings()
