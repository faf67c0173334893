# tests/test_config_loader.py
from __future__ import annotations

import copy

import pytest
import yaml

from core import config_loader
from core.config_loader import (
    DEFAULT_CONFIG_PATH,
    ENV_TO_CFG,
    build_backtest_config,
    get_nested,
    reload_config,
)
from core.errors import ConfigurationError

BASE_CFG = {
    "environment": {"log_level": "INFO", "log_dir": None},
    "simulation": {
        "scenario": "flash_crash",
        "duration_ms": 600_000,
        "initial_capital": 5_000.0,
        "trading_pairs": ["BTC/USDT", "ETH/USDT"],
        "seed": 3,
        "timeline_every": 30,
    },
    "execution": {"fee_rate": 0.002},
    "benchmark": {"min_win_rate": 0.5},
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for var in ENV_TO_CFG:
        monkeypatch.delenv(var, raising=False)
    yield
    # no dejar la config de un test cacheada para el siguiente
    config_loader._CONFIG_CACHE = None


def _write(tmp_path, cfg):
    path = tmp_path / "backtest.yaml"
    path.write_text(yaml.safe_dump(cfg), encoding="utf-8")
    return path


def test_load_and_build(tmp_path):
    cfg = reload_config(_write(tmp_path, BASE_CFG))
    bt = build_backtest_config(cfg)

    assert bt.scenario == "flash_crash"
    assert bt.duration_ms == 600_000
    assert bt.initial_capital == 5_000.0
    assert bt.trading_pairs == ("BTC/USDT", "ETH/USDT")
    assert bt.seed == 3
    assert bt.timeline_every == 30
    assert bt.progress_every == 600
    assert bt.cost_model.fee_rate == 0.002
    assert bt.cost_model.max_slippage == 0.005
    assert bt.benchmarks.min_win_rate == 0.5
    assert bt.benchmarks.min_profit_factor == 1.8


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("SCENARIO", "trending_bear")
    monkeypatch.setenv("SEED", "99")
    monkeypatch.setenv("INITIAL_CAPITAL", "2500")
    monkeypatch.setenv("TRADING_PAIRS", "SOL/USDC, ETH/USDT")
    monkeypatch.setenv("LOG_LEVEL", "")

    cfg = reload_config(_write(tmp_path, BASE_CFG))

    assert get_nested(cfg, "simulation", "scenario") == "trending_bear"
    assert get_nested(cfg, "simulation", "seed") == 99
    assert get_nested(cfg, "simulation", "initial_capital") == 2500.0
    assert get_nested(cfg, "simulation", "trading_pairs") == ["SOL/USDC", "ETH/USDT"]
    # las variables vacías no pisan el YAML
    assert get_nested(cfg, "environment", "log_level") == "INFO"


def test_bad_env_value_rejected(tmp_path, monkeypatch):
    monkeypatch.setenv("SEED", "abc")
    with pytest.raises(ConfigurationError):
        reload_config(_write(tmp_path, BASE_CFG))


def test_missing_required_key(tmp_path):
    cfg = copy.deepcopy(BASE_CFG)
    del cfg["simulation"]["duration_ms"]
    with pytest.raises(ConfigurationError, match="simulation.duration_ms"):
        reload_config(_write(tmp_path, cfg))


def test_unknown_scenario_rejected(tmp_path):
    cfg = copy.deepcopy(BASE_CFG)
    cfg["simulation"]["scenario"] = "moon_shot"
    with pytest.raises(ConfigurationError):
        reload_config(_write(tmp_path, cfg))


def test_missing_file_and_bad_yaml(tmp_path):
    with pytest.raises(ConfigurationError):
        reload_config(tmp_path / "nope.yaml")

    bad = tmp_path / "bad.yaml"
    bad.write_text("simulation: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        reload_config(bad)

    scalar = tmp_path / "scalar.yaml"
    scalar.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ConfigurationError):
        reload_config(scalar)


def test_cache_is_reused(tmp_path):
    first = reload_config(_write(tmp_path, BASE_CFG))
    assert config_loader.get_config() is first


def test_default_yaml_is_valid():
    assert DEFAULT_CONFIG_PATH.exists()
    cfg = reload_config(DEFAULT_CONFIG_PATH)
    bt = build_backtest_config(cfg)
    assert bt.scenario == "trending_bull"
    assert bt.seed == 42
    assert bt.intervals == ("1s", "5s", "15s", "1m", "5m")
    assert get_nested(cfg, "strategy", "name") == "sentiment_scalper"


def test_get_nested_default():
    assert get_nested({"a": {"b": 1}}, "a", "b") == 1
    assert get_nested({"a": {"b": 1}}, "a", "c", default="x") == "x"
    assert get_nested({"a": 1}, "a", "b") is None
