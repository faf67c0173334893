"""
Test that normalized imports (without 'src.' prefix) work correctly.

These tests validate that modules can be imported using the top-level
namespace when PYTHONPATH includes the src/ directory.
"""

from __future__ import annotations


def test_import_bars_modules():
    """Test that bars submodules can be imported."""
    from bars import CandleSeries, TimeframeCandleBuilder, make
    from bars.base import Candle, CandleBuilder, Tick

    assert CandleSeries is not None
    assert TimeframeCandleBuilder is not None
    assert Candle is not None
    assert Tick is not None
    assert isinstance(make("1s"), CandleBuilder)


def test_import_core_modules():
    """Test that core submodules can be imported."""
    from core import BacktestError, Order, TradeRecord
    from core.executor import ExecutionSimulator
    from core.portfolio import Portfolio
    from core.sim_engine import BacktestConfig, SimulationClock

    assert BacktestError is not None
    assert Order is not None
    assert TradeRecord is not None
    assert ExecutionSimulator is not None
    assert Portfolio is not None
    assert BacktestConfig is not None
    assert SimulationClock is not None


def test_import_data_modules():
    from data.synthetic import MarketDataGenerator, Scenario, make_rng

    assert MarketDataGenerator is not None
    assert len(list(Scenario)) == 8
    assert make_rng(1) is not None


def test_import_report_and_strategies():
    from report import PerformanceAnalyzer, trades_to_dataframe
    from strategies import BuyOnceStrategy, SentimentScalper, list_strategies

    assert PerformanceAnalyzer is not None
    assert trades_to_dataframe is not None
    registered = list_strategies()
    assert registered["buy_once"] is BuyOnceStrategy
    assert registered["sentiment_scalper"] is SentimentScalper
