"""
Tests del análisis de rendimiento: métricas agregadas, riesgo, benchmark,
recomendaciones y exportación a DataFrame.
"""

from __future__ import annotations

import math
import statistics

import pytest

from core.types import SimulationError, TimelineSample, TradeRecord
from report.benchmark import (
    BenchmarkTargets,
    compare_to_benchmark,
    generate_recommendations,
    grade_from_pass_rate,
)
from report.frames import TIMELINE_COLUMNS, TRADE_COLUMNS, timeline_to_dataframe, trades_to_dataframe
from report.performance import (
    PerformanceAnalyzer,
    profit_factor,
    running_drawdown,
    sharpe_ratio,
    timeline_returns,
    value_at_risk,
)

HOUR_MS = 3_600_000


def _trade(pnl: float, pair: str = "BTC/USDT", tick: int = 0, amount: float = 100.0, fee: float = 0.1):
    return TradeRecord(
        timestamp=tick * 1000,
        tick=tick,
        pair=pair,
        side="SELL",
        requested_amount=amount,
        exec_price=100.0,
        slippage=0.0001,
        fee=fee,
        net_amount=amount - fee,
        quantity=(amount - fee) / 100.0,
        pnl=pnl,
        market_conditions={"regime": "RANGING"},
    )


def _samples(values):
    return [
        TimelineSample(
            timestamp=i * 60_000,
            tick=i * 60,
            portfolio_value=v,
            cash=v,
            positions_value=0.0,
            positions_count=0,
        )
        for i, v in enumerate(values)
    ]


def _analyzer(trades=(), timeline=(), final=10_000.0, max_v=10_000.0, min_v=10_000.0, **kw):
    return PerformanceAnalyzer(
        trades=list(trades),
        timeline=list(timeline),
        initial_capital=10_000.0,
        final_value=final,
        max_value=max_v,
        min_value=min_v,
        duration_ms=HOUR_MS,
        **kw,
    )


# ------------------------------ Helpers ---------------------------------- #


def test_profit_factor_and_sentinels():
    assert profit_factor([100, 100, 100, -100]) == pytest.approx(3.0)
    assert profit_factor([1.0, 0.5, -0.3, -0.2]) == pytest.approx(3.0)
    assert profit_factor([5.0, 1.0]) == 10.0
    assert profit_factor([]) == 1.0
    assert profit_factor([0.0, 0.0]) == 1.0
    assert profit_factor([-3.0]) == 0.0


def test_timeline_returns():
    rets = timeline_returns([100.0, 110.0, 99.0])
    assert list(rets) == pytest.approx([0.1, -0.1])
    assert timeline_returns([100.0]).size == 0


def test_sharpe_uses_population_std():
    rets = [0.01, -0.005, 0.02, 0.0]
    expected = statistics.mean(rets) / statistics.pstdev(rets) * math.sqrt(252)
    assert sharpe_ratio(rets) == pytest.approx(expected)
    assert sharpe_ratio([0.01]) == 0.0
    assert sharpe_ratio([0.01, 0.01, 0.01]) == 0.0


def test_value_at_risk_historical():
    rets = [i / 1000 - 0.05 for i in range(100)]
    assert value_at_risk(rets, 0.95) == pytest.approx(-0.045)
    assert value_at_risk(rets, 0.99) == pytest.approx(-0.049)
    assert value_at_risk([], 0.95) == 0.0


def test_running_drawdown_follows_order():
    assert running_drawdown([100.0, 120.0, 90.0, 130.0]) == pytest.approx(25.0)
    assert running_drawdown([100.0, 110.0, 120.0]) == 0.0
    assert running_drawdown([]) == 0.0


# ------------------------------ Analyzer --------------------------------- #


def test_performance_metrics_from_trades():
    trades = [_trade(100), _trade(100), _trade(100), _trade(-100)]
    perf = _analyzer(trades, final=10_200.0, max_v=12_000.0, min_v=9_000.0).performance_metrics()

    assert perf["total_trades"] == 4
    assert perf["winning_trades"] == 3
    assert perf["losing_trades"] == 1
    assert perf["win_rate"] == pytest.approx(0.75)
    assert perf["profit_factor"] == pytest.approx(3.0)
    assert perf["total_wins"] == pytest.approx(300.0)
    assert perf["total_losses"] == pytest.approx(100.0)
    assert perf["total_return"] == pytest.approx(2.0)
    assert perf["hourly_return"] == pytest.approx(2.0)
    assert perf["trades_per_hour"] == pytest.approx(4.0)
    # drawdown global: (max - min) / max
    assert perf["max_drawdown"] == pytest.approx(25.0)


def test_zero_pnl_trades_are_neutral():
    perf = _analyzer([_trade(0.0), _trade(0.0), _trade(10.0)]).performance_metrics()
    assert perf["total_trades"] == 3
    assert perf["winning_trades"] == 1
    assert perf["losing_trades"] == 0
    assert perf["win_rate"] == pytest.approx(1 / 3)


def test_empty_run_metrics():
    report = _analyzer().analyze()
    perf = report.performance_metrics
    assert perf["total_trades"] == 0
    assert perf["win_rate"] == 0.0
    assert perf["profit_factor"] == 1.0
    assert perf["sharpe_ratio"] == 0.0
    assert report.risk_metrics["var_95"] == 0.0
    assert report.strategy_metrics["avg_trade_size"] == 0.0


def test_strategy_metrics_streaks_and_pairs():
    trades = [
        _trade(10, "BTC/USDT", tick=0, amount=100.0),
        _trade(20, "BTC/USDT", tick=1, amount=300.0),
        _trade(-5, "ETH/USDT", tick=2),
        _trade(-7, "ETH/USDT", tick=3),
        _trade(-1, "ETH/USDT", tick=4),
        _trade(30, "SOL/USDC", tick=5),
    ]
    report = _analyzer(trades).analyze()
    strat = report.strategy_metrics

    assert strat["max_consecutive_wins"] == 2
    assert strat["max_consecutive_losses"] == 3
    assert strat["largest_win"] == 30
    assert strat["largest_loss"] == -7
    assert strat["total_fees"] == pytest.approx(0.6)
    assert strat["avg_trade_size"] == pytest.approx(800.0 / 6)
    assert strat["profitability_by_pair"]["BTC/USDT"] == {"trades": 2, "total_pnl": 30.0, "avg_pnl": 15.0}
    assert strat["profitability_by_pair"]["ETH/USDT"]["avg_pnl"] == pytest.approx(-13 / 3)
    assert strat["performance_by_time_of_day"] == {0: {"trades": 6, "total_pnl": 47.0}}


def test_risk_metrics_include_final_value():
    timeline = _samples([10_000.0, 10_500.0, 10_200.0])
    report = _analyzer(timeline=timeline, final=9_450.0, max_v=10_500.0, min_v=9_450.0).analyze()
    risk = report.risk_metrics

    assert risk["max_drawdown"] == pytest.approx(10.0)
    # el valor final entra en el drawdown recorrido
    assert risk["running_max_drawdown"] == pytest.approx(10.0)
    rets = [0.05, 10_200.0 / 10_500.0 - 1.0]
    assert risk["volatility"] == pytest.approx(statistics.pstdev(rets))
    assert risk["var_95"] == pytest.approx(min(rets))


def test_report_summary_and_serialization():
    errors = [SimulationError(tick=3, timestamp=3000, message="boom", pair="ETH/USDT", kind="RuntimeError")]
    report = _analyzer([_trade(5.0)], timeline=_samples([10_000.0]), errors=errors, scenario="flash_crash").analyze()

    assert report.summary["scenario"] == "flash_crash"
    assert report.summary["duration"] == HOUR_MS
    assert report.summary["errors"] == 1
    assert report.grade == report.summary["overall_grade"]
    assert report.status in ("PASS", "FAIL")

    data = report.as_dict()
    assert set(data) == {
        "summary",
        "performance",
        "metrics",
        "risk",
        "benchmark",
        "recommendations",
        "timeline",
        "trades",
        "errors",
    }
    assert data["errors"][0]["kind"] == "RuntimeError"
    assert data["trades"][0]["regime"] == "RANGING"
    assert data["timeline"][0]["portfolio_value"] == 10_000.0


# ------------------------------ Benchmark -------------------------------- #


def _metrics(**overrides):
    base = {
        "win_rate": 0.6,
        "profit_factor": 2.0,
        "max_drawdown": 3.0,
        "sharpe_ratio": 1.5,
        "trades_per_hour": 20.0,
        "hourly_return": 2.5,
    }
    base.update(overrides)
    return base


def test_benchmark_all_pass():
    targets = BenchmarkTargets()
    cmp = compare_to_benchmark(_metrics(), targets)
    assert cmp.passed_tests == 6
    assert cmp.status == "PASS"
    assert cmp.grade == "A"

    recs = generate_recommendations(_metrics(), targets)
    assert recs == [
        {
            "category": "Performance",
            "priority": "INFO",
            "issue": "Strategy meets all benchmark criteria",
            "recommendation": recs[0]["recommendation"],
        }
    ]


def test_benchmark_five_of_six_is_b_pass():
    cmp = compare_to_benchmark(_metrics(win_rate=0.4), BenchmarkTargets())
    assert cmp.passed_tests == 5
    assert not cmp.checks["win_rate"].passed
    assert cmp.grade == "B"
    assert cmp.status == "PASS"


def test_benchmark_four_of_six_is_d_fail():
    cmp = compare_to_benchmark(_metrics(max_drawdown=8.0, sharpe_ratio=0.5), BenchmarkTargets())
    assert cmp.passed_tests == 4
    assert cmp.grade == "D"
    assert cmp.status == "FAIL"
    assert cmp.as_dict()["comparison"]["max_drawdown"] == {"actual": 8.0, "target": 5.0, "passed": False}


def test_drawdown_at_limit_passes():
    cmp = compare_to_benchmark(_metrics(max_drawdown=5.0), BenchmarkTargets())
    assert cmp.checks["max_drawdown"].passed


def test_grade_thresholds():
    assert [grade_from_pass_rate(r) for r in (1.0, 0.85, 0.7, 0.65, 0.2)] == ["A", "B", "C", "D", "F"]


def test_recommendations_categories_and_priorities():
    bad = {
        "win_rate": 0.1,
        "profit_factor": 0.5,
        "max_drawdown": 20.0,
        "sharpe_ratio": -1.0,
        "trades_per_hour": 1.0,
        "hourly_return": -3.0,
    }
    recs = generate_recommendations(bad, BenchmarkTargets())
    assert [(r["category"], r["priority"]) for r in recs] == [
        ("Entry Strategy", "HIGH"),
        ("Risk Management", "HIGH"),
        ("Risk Management", "CRITICAL"),
        ("Risk Management", "MEDIUM"),
        ("Strategy Optimization", "MEDIUM"),
        ("Performance", "MEDIUM"),
    ]
    assert all(r["issue"] and r["recommendation"] for r in recs)


def test_targets_from_mapping():
    targets = BenchmarkTargets.from_mapping({"min_win_rate": "0.6", "unknown_key": 1})
    assert targets.min_win_rate == 0.6
    assert targets.min_profit_factor == 1.8
    assert BenchmarkTargets.from_mapping(None) == BenchmarkTargets()


# ------------------------------ Frames ----------------------------------- #


def test_trades_dataframe_columns_and_cumulative_pnl():
    df = trades_to_dataframe([_trade(10.0), _trade(-4.0, pair="ETH/USDT", tick=1)])
    assert list(df.columns) == TRADE_COLUMNS + ["pnl_cum"]
    assert list(df["pnl_cum"]) == pytest.approx([10.0, 6.0])
    assert list(df["regime"]) == ["RANGING", "RANGING"]


def test_timeline_dataframe_returns():
    df = timeline_to_dataframe(_samples([100.0, 110.0]))
    assert list(df.columns) == TIMELINE_COLUMNS + ["return"]
    assert math.isnan(df["return"].iloc[0])
    assert df["return"].iloc[1] == pytest.approx(0.1)


def test_empty_frames_keep_columns():
    assert list(trades_to_dataframe([]).columns) == TRADE_COLUMNS + ["pnl_cum"]
    assert trades_to_dataframe([]).empty
    assert list(timeline_to_dataframe([]).columns) == TIMELINE_COLUMNS + ["return"]
