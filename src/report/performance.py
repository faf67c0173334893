# src/report/performance.py

"""
performance.py — análisis de rendimiento y riesgo al terminar un backtest.

Entradas: ledger de trades, muestras de timeline, estado final del portfolio,
capital inicial, duración simulada y objetivos de benchmark.

Salida: PerformanceReport, derivado una sola vez al completar el run.

Convenciones
------------
- Un trade es ganador si pnl > 0; perdedor si pnl < 0; pnl == 0 es neutro
  (cuenta en el total pero no en ganadores ni perdedores).
- Retornos: variación relativa entre muestras consecutivas del timeline.
- Sharpe: media / desviación poblacional × sqrt(252). 0 si hay menos de dos
  retornos o la desviación es 0.
- VaR histórico: sorted(retornos)[floor((1 - c) · n)].

API expuesta:
- PerformanceAnalyzer(...).analyze() -> PerformanceReport
- profit_factor / timeline_returns / sharpe_ratio / value_at_risk / running_drawdown
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import math
from typing import Any

from loguru import logger
import numpy as np

from core.types import SimulationError, TimelineSample, TradeRecord
from report.benchmark import BenchmarkTargets, compare_to_benchmark, generate_recommendations

__all__ = [
    "PerformanceReport",
    "PerformanceAnalyzer",
    "profit_factor",
    "timeline_returns",
    "sharpe_ratio",
    "value_at_risk",
    "running_drawdown",
    "ANNUALIZATION_FACTOR",
    "PROFIT_FACTOR_ONLY_WINS",
]

MS_PER_HOUR = 3_600_000
ANNUALIZATION_FACTOR = math.sqrt(252)
PROFIT_FACTOR_ONLY_WINS = 10.0
PROFIT_FACTOR_NO_TRADES = 1.0


# ------------------------------- Helpers --------------------------------- #
def profit_factor(pnls: Iterable[float]) -> float:
    """Σ ganancias / Σ |pérdidas|, con centinelas 10.0 (solo ganancias) y 1.0 (nada)."""
    values = list(pnls)
    wins = sum(p for p in values if p > 0)
    losses = abs(sum(p for p in values if p < 0))
    if losses > 0:
        return wins / losses
    return PROFIT_FACTOR_ONLY_WINS if wins > 0 else PROFIT_FACTOR_NO_TRADES


def timeline_returns(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.size < 2:
        return np.empty(0, dtype=float)
    prev = arr[:-1]
    with np.errstate(divide="ignore", invalid="ignore"):
        rets = np.where(prev != 0.0, arr[1:] / prev - 1.0, 0.0)
    return rets


def sharpe_ratio(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    if arr.size < 2:
        return 0.0
    std = float(arr.std())  # ddof=0: poblacional
    if std == 0.0:
        return 0.0
    return float(arr.mean() / std * ANNUALIZATION_FACTOR)


def value_at_risk(returns: Sequence[float], confidence: float) -> float:
    arr = np.sort(np.asarray(returns, dtype=float))
    if arr.size == 0:
        return 0.0
    idx = int(math.floor((1.0 - confidence) * arr.size))
    return float(arr[min(idx, arr.size - 1)])


def running_drawdown(values: Sequence[float]) -> float:
    """Drawdown pico-valle máximo en %, recorriendo la serie en orden."""
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(arr)
    with np.errstate(divide="ignore", invalid="ignore"):
        dd = np.where(peaks > 0, (peaks - arr) / peaks, 0.0)
    return float(dd.max() * 100.0)


def _max_streak(flags: Iterable[bool]) -> int:
    best = cur = 0
    for f in flags:
        cur = cur + 1 if f else 0
        best = max(best, cur)
    return best


# ------------------------------- Reporte --------------------------------- #
@dataclass(frozen=True)
class PerformanceReport:
    summary: dict[str, Any]
    performance_metrics: dict[str, Any]
    strategy_metrics: dict[str, Any]
    risk_metrics: dict[str, Any]
    benchmark_comparison: dict[str, Any]
    recommendations: list[dict[str, str]]
    timeline: tuple[TimelineSample, ...] = ()
    trades: tuple[TradeRecord, ...] = ()
    errors: tuple[SimulationError, ...] = ()

    @property
    def grade(self) -> str:
        return self.summary["overall_grade"]

    @property
    def status(self) -> str:
        return self.summary["benchmark_status"]

    def as_dict(self) -> dict[str, Any]:
        """Versión serializable (JSON) del reporte."""
        return {
            "summary": self.summary,
            "performance": self.performance_metrics,
            "metrics": self.strategy_metrics,
            "risk": self.risk_metrics,
            "benchmark": self.benchmark_comparison,
            "recommendations": self.recommendations,
            "timeline": [vars(s) for s in self.timeline],
            "trades": [t.as_dict() for t in self.trades],
            "errors": [vars(e) for e in self.errors],
        }


@dataclass
class PerformanceAnalyzer:
    trades: Sequence[TradeRecord]
    timeline: Sequence[TimelineSample]
    initial_capital: float
    final_value: float
    max_value: float
    min_value: float
    duration_ms: int
    targets: BenchmarkTargets = field(default_factory=BenchmarkTargets)
    errors: Sequence[SimulationError] = ()
    scenario: str = "unknown"

    @classmethod
    def from_portfolio(cls, portfolio: Any, **kwargs: Any) -> PerformanceAnalyzer:
        return cls(
            initial_capital=portfolio.initial_capital,
            final_value=portfolio.total_value,
            max_value=portfolio.max_value,
            min_value=portfolio.min_value,
            **kwargs,
        )

    # ------------------------------------------------------------------ #
    def analyze(self) -> PerformanceReport:
        perf = self.performance_metrics()
        returns = timeline_returns([s.portfolio_value for s in self.timeline])
        risk = self.risk_metrics(perf, returns)
        strat = self.strategy_metrics(perf, returns)

        comparison = compare_to_benchmark(perf, self.targets)
        recs = generate_recommendations(perf, self.targets)

        summary = {
            "scenario": self.scenario,
            "duration": self.duration_ms,
            "total_trades": perf["total_trades"],
            "final_return": perf["total_return"],
            "benchmark_status": comparison.status,
            "overall_grade": comparison.grade,
            "errors": len(self.errors),
        }
        logger.info(
            f"Reporte: retorno={perf['total_return']:.2f}% trades={perf['total_trades']} "
            f"win_rate={perf['win_rate']:.2%} pf={perf['profit_factor']:.2f} "
            f"estado={comparison.status} nota={comparison.grade}"
        )
        return PerformanceReport(
            summary=summary,
            performance_metrics=perf,
            strategy_metrics=strat,
            risk_metrics=risk,
            benchmark_comparison=comparison.as_dict(),
            recommendations=recs,
            timeline=tuple(self.timeline),
            trades=tuple(self.trades),
            errors=tuple(self.errors),
        )

    # ------------------------------------------------------------------ #
    def performance_metrics(self) -> dict[str, Any]:
        pnls = [t.pnl for t in self.trades]
        wins = [p for p in pnls if p > 0]
        losses = [p for p in pnls if p < 0]
        n = len(pnls)

        total_return = (self.final_value / self.initial_capital - 1.0) * 100.0
        max_dd = (self.max_value - self.min_value) / self.max_value * 100.0 if self.max_value > 0 else 0.0
        hours = self.duration_ms / MS_PER_HOUR
        returns = timeline_returns([s.portfolio_value for s in self.timeline])

        return {
            "total_return": total_return,
            "max_drawdown": max_dd,
            "win_rate": len(wins) / n if n else 0.0,
            "profit_factor": profit_factor(pnls),
            "trades_per_hour": n / hours if hours > 0 else 0.0,
            "hourly_return": total_return / hours if hours > 0 else 0.0,
            "sharpe_ratio": sharpe_ratio(returns),
            "total_trades": n,
            "winning_trades": len(wins),
            "losing_trades": len(losses),
            "total_wins": float(sum(wins)),
            "total_losses": float(abs(sum(losses))),
            "final_capital": self.final_value,
            "initial_capital": self.initial_capital,
        }

    def risk_metrics(self, perf: dict[str, Any], returns: np.ndarray) -> dict[str, Any]:
        values = [s.portfolio_value for s in self.timeline] + [self.final_value]
        return {
            "max_drawdown": perf["max_drawdown"],
            "running_max_drawdown": running_drawdown(values),
            "volatility": float(returns.std()) if returns.size else 0.0,
            "sharpe_ratio": perf["sharpe_ratio"],
            "var_95": value_at_risk(returns, 0.95),
            "var_99": value_at_risk(returns, 0.99),
        }

    def strategy_metrics(self, perf: dict[str, Any], returns: np.ndarray) -> dict[str, Any]:
        trades = list(self.trades)
        pnls = [t.pnl for t in trades]

        by_pair: dict[str, dict[str, float]] = {}
        for t in trades:
            row = by_pair.setdefault(t.pair, {"trades": 0, "total_pnl": 0.0, "avg_pnl": 0.0})
            row["trades"] += 1
            row["total_pnl"] += t.pnl
        for row in by_pair.values():
            row["avg_pnl"] = row["total_pnl"] / row["trades"]

        by_hour: dict[int, dict[str, float]] = {}
        for t in trades:
            hour = (t.timestamp // MS_PER_HOUR) % 24
            row = by_hour.setdefault(hour, {"trades": 0, "total_pnl": 0.0})
            row["trades"] += 1
            row["total_pnl"] += t.pnl

        std = float(returns.std()) if returns.size else 0.0
        return {
            "avg_trade_size": float(np.mean([t.requested_amount for t in trades])) if trades else 0.0,
            "max_consecutive_wins": _max_streak(p > 0 for p in pnls),
            "max_consecutive_losses": _max_streak(p < 0 for p in pnls),
            "largest_win": max((p for p in pnls if p > 0), default=0.0),
            "largest_loss": min((p for p in pnls if p < 0), default=0.0),
            "profitability_by_pair": by_pair,
            "performance_by_time_of_day": dict(sorted(by_hour.items())),
            "volatility_adjusted_return": perf["total_return"] / (std or 1.0),
            "total_fees": float(sum(t.fee for t in trades)),
        }
