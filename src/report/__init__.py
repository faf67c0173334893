"""Análisis de rendimiento, benchmark y exportación tabular del backtest."""

from __future__ import annotations

from .benchmark import (
    BenchmarkComparison,
    BenchmarkTargets,
    compare_to_benchmark,
    generate_recommendations,
    grade_from_pass_rate,
)
from .frames import timeline_to_dataframe, trades_to_dataframe
from .performance import PerformanceAnalyzer, PerformanceReport

__all__ = [
    "BenchmarkComparison",
    "BenchmarkTargets",
    "compare_to_benchmark",
    "generate_recommendations",
    "grade_from_pass_rate",
    "PerformanceAnalyzer",
    "PerformanceReport",
    "timeline_to_dataframe",
    "trades_to_dataframe",
]
