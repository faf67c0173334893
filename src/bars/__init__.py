"""
Agregación de ticks en velas OHLCV por timeframe.

Ejemplos
--------
	from bars import make, CandleSeries

	builder = make("5s")                          # TimeframeCandleBuilder(interval_ms=5_000)
	series = CandleSeries.from_ticks(ticks, "1m")
	candle = series.at_tick(42)                   # vela parcial vigente en el tick 42
"""

from __future__ import annotations

from .base import Candle, CandleBuilder, Tick
from .builders.time import TimeframeCandleBuilder
from .timeframes import (
    DEFAULT_INTERVALS,
    CandleSeries,
    aggregate_to_timeframe,
    parse_interval,
    sort_intervals,
)

__all__ = [
    "make",
    "Candle",
    "CandleBuilder",
    "Tick",
    "TimeframeCandleBuilder",
    "CandleSeries",
    "DEFAULT_INTERVALS",
    "aggregate_to_timeframe",
    "parse_interval",
    "sort_intervals",
]


def make(interval: str) -> CandleBuilder:
    """Fabrica un builder de velas temporales a partir de '1s', '5m', etc."""
    return TimeframeCandleBuilder(interval_ms=parse_interval(interval))
