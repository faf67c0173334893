# src/bars/timeframes.py
"""
Agregación multi-timeframe del feed de ticks.

- parse_interval("5s") -> 5_000 ms. Unidades: s, m, h.
- aggregate_to_timeframe(): lista de velas cerradas en orden temporal.
- CandleSeries: velas de un timeframe, inmutable, indexada por tick.

CandleSeries guarda además la vela *parcial* de cada tick (OHLCV del bucket
en curso acumulado solo hasta ese tick). Es lo que ve la estrategia y el
simulador de ejecución: nunca incluye ticks futuros.
"""

from __future__ import annotations

from bisect import bisect_left
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import re

from bars.base import Candle, Tick
from bars.builders.time import TimeframeCandleBuilder
from core.errors import ConfigurationError

__all__ = [
    "DEFAULT_INTERVALS",
    "parse_interval",
    "sort_intervals",
    "aggregate_to_timeframe",
    "CandleSeries",
]

DEFAULT_INTERVALS: tuple[str, ...] = ("1s", "5s", "15s", "1m", "5m")

_UNIT_MS = {"s": 1_000, "m": 60_000, "h": 3_600_000}
_INTERVAL_RE = re.compile(r"^(\d+)([smh])$")


def parse_interval(interval: str) -> int:
    """Convierte '15s' / '1m' / '1h' a milisegundos."""
    m = _INTERVAL_RE.match(interval.strip().lower())
    if m is None:
        raise ConfigurationError(f"Intervalo inválido: {interval!r} (formato Ns, Nm o Nh)")
    value = int(m.group(1))
    if value <= 0:
        raise ConfigurationError(f"Intervalo debe ser > 0: {interval!r}")
    return value * _UNIT_MS[m.group(2)]


def sort_intervals(intervals: Iterable[str]) -> tuple[str, ...]:
    """Ordena de más fino a más grueso."""
    return tuple(sorted(set(intervals), key=parse_interval))


def aggregate_to_timeframe(ticks: Iterable[Tick], interval_ms: int) -> tuple[Candle, ...]:
    builder = TimeframeCandleBuilder(interval_ms=interval_ms)
    out: list[Candle] = []
    for tick in ticks:
        closed = builder.update(tick)
        if closed is not None:
            out.append(closed)
    last = builder.flush_partial()
    if last is not None:
        out.append(last)
    return tuple(out)


@dataclass(frozen=True)
class CandleSeries:
    interval: str
    interval_ms: int
    candles: tuple[Candle, ...]
    partials: tuple[Candle, ...]
    _starts: tuple[int, ...] = field(default=(), repr=False)

    @classmethod
    def from_ticks(cls, ticks: Sequence[Tick], interval: str) -> CandleSeries:
        interval_ms = parse_interval(interval)
        builder = TimeframeCandleBuilder(interval_ms=interval_ms)
        candles: list[Candle] = []
        partials: list[Candle] = []

        for tick in ticks:
            closed = builder.update(tick)
            if closed is not None:
                candles.append(closed)
            # vela parcial del bucket en curso, hasta este tick inclusive
            partials.append(builder.current_partial())

        last = builder.flush_partial()
        if last is not None:
            candles.append(last)
        return cls(
            interval=interval,
            interval_ms=interval_ms,
            candles=tuple(candles),
            partials=tuple(partials),
            _starts=tuple(k.timestamp for k in candles),
        )

    def __len__(self) -> int:
        return len(self.candles)

    def at_tick(self, tick: int) -> Candle | None:
        """Vela parcial vigente en el tick dado (None si fuera de rango)."""
        if 0 <= tick < len(self.partials):
            return self.partials[tick]
        return None

    def completed_before(self, timestamp: int, window: int) -> tuple[Candle, ...]:
        """Últimas `window` velas cuyo bucket termina antes del bucket de `timestamp`."""
        if window <= 0:
            return ()
        bucket_start = (timestamp // self.interval_ms) * self.interval_ms
        end = bisect_left(self._starts, bucket_start)
        return self.candles[max(0, end - window) : end]
