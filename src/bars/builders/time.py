"""
TimeframeCandleBuilder: agrega ticks en ventanas de tiempo fijas (1s, 5s, 1m...).

Regla de cierre
---------------
Cada tick pertenece al bucket floor(timestamp / interval_ms). La vela en curso
se cierra exactamente cuando llega un tick con un bucket distinto. No se
rellenan huecos: un intervalo sin ticks no produce vela.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from bars.base import Candle, CandleBuilder, Tick

__all__ = ["TimeframeCandleBuilder"]


@dataclass
class TimeframeCandleBuilder(CandleBuilder):
    interval_ms: int = 1000
    _bucket_id: int | None = field(default=None, init=False, repr=False)
    _open: float = field(default=0.0, init=False, repr=False)
    _high: float = field(default=0.0, init=False, repr=False)
    _low: float = field(default=0.0, init=False, repr=False)
    _close: float = field(default=0.0, init=False, repr=False)
    _volume: float = field(default=0.0, init=False, repr=False)
    _count: int = field(default=0, init=False, repr=False)
    _last_ts: int | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError("interval_ms debe ser > 0")

    def bucket_of(self, timestamp: int) -> int:
        return timestamp // self.interval_ms

    def update(self, tick: Tick) -> Candle | None:
        if self._last_ts is not None and tick.timestamp < self._last_ts:
            raise ValueError(
                f"ticks fuera de orden: {tick.timestamp} < {self._last_ts} "
                f"(interval_ms={self.interval_ms})"
            )
        self._last_ts = tick.timestamp
        bucket = self.bucket_of(tick.timestamp)

        closed: Candle | None = None
        if self._bucket_id is not None and bucket != self._bucket_id:
            # Cambió de bucket: cerrar vela previa
            closed = self._build_candle()
            self._count = 0

        if self._count == 0:
            self._bucket_id = bucket
            self._open = self._high = self._low = self._close = tick.price
            self._volume = 0.0

        self._high = max(self._high, tick.price)
        self._low = min(self._low, tick.price)
        self._close = tick.price
        self._volume += tick.volume
        self._count += 1
        return closed

    def reset(self) -> None:
        self._bucket_id = None
        self._count = 0
        self._volume = 0.0
        self._last_ts = None

    def flush_partial(self) -> Candle | None:
        """Cierra el bucket en curso; útil al terminar la serie."""
        if self._count == 0:
            return None
        candle = self._build_candle()
        self.reset()
        return candle

    def current_partial(self) -> Candle | None:
        """Vela del bucket en curso hasta el último tick, sin cerrarla."""
        if self._count == 0:
            return None
        return self._build_candle()

    @property
    def pending_ticks(self) -> int:
        return self._count

    def _build_candle(self) -> Candle:
        if self._bucket_id is None or self._count == 0:
            raise ValueError("No hay ticks para construir la vela.")
        return Candle(
            timestamp=self._bucket_id * self.interval_ms,
            open=self._open,
            high=self._high,
            low=self._low,
            close=self._close,
            volume=self._volume,
            trades=self._count,
        )
