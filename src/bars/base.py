# src/bars/base.py
"""
Módulo base para la agregación de ticks en velas OHLCV.

Define las interfaces principales:
- Tick: un punto del feed base (precio + volumen) en ms desde el inicio del run.
- Candle: vela agregada de un timeframe.
- CandleBuilder: interfaz abstracta para construir velas incrementalmente.

Cada implementación concreta (por ejemplo, TimeframeCandleBuilder) hereda de
CandleBuilder y define cuándo se cierra una vela.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

__all__ = ["Tick", "Candle", "CandleBuilder"]


# ============================================================
# Tick
# ============================================================


@dataclass(frozen=True)
class Tick:
    """
    Punto del feed base.

    Atributos
    ---------
    timestamp : int
        Marca temporal en ms.
    price : float
        Precio del tick.
    volume : float
        Volumen negociado en el tick.
    """

    timestamp: int
    price: float
    volume: float


# ============================================================
# Candle
# ============================================================


@dataclass(frozen=True)
class Candle:
    """
    Vela OHLCV de un timeframe.

    Atributos
    ---------
    timestamp : int
        Inicio del bucket (bucket_id * interval_ms).
    open, high, low, close : float
        Precios OHLC. Siempre high >= max(open, close) y low <= min(open, close).
    volume : float
        Suma de los volúmenes de los ticks del bucket.
    trades : int
        Número de ticks agregados.
    """

    timestamp: int
    open: float
    high: float
    low: float
    close: float
    volume: float
    trades: int

    @property
    def price(self) -> float:
        """Precio de referencia de la vela (cierre)."""
        return self.close

    @property
    def change(self) -> float:
        return (self.close - self.open) / self.open if self.open else 0.0

    @property
    def price_range(self) -> float:
        return self.high - self.low

    @property
    def avg_price(self) -> float:
        return (self.open + self.high + self.low + self.close) / 4.0


# ============================================================
# CandleBuilder
# ============================================================


class CandleBuilder(ABC):
    """
    Interfaz abstracta para construir velas incrementalmente.

    Flujo típico
    ------------
    builder = TimeframeCandleBuilder(interval_ms=5_000)
    for tick in ticks:
        candle = builder.update(tick)
        if candle:
            yield candle
    last = builder.flush_partial()
    """

    @abstractmethod
    def update(self, tick: Tick) -> Candle | None:
        """
        Incorpora un tick. Si cierra la vela en curso, la devuelve;
        en caso contrario devuelve None.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Reinicia el estado interno del builder."""
        raise NotImplementedError

    @abstractmethod
    def flush_partial(self) -> Candle | None:
        """Cierra la vela en curso (si existe) y la devuelve."""
        raise NotImplementedError
