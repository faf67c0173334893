# src/core/types.py
"""
Tipos y estructuras comunes del motor de backtesting.

- Entidades del feed sintético (PricePoint, VolumePoint, OrderBookSnapshot,
  SentimentSnapshot, NewsEvent): se generan una vez por run y son inmutables.
- Intención de la estrategia (Order) y asiento del ledger (TradeRecord).
- Posición abierta (Position): la única estructura mutable, propiedad del Portfolio.
- Muestras de timeline y errores registrados por el loop.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

# ------------------------------ Literales ---------------------------------

OrderSide = Literal["BUY", "SELL"]
NewsImpact = Literal["POSITIVE", "NEGATIVE", "NEUTRAL"]
SocialMomentum = Literal["STRONG", "MODERATE", "WEAK"]
NewsType = Literal["REGULATORY", "ADOPTION", "TECHNICAL", "MARKET", "PARTNERSHIP"]

ORDER_SIDES: tuple[str, ...] = ("BUY", "SELL")
NEWS_IMPACTS: tuple[str, ...] = ("POSITIVE", "NEGATIVE", "NEUTRAL")
NEWS_TYPES: tuple[str, ...] = ("REGULATORY", "ADOPTION", "TECHNICAL", "MARKET", "PARTNERSHIP")


# ------------------------------ Feed sintético ----------------------------


@dataclass(frozen=True)
class PricePoint:
    """Un tick del feed base. `timestamp` en ms desde el inicio del run."""

    timestamp: int
    price: float
    change: float
    volume: float


@dataclass(frozen=True)
class VolumePoint:
    timestamp: int
    volume: float
    buy_volume: float
    sell_volume: float


@dataclass(frozen=True)
class LargeOrder:
    side: OrderSide
    size: float
    price: float


@dataclass(frozen=True)
class OrderBookSnapshot:
    """
    Foto del libro de órdenes en un tick.

    imbalance = (bid_volume - ask_volume) / (bid_volume + ask_volume), en [-1, 1].
    """

    timestamp: int
    bid_price: float
    ask_price: float
    bid_volume: float
    ask_volume: float
    spread: float
    imbalance: float
    large_orders: tuple[LargeOrder, ...] = ()
    spread_tightness: float = 1.0

    @property
    def mid_price(self) -> float:
        return (self.bid_price + self.ask_price) / 2.0


@dataclass(frozen=True)
class SentimentSnapshot:
    timestamp: int
    score: float  # [0, 1], 0.5 = neutral
    news_impact: NewsImpact
    social_momentum: SocialMomentum
    fear_greed_index: int
    confidence: float


@dataclass(frozen=True)
class NewsEvent:
    timestamp: int
    type: NewsType
    impact: float  # relativo, con signo
    duration: float  # ms
    confidence: float

    def is_active(self, now_ms: int) -> bool:
        return self.timestamp <= now_ms < self.timestamp + self.duration


# ------------------------------ Órdenes y ledger --------------------------


@dataclass(frozen=True)
class Order:
    """
    Intención emitida por la estrategia (todavía no es un trade).

    requested_amount va en divisa de liquidación (p.ej. USDT), no en cantidad base.
    """

    pair: str
    side: OrderSide
    requested_amount: float
    confidence: float = 0.5
    reason: str = ""


@dataclass(frozen=True)
class TradeRecord:
    """Asiento inmutable del ledger de trades."""

    timestamp: int
    tick: int
    pair: str
    side: OrderSide
    requested_amount: float
    exec_price: float
    slippage: float
    fee: float
    net_amount: float
    quantity: float
    pnl: float = 0.0
    confidence: float = 0.5
    market_conditions: dict[str, Any] = field(default_factory=dict)

    @property
    def is_win(self) -> bool:
        return self.pnl > 0.0

    def as_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "tick": self.tick,
            "pair": self.pair,
            "side": self.side,
            "requested_amount": self.requested_amount,
            "exec_price": self.exec_price,
            "slippage": self.slippage,
            "fee": self.fee,
            "net_amount": self.net_amount,
            "quantity": self.quantity,
            "pnl": self.pnl,
            "confidence": self.confidence,
            "regime": self.market_conditions.get("regime"),
        }


@dataclass
class Position:
    """Posición larga en un par. Solo el Portfolio la crea y modifica."""

    pair: str
    quantity: float = 0.0
    avg_price: float = 0.0
    total_cost: float = 0.0
    last_update_time: int = 0

    def market_value(self, price: float) -> float:
        return self.quantity * price


# ------------------------------ Timeline y errores ------------------------


@dataclass(frozen=True)
class TimelineSample:
    timestamp: int
    tick: int
    portfolio_value: float
    cash: float
    positions_value: float
    positions_count: int


@dataclass(frozen=True)
class SimulationError:
    """Entrada del ledger de errores del loop (aislamiento por par y tick)."""

    tick: int
    timestamp: int
    message: str
    pair: str | None = None
    kind: str = ""


__all__ = [
    "OrderSide",
    "NewsImpact",
    "SocialMomentum",
    "NewsType",
    "ORDER_SIDES",
    "NEWS_IMPACTS",
    "NEWS_TYPES",
    "PricePoint",
    "VolumePoint",
    "LargeOrder",
    "OrderBookSnapshot",
    "SentimentSnapshot",
    "NewsEvent",
    "Order",
    "TradeRecord",
    "Position",
    "TimelineSample",
    "SimulationError",
]
