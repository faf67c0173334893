# src/data/synthetic/series.py
"""
CorrelatedSeriesGenerator: series derivadas del camino de precios.

- Volumen: crece con |change| y con la franja horaria.
- Libro de órdenes: spread proporcional al precio, profundidad aleatoria,
  0-3 órdenes grandes por tick.
- Sentimiento: momentum del cambio de precio + reversión a 0.5 + ruido.
- Noticias: eventos Bernoulli por tick calibrados a 5 por hora.

Todas las funciones consumen el mismo `rng` en un orden fijo; con la misma
semilla y el mismo camino de precios se obtienen series idénticas.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from core.errors import ConfigurationError
from core.types import (
    NEWS_IMPACTS,
    NEWS_TYPES,
    LargeOrder,
    NewsEvent,
    OrderBookSnapshot,
    PricePoint,
    SentimentSnapshot,
    VolumePoint,
)

__all__ = ["CorrelatedSeriesGenerator", "time_of_day_multiplier"]

MS_PER_HOUR = 3_600_000


def time_of_day_multiplier(hour: int) -> float:
    """Actividad por franja: alta en horario de mercado, baja de madrugada."""
    if 8 <= hour <= 16:
        return 1.5
    if 0 <= hour <= 6:
        return 0.6
    return 1.0


@dataclass
class CorrelatedSeriesGenerator:
    tick_interval_ms: int = 1000
    base_volume: float = 1_000_000.0
    news_events_per_hour: float = 5.0

    def __post_init__(self) -> None:
        if self.tick_interval_ms <= 0:
            raise ConfigurationError("tick_interval_ms debe ser > 0")
        if self.base_volume <= 0:
            raise ConfigurationError("base_volume debe ser > 0")
        if self.news_events_per_hour < 0:
            raise ConfigurationError("news_events_per_hour no puede ser negativo")

    # ------------------------------------------------------------------ #
    def volume_series(
        self, prices: Sequence[PricePoint], rng: np.random.Generator
    ) -> tuple[VolumePoint, ...]:
        out: list[VolumePoint] = []
        for i, pp in enumerate(prices):
            volatility_mult = 1.0 + abs(pp.change) * 50.0
            hour = (i * self.tick_interval_ms // MS_PER_HOUR) % 24
            random_mult = 0.7 + rng.random() * 0.6
            total = float(
                np.floor(self.base_volume * volatility_mult * time_of_day_multiplier(hour) * random_mult)
            )
            buy = float(np.floor(total * (0.45 + rng.random() * 0.1)))
            sell = float(np.floor(total * (0.45 + rng.random() * 0.1)))
            out.append(VolumePoint(timestamp=pp.timestamp, volume=total, buy_volume=buy, sell_volume=sell))
        return tuple(out)

    # ------------------------------------------------------------------ #
    def order_book_series(
        self, prices: Sequence[PricePoint], rng: np.random.Generator
    ) -> tuple[OrderBookSnapshot, ...]:
        out: list[OrderBookSnapshot] = []
        for pp in prices:
            price = pp.price
            spread = price * (0.0001 + rng.random() * 0.0004)
            bid = price - spread / 2.0
            ask = price + spread / 2.0
            bid_vol = 800_000.0 + rng.random() * 400_000.0
            ask_vol = 800_000.0 + rng.random() * 400_000.0
            out.append(
                OrderBookSnapshot(
                    timestamp=pp.timestamp,
                    bid_price=bid,
                    ask_price=ask,
                    bid_volume=bid_vol,
                    ask_volume=ask_vol,
                    spread=spread,
                    imbalance=(bid_vol - ask_vol) / (bid_vol + ask_vol),
                    large_orders=self._large_orders(price, bid, ask, rng),
                    spread_tightness=1.0 - spread / price,
                )
            )
        return tuple(out)

    @staticmethod
    def _large_orders(
        price: float, bid: float, ask: float, rng: np.random.Generator
    ) -> tuple[LargeOrder, ...]:
        n = int(rng.integers(0, 4))  # 0-3
        orders: list[LargeOrder] = []
        for _ in range(n):
            side = "BUY" if rng.random() > 0.5 else "SELL"
            size = 100_000.0 + rng.random() * 400_000.0
            if rng.random() > 0.5:
                level = bid - rng.random() * price * 0.001
            else:
                level = ask + rng.random() * price * 0.001
            orders.append(LargeOrder(side=side, size=size, price=level))
        return tuple(orders)

    # ------------------------------------------------------------------ #
    def sentiment_series(
        self, prices: Sequence[PricePoint], rng: np.random.Generator
    ) -> tuple[SentimentSnapshot, ...]:
        out: list[SentimentSnapshot] = []
        score = 0.5
        for pp in prices:
            score += 0.1 * (pp.change * 200.0)  # momentum
            score = score * 0.95 + 0.5 * 0.05  # reversión a neutral
            score += (rng.random() - 0.5) * 0.05
            score = max(0.0, min(1.0, score))

            impact = NEWS_IMPACTS[int(rng.integers(0, len(NEWS_IMPACTS)))]
            if score > 0.7:
                momentum = "STRONG"
            elif score < 0.3:
                momentum = "WEAK"
            else:
                momentum = "MODERATE"
            out.append(
                SentimentSnapshot(
                    timestamp=pp.timestamp,
                    score=score,
                    news_impact=impact,  # type: ignore[arg-type]
                    social_momentum=momentum,  # type: ignore[arg-type]
                    fear_greed_index=int(round(score * 100)),
                    confidence=0.6 + rng.random() * 0.3,
                )
            )
        return tuple(out)

    # ------------------------------------------------------------------ #
    @property
    def news_probability(self) -> float:
        ticks_per_hour = MS_PER_HOUR / self.tick_interval_ms
        return min(1.0, self.news_events_per_hour / ticks_per_hour)

    def news_events(
        self, total_ticks: int, rng: np.random.Generator, start_ms: int = 0
    ) -> tuple[NewsEvent, ...]:
        prob = self.news_probability
        events: list[NewsEvent] = []
        for i in range(total_ticks):
            if rng.random() < prob:
                events.append(
                    NewsEvent(
                        timestamp=start_ms + i * self.tick_interval_ms,
                        type=NEWS_TYPES[int(rng.integers(0, len(NEWS_TYPES)))],  # type: ignore[arg-type]
                        impact=(rng.random() - 0.5) * 0.02,
                        duration=60_000.0 + rng.random() * 300_000.0,
                        confidence=0.5 + rng.random() * 0.4,
                    )
                )
        return tuple(events)
