# src/data/synthetic/generator.py
"""
MarketDataGenerator: dataset histórico sintético completo para un run.

Une el generador de precios y las series correlacionadas, y estructura el
resultado por par de trading:

    MarketData
      ├─ pairs[pair] -> PairFeed (precios, volumen, libro, sentimiento, velas por timeframe)
      └─ news_events  (comunes a todos los pares)

Por defecto todos los pares comparten el mismo camino de precios. Con
`independent_pairs=True` cada par recibe su propio camino (mismo escenario),
generado en orden con el mismo `rng`.

Todo lo generado es inmutable: tuplas de dataclasses congeladas y mappings de
solo lectura.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from types import MappingProxyType

from loguru import logger
import numpy as np

from bars.base import Candle, Tick
from bars.timeframes import DEFAULT_INTERVALS, CandleSeries, sort_intervals
from core.errors import ConfigurationError, DataUnavailableError
from core.types import (
    NewsEvent,
    OrderBookSnapshot,
    PricePoint,
    SentimentSnapshot,
    VolumePoint,
)
from data.synthetic.price import ScenarioPriceGenerator
from data.synthetic.rng import make_rng
from data.synthetic.scenarios import Scenario, ScenarioProfile
from data.synthetic.series import CorrelatedSeriesGenerator

__all__ = ["PairFeed", "MarketData", "MarketDataGenerator", "DEFAULT_PAIRS"]

DEFAULT_PAIRS: tuple[str, ...] = ("BTC/USDT", "ETH/USDT", "SOL/USDC")


# ----------------------------- #
#  Estructuras de salida
# ----------------------------- #


@dataclass(frozen=True)
class PairFeed:
    pair: str
    prices: tuple[PricePoint, ...]
    volumes: tuple[VolumePoint, ...]
    order_books: tuple[OrderBookSnapshot, ...]
    sentiment: tuple[SentimentSnapshot, ...]
    timeframes: Mapping[str, CandleSeries]

    @property
    def intervals(self) -> tuple[str, ...]:
        """Timeframes disponibles, del más fino al más grueso."""
        return tuple(self.timeframes.keys())

    def __len__(self) -> int:
        return len(self.prices)

    def candle_at(self, interval: str, tick: int) -> Candle | None:
        series = self.timeframes.get(interval)
        return series.at_tick(tick) if series is not None else None

    def order_book_at(self, tick: int) -> OrderBookSnapshot | None:
        return self.order_books[tick] if 0 <= tick < len(self.order_books) else None

    def sentiment_at(self, tick: int) -> SentimentSnapshot | None:
        return self.sentiment[tick] if 0 <= tick < len(self.sentiment) else None


@dataclass(frozen=True)
class MarketData:
    scenario: str
    tick_interval_ms: int
    total_ticks: int
    pairs: Mapping[str, PairFeed]
    news_events: tuple[NewsEvent, ...] = ()
    start_ms: int = 0
    seed: int | None = field(default=None, compare=False)

    @property
    def duration_ms(self) -> int:
        return self.total_ticks * self.tick_interval_ms

    def feed(self, pair: str) -> PairFeed:
        try:
            return self.pairs[pair]
        except KeyError:
            raise DataUnavailableError(pair, detail="par sin feed") from None

    def time_at(self, tick: int) -> int:
        return self.start_ms + tick * self.tick_interval_ms

    def active_news(self, now_ms: int) -> tuple[NewsEvent, ...]:
        return tuple(ev for ev in self.news_events if ev.is_active(now_ms))


# ----------------------------- #
#  Generador
# ----------------------------- #


@dataclass
class MarketDataGenerator:
    scenario: Scenario | str | ScenarioProfile
    duration_ms: int = 3_600_000
    tick_interval_ms: int = 1000
    base_price: float = 50_000.0
    pairs: Sequence[str] = DEFAULT_PAIRS
    intervals: Sequence[str] = DEFAULT_INTERVALS
    independent_pairs: bool = False
    start_ms: int = 0

    def __post_init__(self) -> None:
        self._prices = ScenarioPriceGenerator(
            scenario=self.scenario,
            duration_ms=self.duration_ms,
            tick_interval_ms=self.tick_interval_ms,
            base_price=self.base_price,
            start_ms=self.start_ms,
        )
        self._series = CorrelatedSeriesGenerator(tick_interval_ms=self.tick_interval_ms)
        if not self.pairs:
            raise ConfigurationError("Se necesita al menos un par de trading.")
        if len(set(self.pairs)) != len(self.pairs):
            raise ConfigurationError(f"Pares duplicados: {list(self.pairs)}")
        if not self.intervals:
            raise ConfigurationError("Se necesita al menos un timeframe.")
        self._intervals = sort_intervals(self.intervals)

    @property
    def profile(self) -> ScenarioProfile:
        return self._prices.profile

    @property
    def total_ticks(self) -> int:
        return self._prices.total_ticks

    def generate(self, rng: np.random.Generator | int | None = None) -> MarketData:
        """Genera el dataset. Misma semilla + mismos parámetros -> mismo dataset."""
        seed = rng if isinstance(rng, int) else None
        gen = make_rng(rng)
        total = self.total_ticks
        logger.info(f"Generando {total} ticks para el escenario {self.profile.name}")

        feeds: dict[str, PairFeed] = {}
        if self.independent_pairs:
            for pair in self.pairs:
                feeds[pair] = self._build_feed(pair, *self._channels(gen))
            news = self._series.news_events(total, gen, start_ms=self.start_ms)
        else:
            channels = self._channels(gen)
            news = self._series.news_events(total, gen, start_ms=self.start_ms)
            shared = self._build_feed(self.pairs[0], *channels)
            for pair in self.pairs:
                feeds[pair] = replace(shared, pair=pair)

        logger.info(
            f"Datos históricos generados: {len(feeds)} pares, "
            f"{len(self._intervals)} timeframes, {len(news)} noticias"
        )
        return MarketData(
            scenario=self.profile.name,
            tick_interval_ms=self.tick_interval_ms,
            total_ticks=total,
            pairs=MappingProxyType(feeds),
            news_events=news,
            start_ms=self.start_ms,
            seed=seed,
        )

    # ------------------------- #
    #  Helpers internos
    # ------------------------- #

    def _channels(
        self, gen: np.random.Generator
    ) -> tuple[
        tuple[PricePoint, ...],
        tuple[VolumePoint, ...],
        tuple[OrderBookSnapshot, ...],
        tuple[SentimentSnapshot, ...],
    ]:
        prices = self._prices.generate(gen)
        volumes = self._series.volume_series(prices, gen)
        books = self._series.order_book_series(prices, gen)
        sentiment = self._series.sentiment_series(prices, gen)
        return prices, volumes, books, sentiment

    def _build_feed(
        self,
        pair: str,
        prices: tuple[PricePoint, ...],
        volumes: tuple[VolumePoint, ...],
        books: tuple[OrderBookSnapshot, ...],
        sentiment: tuple[SentimentSnapshot, ...],
    ) -> PairFeed:
        ticks = [Tick(timestamp=p.timestamp, price=p.price, volume=v.volume) for p, v in zip(prices, volumes)]
        timeframes = {iv: CandleSeries.from_ticks(ticks, iv) for iv in self._intervals}
        return PairFeed(
            pair=pair,
            prices=prices,
            volumes=volumes,
            order_books=books,
            sentiment=sentiment,
            timeframes=MappingProxyType(timeframes),
        )
