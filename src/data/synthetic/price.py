# src/data/synthetic/price.py
"""
ScenarioPriceGenerator: camino de precios tick a tick para todo el run.

Por tick i, con progreso p = i / total_ticks:

    change = trend + shape(p) + (U - 0.5) · 2 · volatility
    price  = clamp(price · (1 + change), 0.7·base, 1.5·base)

El clamp se aplica tras cada tick. La forma se aplica como cambio relativo por
tick, de modo que las formas sostenidas (crash, seno) se acumulan hasta
toparse con las bandas.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from core.errors import ConfigurationError
from core.types import PricePoint
from data.synthetic.scenarios import Scenario, ScenarioProfile, get_profile

__all__ = [
    "ScenarioPriceGenerator",
    "LOWER_BOUND_FACTOR",
    "UPPER_BOUND_FACTOR",
    "BASE_TICK_VOLUME",
]

LOWER_BOUND_FACTOR = 0.7  # caída máxima 30%
UPPER_BOUND_FACTOR = 1.5  # subida máxima 50%
BASE_TICK_VOLUME = 1_000_000.0


@dataclass
class ScenarioPriceGenerator:
    scenario: Scenario | str | ScenarioProfile
    duration_ms: int
    tick_interval_ms: int = 1000
    base_price: float = 50_000.0
    start_ms: int = 0

    def __post_init__(self) -> None:
        self.profile: ScenarioProfile = get_profile(self.scenario)
        if self.tick_interval_ms <= 0:
            raise ConfigurationError("tick_interval_ms debe ser > 0")
        if self.duration_ms < self.tick_interval_ms:
            raise ConfigurationError(
                f"duration_ms ({self.duration_ms}) debe ser >= tick_interval_ms "
                f"({self.tick_interval_ms})"
            )
        if self.base_price <= 0.0:
            raise ConfigurationError("base_price debe ser > 0")

    @property
    def total_ticks(self) -> int:
        return self.duration_ms // self.tick_interval_ms

    @property
    def bounds(self) -> tuple[float, float]:
        return self.base_price * LOWER_BOUND_FACTOR, self.base_price * UPPER_BOUND_FACTOR

    def generate(self, rng: np.random.Generator) -> tuple[PricePoint, ...]:
        """Genera la serie completa. Función pura de los parámetros y de `rng`."""
        total = self.total_ticks
        lo, hi = self.bounds
        trend = self.profile.trend
        vol = self.profile.volatility

        price = self.base_price
        points: list[PricePoint] = []
        for i in range(total):
            p = i / total
            shape_adj = self.profile.shape_adjustment(p, rng)
            random_component = (rng.random() - 0.5) * vol * 2.0
            change = trend + shape_adj + random_component

            price *= 1.0 + change
            if price < lo:
                price = lo
            elif price > hi:
                price = hi

            volume = BASE_TICK_VOLUME * (1.0 + abs(change) * 10.0) * (0.8 + rng.random() * 0.4)
            points.append(
                PricePoint(
                    timestamp=self.start_ms + i * self.tick_interval_ms,
                    price=float(price),
                    change=float(change),
                    volume=float(volume),
                )
            )
        return tuple(points)
