"""
Generación de mercado sintético reproducible.

Ejemplo
-------
	from data.synthetic import MarketDataGenerator

	data = MarketDataGenerator("trending_bull").generate(42)
	feed = data.feed("BTC/USDT")
	candle = feed.candle_at("1m", 120)
"""

from __future__ import annotations

from .generator import DEFAULT_PAIRS, MarketData, MarketDataGenerator, PairFeed
from .price import ScenarioPriceGenerator
from .rng import RandomSource, make_rng
from .scenarios import Scenario, ScenarioProfile, available_scenarios, get_profile
from .series import CorrelatedSeriesGenerator

__all__ = [
    "DEFAULT_PAIRS",
    "MarketData",
    "MarketDataGenerator",
    "PairFeed",
    "ScenarioPriceGenerator",
    "CorrelatedSeriesGenerator",
    "Scenario",
    "ScenarioProfile",
    "available_scenarios",
    "get_profile",
    "RandomSource",
    "make_rng",
]
