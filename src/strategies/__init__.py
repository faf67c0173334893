"""
Estrategias (hooks de decisión) del backtest.

Importar el paquete registra las estrategias de referencia en el registro
global (`get_strategy_class("sentiment_scalper")`, ...).
"""

from __future__ import annotations

from .base import (
    MarketView,
    Strategy,
    as_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
)
from .buy_once import BuyOnceStrategy
from .hints import MarketHints, MarketRegime, MLPrediction
from .sentiment_scalper import SentimentScalper

__all__ = [
    "MarketView",
    "MarketHints",
    "MarketRegime",
    "MLPrediction",
    "Strategy",
    "as_strategy",
    "get_strategy_class",
    "list_strategies",
    "register_strategy",
    "BuyOnceStrategy",
    "SentimentScalper",
]
