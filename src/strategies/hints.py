# src/strategies/hints.py
"""
Pistas de mercado que recibe el hook de decisión en cada tick.

- Régimen: global, a partir del cambio de la vela de 1m de cada par.
- Predicción ML simulada: por par, con un RSI de 14 periodos sobre los
  cierres de 1m y el score de sentimiento. Es determinista y ocupa el lugar
  de un servicio de inferencia.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

import numpy as np

if TYPE_CHECKING:
    from strategies.base import MarketView

__all__ = [
    "MarketRegime",
    "MLPrediction",
    "MarketHints",
    "REGIME_INTERVAL",
    "detect_regime",
    "compute_rsi",
    "predict_direction",
    "build_hints",
]

RegimeType = Literal["TRENDING_BULL", "TRENDING_BEAR", "HIGH_VOLATILITY", "LOW_VOLATILITY", "RANGING"]
Direction = Literal["UP", "DOWN", "SIDEWAYS"]

REGIME_INTERVAL = "1m"
RSI_PERIOD = 14

HIGH_VOLATILITY_THRESHOLD = 0.005
LOW_VOLATILITY_THRESHOLD = 0.001
TREND_THRESHOLD = 0.002


@dataclass(frozen=True)
class MarketRegime:
    type: RegimeType = "RANGING"
    trend: str = "NEUTRAL"  # BULLISH / BEARISH / NEUTRAL
    volatility: str = "MODERATE"  # HIGH / LOW / MODERATE
    confidence: float = 0.5
    risk_level: str = "MEDIUM"  # HIGH / LOW / MEDIUM
    avg_change: float = 0.0
    avg_volatility: float = 0.0


@dataclass(frozen=True)
class MLPrediction:
    direction: Direction = "SIDEWAYS"
    confidence: float = 0.5
    time_horizon: str = "1-5 minutes"

    @property
    def magnitude(self) -> float:
        """Movimiento esperado en porcentaje."""
        return round(self.confidence * 2.0, 1)


@dataclass(frozen=True)
class MarketHints:
    regime: MarketRegime
    prediction: MLPrediction
    rsi: float = 50.0


def detect_regime(changes: Iterable[float]) -> MarketRegime:
    """
    Clasifica el mercado a partir de los cambios relativos de cada par.

    Primero se mira la volatilidad. Una deriva media fuerte pisa el tipo con
    un régimen de tendencia, pero no toca el nivel de riesgo.
    """
    values = [c for c in changes if c is not None]
    if not values:
        return MarketRegime()

    avg_change = float(np.mean(values))
    avg_vol = float(np.mean(np.abs(values)))

    regime_type: RegimeType = "RANGING"
    trend = "NEUTRAL"
    risk = "MEDIUM"
    confidence = 0.6

    if avg_vol > HIGH_VOLATILITY_THRESHOLD:
        regime_type = "HIGH_VOLATILITY"
        risk = "HIGH"
        confidence = 0.8
    elif avg_vol < LOW_VOLATILITY_THRESHOLD:
        regime_type = "LOW_VOLATILITY"
        risk = "LOW"

    if abs(avg_change) > TREND_THRESHOLD:
        regime_type = "TRENDING_BULL" if avg_change > 0 else "TRENDING_BEAR"
        trend = "BULLISH" if avg_change > 0 else "BEARISH"
        confidence = 0.75

    if avg_vol > HIGH_VOLATILITY_THRESHOLD:
        vol_label = "HIGH"
    elif avg_vol < LOW_VOLATILITY_THRESHOLD:
        vol_label = "LOW"
    else:
        vol_label = "MODERATE"

    return MarketRegime(
        type=regime_type,
        trend=trend,
        volatility=vol_label,
        confidence=confidence,
        risk_level=risk,
        avg_change=avg_change,
        avg_volatility=avg_vol,
    )


def compute_rsi(closes: Sequence[float], period: int = RSI_PERIOD) -> float:
    """RSI de media simple sobre los últimos `period` deltas. Devuelve 50 si faltan datos."""
    if len(closes) < period + 1:
        return 50.0
    deltas = np.diff(np.asarray(closes[-(period + 1) :], dtype=float))
    gains = deltas[deltas > 0].sum() / period
    losses = -deltas[deltas < 0].sum() / period
    if losses == 0:
        return 100.0 if gains > 0 else 50.0
    rs = gains / losses
    return float(100.0 - 100.0 / (1.0 + rs))


def predict_direction(rsi: float, sentiment_score: float | None) -> MLPrediction:
    direction: Direction = "SIDEWAYS"
    confidence = 0.5

    if rsi < 30:
        direction = "UP"
        confidence = min(0.9, 0.6 + (30 - rsi) / 30 * 0.3)
    elif rsi > 70:
        direction = "DOWN"
        confidence = min(0.9, 0.6 + (rsi - 70) / 30 * 0.3)

    if sentiment_score is not None:
        if sentiment_score > 0.7 and direction != "DOWN":
            direction = "UP"
            confidence = min(0.95, confidence + 0.1)
        elif sentiment_score < 0.3 and direction != "UP":
            direction = "DOWN"
            confidence = min(0.95, confidence + 0.1)

    return MLPrediction(direction=direction, confidence=confidence)


def build_hints(view: MarketView, regime: MarketRegime) -> MarketHints:
    rsi = compute_rsi(view.closes(REGIME_INTERVAL))
    score = view.sentiment.score if view.sentiment is not None else None
    return MarketHints(regime=regime, prediction=predict_direction(rsi, score), rsi=rsi)
