from __future__ import annotations

import pytest

from bars.base import Candle
from core.types import SentimentSnapshot
from strategies.base import MarketView
from strategies.hints import (
    MarketRegime,
    MLPrediction,
    build_hints,
    compute_rsi,
    detect_regime,
    predict_direction,
)


def _candle(ts: int, close: float, open_: float | None = None) -> Candle:
    o = close if open_ is None else open_
    return Candle(timestamp=ts, open=o, high=max(o, close), low=min(o, close), close=close, volume=1.0, trades=1)


# ------------------------------ Régimen ---------------------------------- #


def test_no_changes_gives_default_regime():
    assert detect_regime([]) == MarketRegime()
    assert detect_regime([None, None]) == MarketRegime()


def test_strong_rally_is_trending_bull_with_high_risk():
    r = detect_regime([0.01, 0.01, 0.01])
    assert r.type == "TRENDING_BULL"
    assert r.trend == "BULLISH"
    assert r.volatility == "HIGH"
    assert r.risk_level == "HIGH"
    assert r.confidence == 0.75
    assert r.avg_change == pytest.approx(0.01)


def test_quiet_market_is_low_volatility():
    r = detect_regime([0.0005, -0.0005, None])
    assert r.type == "LOW_VOLATILITY"
    assert r.volatility == "LOW"
    assert r.risk_level == "LOW"
    assert r.confidence == 0.6


def test_balanced_moves_are_ranging():
    r = detect_regime([0.002, -0.002])
    assert r.type == "RANGING"
    assert r.trend == "NEUTRAL"
    assert r.volatility == "MODERATE"
    assert r.risk_level == "MEDIUM"


def test_large_opposite_moves_are_high_volatility():
    r = detect_regime([0.01, -0.01])
    assert r.type == "HIGH_VOLATILITY"
    assert r.confidence == 0.8
    assert r.avg_volatility == pytest.approx(0.01)


def test_moderate_decline_is_trending_bear():
    r = detect_regime([-0.003, -0.003])
    assert r.type == "TRENDING_BEAR"
    assert r.trend == "BEARISH"
    assert r.risk_level == "MEDIUM"


# ------------------------------ RSI -------------------------------------- #


def test_rsi_extremes_and_neutral():
    assert compute_rsi([float(i) for i in range(15)]) == 100.0
    assert compute_rsi([float(15 - i) for i in range(15)]) == 0.0
    assert compute_rsi([100.0] * 20) == 50.0
    assert compute_rsi([1.0, 2.0, 3.0]) == 50.0
    assert compute_rsi([1.0, 2.0] * 8) == pytest.approx(50.0)


def test_rsi_uses_last_period_deltas_only():
    # la caída inicial queda fuera de la ventana de 14 deltas
    closes = [100.0, 50.0] + [50.0 + i for i in range(15)]
    assert compute_rsi(closes) == 100.0


# ------------------------------ Predicción ------------------------------- #


@pytest.mark.parametrize(
    "rsi, sentiment, direction, confidence",
    [
        (20.0, None, "UP", 0.7),
        (20.0, 0.8, "UP", 0.8),
        (80.0, 0.8, "DOWN", 0.7),
        (50.0, 0.2, "DOWN", 0.6),
        (50.0, 0.5, "SIDEWAYS", 0.5),
        (0.0, None, "UP", 0.9),
        (100.0, 0.1, "DOWN", 0.95),
    ],
)
def test_predict_direction(rsi, sentiment, direction, confidence):
    pred = predict_direction(rsi, sentiment)
    assert pred.direction == direction
    assert pred.confidence == pytest.approx(confidence)


def test_prediction_magnitude():
    assert MLPrediction(direction="UP", confidence=0.7).magnitude == 1.4


# ------------------------------ Hints ------------------------------------ #


def test_build_hints_from_view():
    history = tuple(_candle(i * 60_000, 100.0 + i) for i in range(14))
    view = MarketView(
        pair="BTC/USDT",
        tick=900,
        timestamp=900_000,
        candles={"1m": _candle(840_000, 114.0, open_=113.5)},
        history={"1m": history},
        sentiment=SentimentSnapshot(
            timestamp=900_000,
            score=0.5,
            news_impact="NEUTRAL",
            social_momentum="MODERATE",
            fear_greed_index=50,
            confidence=0.7,
        ),
    )
    regime = detect_regime([view.change("1m")])
    hints = build_hints(view, regime)

    assert view.closes("1m")[-1] == 114.0
    assert hints.rsi == 100.0
    assert hints.prediction.direction == "DOWN"
    assert hints.prediction.confidence == pytest.approx(0.9)
    assert hints.regime is regime


def test_build_hints_without_history_is_neutral():
    view = MarketView(pair="ETH/USDT", tick=0, timestamp=0, candles={"1m": _candle(0, 100.0)})
    hints = build_hints(view, MarketRegime())
    assert hints.rsi == 50.0
    assert hints.prediction == MLPrediction()
