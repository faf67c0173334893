"""
Tests de las estrategias incluidas y del registro global.
"""

from __future__ import annotations

import pytest

from bars.base import Candle
from core.portfolio import Portfolio
from core.types import Order
from strategies import (
    BuyOnceStrategy,
    MarketHints,
    MarketRegime,
    MarketView,
    MLPrediction,
    SentimentScalper,
    Strategy,
    as_strategy,
    get_strategy_class,
    list_strategies,
    register_strategy,
)


def _view(pair: str = "BTC/USDT", tick: int = 0, price: float = 50_000.0) -> MarketView:
    candle = Candle(timestamp=tick * 1000, open=price, high=price, low=price, close=price, volume=10.0, trades=1)
    return MarketView(pair=pair, tick=tick, timestamp=tick * 1000, candles={"1s": candle})


def _hints(direction: str = "SIDEWAYS", confidence: float = 0.5, risk: str = "MEDIUM") -> MarketHints:
    return MarketHints(
        regime=MarketRegime(risk_level=risk),
        prediction=MLPrediction(direction=direction, confidence=confidence),  # type: ignore[arg-type]
    )


# ------------------------------ BuyOnce ---------------------------------- #


def test_buy_once_fires_a_single_time():
    strat = BuyOnceStrategy(pair="ETH/USDT", amount=250.0, at_tick=3)
    strat.on_start(Portfolio(1_000.0))

    assert strat.decide("ETH/USDT", _view("ETH/USDT", tick=1), _hints()) is None
    assert strat.decide("BTC/USDT", _view("BTC/USDT", tick=5), _hints()) is None

    order = strat.decide("ETH/USDT", _view("ETH/USDT", tick=5), _hints())
    assert order == Order(pair="ETH/USDT", side="BUY", requested_amount=250.0, confidence=1.0, reason="buy_once")
    assert strat.fired
    assert strat.decide("ETH/USDT", _view("ETH/USDT", tick=6), _hints()) is None


def test_buy_once_validates_arguments():
    with pytest.raises(ValueError):
        BuyOnceStrategy(amount=0)
    with pytest.raises(ValueError):
        BuyOnceStrategy(at_tick=-1)


# ------------------------------ Contrato --------------------------------- #


def test_as_strategy_wraps_functions():
    def hook(pair, view, hints):
        return Order(pair=pair, side="BUY", requested_amount=10.0)

    strat = as_strategy(hook)
    assert isinstance(strat, Strategy)
    assert strat.decide("BTC/USDT", _view(), _hints()).requested_amount == 10.0

    existing = BuyOnceStrategy()
    assert as_strategy(existing) is existing

    with pytest.raises(TypeError):
        as_strategy(42)  # type: ignore[arg-type]


def test_base_strategy_does_nothing():
    assert Strategy().decide("BTC/USDT", _view(), _hints()) is None


def test_view_price_requires_candles():
    view = MarketView(pair="BTC/USDT", tick=0, timestamp=0, candles={})
    assert view.candle() is None
    assert view.change("1m") is None
    with pytest.raises(ValueError):
        _ = view.price


def test_registry():
    assert get_strategy_class("buy_once") is BuyOnceStrategy
    assert get_strategy_class("sentiment_scalper") is SentimentScalper
    assert {"buy_once", "sentiment_scalper"} <= set(list_strategies())
    with pytest.raises(KeyError):
        get_strategy_class("does_not_exist")


def test_register_strategy_forms():
    @register_strategy
    class _Quiet(Strategy):
        name = "quiet_test"

    @register_strategy("named_test")
    class _Named(Strategy):
        pass

    assert get_strategy_class("quiet_test") is _Quiet
    assert get_strategy_class("named_test") is _Named
    with pytest.raises(TypeError):
        register_strategy(1, 2)


# ------------------------------ SentimentScalper ------------------------- #


def test_scalper_needs_on_start():
    assert SentimentScalper().decide("BTC/USDT", _view(), _hints("UP", 0.9)) is None


def test_scalper_buys_on_confident_up_signal():
    strat = SentimentScalper()
    strat.on_start(Portfolio(10_000.0))

    assert strat.decide("BTC/USDT", _view(), _hints("UP", 0.5)) is None
    assert strat.decide("BTC/USDT", _view(), _hints("SIDEWAYS", 0.9)) is None

    order = strat.decide("BTC/USDT", _view(), _hints("UP", 0.8))
    assert order.side == "BUY"
    assert order.requested_amount == pytest.approx(500.0)
    assert order.confidence == 0.8
    assert order.reason == "bullish_signal"


def test_scalper_halves_size_in_high_risk():
    strat = SentimentScalper()
    strat.on_start(Portfolio(10_000.0))
    order = strat.decide("ETH/USDT", _view("ETH/USDT"), _hints("UP", 0.8, risk="HIGH"))
    assert order.requested_amount == pytest.approx(250.0)


def test_scalper_caps_size_by_cash_fraction():
    strat = SentimentScalper(trade_amount=500.0, max_cash_fraction=0.1)
    strat.on_start(Portfolio(1_000.0))
    order = strat.decide("BTC/USDT", _view(), _hints("UP", 0.8))
    assert order.requested_amount == pytest.approx(100.0)


def test_scalper_takes_profit():
    portfolio = Portfolio(10_000.0)
    portfolio.apply_buy("BTC/USDT", 1_000.0, 50_000.0, 0)
    strat = SentimentScalper()
    strat.on_start(portfolio)

    assert strat.decide("BTC/USDT", _view(tick=1, price=50_100.0), _hints()) is None

    order = strat.decide("BTC/USDT", _view(tick=2, price=50_200.0), _hints())
    assert order.side == "SELL"
    assert order.reason == "take_profit"
    assert order.requested_amount == pytest.approx(0.02 * 50_200.0 * 0.99)


def test_scalper_stop_loss_and_bearish_exit():
    portfolio = Portfolio(10_000.0)
    portfolio.apply_buy("BTC/USDT", 1_000.0, 50_000.0, 0)
    portfolio.apply_buy("ETH/USDT", 1_000.0, 50_000.0, 0)
    strat = SentimentScalper()
    strat.on_start(portfolio)

    sl = strat.decide("BTC/USDT", _view(tick=1, price=49_800.0), _hints())
    assert sl.reason == "stop_loss"

    bear = strat.decide("ETH/USDT", _view("ETH/USDT", tick=1, price=50_000.0), _hints("DOWN", 0.7))
    assert bear.side == "SELL"
    assert bear.reason == "bearish_signal"


def test_scalper_respects_cooldown():
    strat = SentimentScalper(cooldown_ticks=30)
    strat.on_start(Portfolio(10_000.0))

    assert strat.decide("BTC/USDT", _view(tick=0), _hints("UP", 0.8)) is not None
    assert strat.decide("BTC/USDT", _view(tick=10), _hints("UP", 0.8)) is None
    # el cooldown es por par
    assert strat.decide("ETH/USDT", _view("ETH/USDT", tick=10), _hints("UP", 0.8)) is not None
    assert strat.decide("BTC/USDT", _view(tick=30), _hints("UP", 0.8)) is not None
