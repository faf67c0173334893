# src/strategies/sentiment_scalper.py
from __future__ import annotations

from typing import Any

from core.types import Order
from strategies.base import MarketView, Strategy, register_strategy
from strategies.hints import MarketHints


@register_strategy("sentiment_scalper")
class SentimentScalper(Strategy):
    """
    Scalper long-only guiado por las pistas de mercado.

    Entrada: predicción UP con confianza >= `min_confidence` y sin posición.
    Salida: take-profit / stop-loss sobre el coste medio, o predicción DOWN
    con confianza suficiente.

    El tamaño es `trade_amount`, acotado a `max_cash_fraction` del cash; en
    régimen de riesgo HIGH se reduce a la mitad. Entre operaciones del mismo
    par se respeta un `cooldown_ticks`.
    """

    name = "sentiment_scalper"

    def __init__(
        self,
        trade_amount: float = 500.0,
        max_cash_fraction: float = 0.25,
        min_confidence: float = 0.6,
        take_profit: float = 0.003,
        stop_loss: float = 0.002,
        cooldown_ticks: int = 30,
        min_position_value: float = 10.0,
        **_: Any,
    ) -> None:
        self.trade_amount = float(trade_amount)
        self.max_cash_fraction = float(max_cash_fraction)
        self.min_confidence = float(min_confidence)
        self.take_profit = float(take_profit)
        self.stop_loss = float(stop_loss)
        self.cooldown_ticks = int(cooldown_ticks)
        self.min_position_value = float(min_position_value)

        self._portfolio = None
        self._last_trade_tick: dict[str, int] = {}

    # Ciclo de vida ----------------------------------------------------------

    def on_start(self, portfolio) -> None:
        # Solo lectura: el portfolio lo modifica el ExecutionSimulator
        self._portfolio = portfolio
        self._last_trade_tick.clear()

    def on_end(self, portfolio) -> None:
        self._portfolio = None

    # Decisión ---------------------------------------------------------------

    def decide(self, pair: str, view: MarketView, hints: MarketHints) -> Order | None:
        if self._portfolio is None:
            return None
        last = self._last_trade_tick.get(pair)
        if last is not None and view.tick - last < self.cooldown_ticks:
            return None

        price = view.price
        pos = self._portfolio.position(pair)
        pred = hints.prediction
        holding = pos is not None and pos.quantity * price >= self.min_position_value

        if holding:
            tp_hit = price >= pos.avg_price * (1.0 + self.take_profit)
            sl_hit = price <= pos.avg_price * (1.0 - self.stop_loss)
            bearish = pred.direction == "DOWN" and pred.confidence >= self.min_confidence
            if not (tp_hit or sl_hit or bearish):
                return None
            reason = "take_profit" if tp_hit else "stop_loss" if sl_hit else "bearish_signal"
            # margen para fee y slippage: la cantidad vendida nunca supera la posición
            amount = pos.quantity * price * 0.99
            return self._order(pair, "SELL", amount, pred.confidence, reason, view.tick)

        if pred.direction != "UP" or pred.confidence < self.min_confidence:
            return None
        amount = min(self.trade_amount, self._portfolio.cash * self.max_cash_fraction)
        if hints.regime.risk_level == "HIGH":
            amount *= 0.5
        if amount < self.min_position_value:
            return None
        return self._order(pair, "BUY", amount, pred.confidence, "bullish_signal", view.tick)

    def _order(self, pair: str, side: str, amount: float, confidence: float, reason: str, tick: int) -> Order:
        self._last_trade_tick[pair] = tick
        return Order(pair=pair, side=side, requested_amount=amount, confidence=confidence, reason=reason)  # type: ignore[arg-type]
