# strategies/buy_once.py
"""
Estrategia de referencia: una única compra en un tick fijo.

Diseño
------
- Emite una BUY de `amount` (divisa de liquidación) sobre `pair` en el primer
  tick >= `at_tick`.
- Después no vuelve a operar, aunque la orden sea rechazada.
- Útil como control: en un escenario alcista el valor final debe superar al
  capital inicial.
"""

from __future__ import annotations

from core.types import Order
from strategies.base import MarketView, Strategy, register_strategy
from strategies.hints import MarketHints


@register_strategy("buy_once")
class BuyOnceStrategy(Strategy):
    name = "buy_once"

    def __init__(self, pair: str = "BTC/USDT", amount: float = 1_000.0, at_tick: int = 0) -> None:
        if amount <= 0:
            raise ValueError("amount debe ser > 0")
        if at_tick < 0:
            raise ValueError("at_tick no puede ser negativo")
        self.pair = pair
        self.amount = float(amount)
        self.at_tick = int(at_tick)
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def on_start(self, portfolio) -> None:
        self._fired = False

    def decide(self, pair: str, view: MarketView, hints: MarketHints) -> Order | None:
        if self._fired or pair != self.pair or view.tick < self.at_tick:
            return None
        self._fired = True
        return Order(pair=pair, side="BUY", requested_amount=self.amount, confidence=1.0, reason="buy_once")
