"""
Simulador de ejecución de órdenes de mercado contra el dataset sintético.

Flujo de execute(order, tick):
  1) Vela vigente del par en el timeframe más fino disponible (1s, 5s, 1m...).
  2) Costes (slippage por impacto + fee) vía CostModel.
  3) Validación de cash / posición ANTES de tocar el portfolio.
  4) Liquidación en el Portfolio y asiento en el ledger (append-only).

Cualquier rechazo lanza una subclase de ExecutionError o DataUnavailableError
y deja portfolio y ledger exactamente como estaban.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from bars.base import Candle
from core.costs import DEFAULT_COST_MODEL, CostModel
from core.errors import (
    DataUnavailableError,
    InsufficientFundsError,
    InsufficientPositionError,
    OrderValidationError,
)
from core.portfolio import QTY_EPSILON, Portfolio
from core.types import ORDER_SIDES, Order, TradeRecord
from data.synthetic.generator import MarketData

__all__ = ["ExecutionSimulator", "PREFERRED_INTERVALS"]

# Orden de preferencia para la vela de ejecución
PREFERRED_INTERVALS: tuple[str, ...] = ("1s", "5s", "1m")


class ExecutionSimulator:
    def __init__(
        self,
        market_data: MarketData,
        portfolio: Portfolio,
        cost_model: CostModel | None = None,
    ) -> None:
        self.market_data = market_data
        self.portfolio = portfolio
        self.cost_model = cost_model or DEFAULT_COST_MODEL
        self._trades: list[TradeRecord] = []

    @property
    def trades(self) -> tuple[TradeRecord, ...]:
        return tuple(self._trades)

    # ------------------------------------------------------------------ #
    def current_candle(self, pair: str, tick: int) -> Candle:
        """Vela parcial vigente del par en el tick, del timeframe más fino disponible."""
        feed = self.market_data.feed(pair)
        candidates = [iv for iv in PREFERRED_INTERVALS if iv in feed.timeframes]
        candidates += [iv for iv in feed.intervals if iv not in candidates]
        for interval in candidates:
            candle = feed.candle_at(interval, tick)
            if candle is not None:
                return candle
        raise DataUnavailableError(pair, tick=tick, detail="sin vela de ejecución")

    def execute(
        self,
        order: Order,
        tick: int,
        market_conditions: Mapping[str, Any] | None = None,
    ) -> TradeRecord:
        side = str(order.side).upper()
        if side not in ORDER_SIDES:
            raise OrderValidationError(f"Lado de orden desconocido: {order.side!r}")
        if not order.requested_amount > 0:
            raise OrderValidationError(
                f"El importe solicitado debe ser > 0 (recibido {order.requested_amount})"
            )

        candle = self.current_candle(order.pair, tick)
        costs = self.cost_model.estimate(
            side=side,
            amount=order.requested_amount,
            price=candle.close,
            volume=candle.volume,
        )
        timestamp = self.market_data.time_at(tick)

        # Validación previa: nada se muta si la orden no es ejecutable
        if side == "BUY":
            if costs.net_amount > self.portfolio.cash:
                raise InsufficientFundsError(required=costs.net_amount, available=self.portfolio.cash)
            pnl = self.portfolio.apply_buy(order.pair, costs.net_amount, costs.exec_price, timestamp)
        else:
            held = self.portfolio.held_quantity(order.pair)
            if held + QTY_EPSILON < costs.quantity:
                raise InsufficientPositionError(order.pair, required_qty=costs.quantity, held_qty=held)
            pnl = self.portfolio.apply_sell(order.pair, costs.net_amount, costs.exec_price, timestamp)

        trade = TradeRecord(
            timestamp=timestamp,
            tick=tick,
            pair=order.pair,
            side=side,  # type: ignore[arg-type]
            requested_amount=order.requested_amount,
            exec_price=costs.exec_price,
            slippage=costs.slippage,
            fee=costs.fee,
            net_amount=costs.net_amount,
            quantity=costs.quantity,
            pnl=pnl,
            confidence=order.confidence,
            market_conditions=dict(market_conditions or {}),
        )
        self._trades.append(trade)

        logger.debug(
            f"FILL {side} {order.pair} qty={trade.quantity:.8f} @ {trade.exec_price:.2f} "
            f"(slip={trade.slippage:.5f}, fee={trade.fee:.4f}, pnl={trade.pnl:.4f}) | "
            f"cash={self.portfolio.cash:.2f}"
        )
        return trade
