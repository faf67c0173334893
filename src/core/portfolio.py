# ============================================================
# src/core/portfolio.py — Cash, posiciones y marcas de valor
# ------------------------------------------------------------
# - Cash en divisa de liquidación (p.ej., USDT) y posiciones largas por par
# - Coste medio por posición (total_cost / quantity)
# - Valoración mark-to-market y marcas de agua (max/min) del valor total
# - No permite cortos ni cash negativo: una operación inválida lanza y no
#   toca el estado
# - Solo el ExecutionSimulator llama a apply_buy / apply_sell
# ============================================================

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from loguru import logger

from core.errors import ConfigurationError, InsufficientFundsError, InsufficientPositionError
from core.types import Position

__all__ = ["Portfolio", "QTY_EPSILON"]

# Tolerancia numérica para comparar cantidades base
QTY_EPSILON = 1e-12


class Portfolio:
    """
    Cartera del backtest.

    Reglas:
      - cash >= 0 tras cualquier orden aceptada.
      - quantity de una posición nunca < 0; al llegar a 0 la posición se elimina.
      - total_value = cash + sum(quantity * precio_actual).
      - max_value / min_value son marcas de agua de total_value.
    """

    def __init__(self, initial_capital: float) -> None:
        if initial_capital <= 0:
            raise ConfigurationError(f"initial_capital debe ser > 0 (recibido {initial_capital})")
        self.initial_capital: float = float(initial_capital)
        self.cash: float = float(initial_capital)
        self.positions: dict[str, Position] = {}
        self.total_value: float = float(initial_capital)
        self.max_value: float = float(initial_capital)
        self.min_value: float = float(initial_capital)
        self._marks: dict[str, float] = {}

        logger.debug(f"Portfolio creado: cash={self.cash:.2f}")

    # -------- Consultas --------
    def position(self, pair: str) -> Position | None:
        return self.positions.get(pair)

    def held_quantity(self, pair: str) -> float:
        pos = self.positions.get(pair)
        return pos.quantity if pos is not None else 0.0

    def mark(self, pair: str) -> float | None:
        """Último precio de valoración conocido del par."""
        return self._marks.get(pair)

    def positions_value(self, marks: Mapping[str, float] | None = None) -> float:
        """
        Valor de mercado de las posiciones. Sin marca para un par se usa la
        última conocida y, en su defecto, el coste medio.
        """
        total = 0.0
        for pair, pos in self.positions.items():
            price = None
            if marks is not None:
                price = marks.get(pair)
            if price is None:
                price = self._marks.get(pair, pos.avg_price)
            total += pos.market_value(price)
        return total

    # -------- Mutaciones (solo vía ExecutionSimulator) --------
    def apply_buy(self, pair: str, net_amount: float, exec_price: float, timestamp: int) -> float:
        """
        Carga `net_amount` al cash y suma `net_amount / exec_price` a la posición.

        Devuelve el PnL simplificado del trade: si ya había posición,
        (avg_price_previo - exec_price) * cantidad_comprada; si no, 0.
        """
        if net_amount > self.cash:
            raise InsufficientFundsError(required=net_amount, available=self.cash)

        qty = net_amount / exec_price
        pos = self.positions.get(pair)
        pnl = 0.0
        if pos is None:
            pos = Position(pair=pair)
            self.positions[pair] = pos
        elif pos.quantity > QTY_EPSILON:
            pnl = (pos.avg_price - exec_price) * qty

        self.cash -= net_amount
        pos.quantity += qty
        pos.total_cost += net_amount
        pos.avg_price = pos.total_cost / pos.quantity
        pos.last_update_time = timestamp
        return pnl

    def apply_sell(self, pair: str, net_amount: float, exec_price: float, timestamp: int) -> float:
        """
        Abona `net_amount` al cash y descuenta `net_amount / exec_price` de la
        posición, reduciendo el coste en la misma proporción.

        Devuelve el PnL simplificado: (exec_price - avg_price_previo) * cantidad_vendida.
        """
        qty = net_amount / exec_price
        held = self.held_quantity(pair)
        if held + QTY_EPSILON < qty:
            raise InsufficientPositionError(pair, required_qty=qty, held_qty=held)

        pos = self.positions[pair]
        pnl = (exec_price - pos.avg_price) * qty
        sold_fraction = min(1.0, qty / pos.quantity)

        self.cash += net_amount
        pos.quantity -= qty
        pos.total_cost -= pos.total_cost * sold_fraction
        pos.last_update_time = timestamp
        if pos.quantity <= QTY_EPSILON:
            # posición cerrada: fuera del mapa
            del self.positions[pair]
        return pnl

    # -------- Valoración --------
    def revalue(self, marks: Mapping[str, float]) -> float:
        """
        Recalcula total_value con las marcas dadas y actualiza las marcas de agua.
        Devuelve el nuevo total_value.
        """
        self._marks.update(marks)
        self.total_value = self.cash + self.positions_value()
        if self.total_value > self.max_value:
            self.max_value = self.total_value
        if self.total_value < self.min_value:
            self.min_value = self.total_value
        return self.total_value

    def snapshot(self) -> dict[str, Any]:
        """
        Resumen serializable del estado:
          {
            "cash": float,
            "total_value": float,
            "max_value": float,
            "min_value": float,
            "positions": {pair: {"quantity", "avg_price", "total_cost", "last_update_time"}}
          }
        """
        return {
            "cash": round(self.cash, 8),
            "total_value": round(self.total_value, 8),
            "max_value": round(self.max_value, 8),
            "min_value": round(self.min_value, 8),
            "positions": {
                pair: {
                    "quantity": round(pos.quantity, 12),
                    "avg_price": round(pos.avg_price, 8),
                    "total_cost": round(pos.total_cost, 8),
                    "last_update_time": pos.last_update_time,
                }
                for pair, pos in self.positions.items()
            },
        }

    def __repr__(self) -> str:
        return (
            f"Portfolio(cash={self.cash:.2f}, total_value={self.total_value:.2f}, "
            f"positions={len(self.positions)})"
        )
