# src/core/costs.py
"""
Cálculo de costes de ejecución.

Responsabilidad
---------------
- Slippage por impacto de mercado: proporcional al tamaño de la orden frente
  al volumen de la vela, con tope.
- Comisión (fee) proporcional al importe solicitado.
- Precio efectivo e importe neto según el lado (BUY/SELL).

Notas
-----
- Funciones puras y deterministas (sin efectos secundarios).
- No formatear logs ni tocar estado del portfolio.
"""

from __future__ import annotations

from dataclasses import dataclass

from core.errors import ConfigurationError, OrderValidationError

__all__ = ["CostModel", "ExecutionCosts", "DEFAULT_COST_MODEL"]


# ==============================
# Helpers
# ==============================
def _ensure_non_negative(value: float, name: str) -> None:
    if value < 0:
        raise ConfigurationError(f"{name} no puede ser negativo.")


def _norm_side(side: str) -> str:
    """Normaliza 'buy'/'sell' a 'BUY'/'SELL'."""
    s = str(side).upper()
    if s not in ("BUY", "SELL"):
        raise OrderValidationError(f"side debe ser 'BUY' o 'SELL' (recibido {side!r}).")
    return s


# ==============================
# Desglose de una ejecución
# ==============================
@dataclass(frozen=True)
class ExecutionCosts:
    side: str
    reference_price: float
    slippage: float  # ratio, no bps
    exec_price: float
    fee: float
    net_amount: float  # cash que sale (BUY) o entra (SELL)

    @property
    def quantity(self) -> float:
        """Cantidad base movida por la orden."""
        return self.net_amount / self.exec_price if self.exec_price > 0 else 0.0


# ==============================
# Modelo configurable
# ==============================
@dataclass(frozen=True)
class CostModel:
    """
    Modelo de costes del simulador.

    - fee_rate: comisión como proporción del importe (0.001 = 10 bps)
    - impact_factor: slippage = importe / volumen_vela * impact_factor
    - max_slippage: tope del slippage (0.005 = 50 bps)
    - default_volume: volumen usado cuando la vela no trae volumen
    """

    fee_rate: float = 0.001
    impact_factor: float = 0.1
    max_slippage: float = 0.005
    default_volume: float = 1_000_000.0

    def __post_init__(self) -> None:
        _ensure_non_negative(self.fee_rate, "fee_rate")
        _ensure_non_negative(self.impact_factor, "impact_factor")
        _ensure_non_negative(self.max_slippage, "max_slippage")
        if self.default_volume <= 0:
            raise ConfigurationError("default_volume debe ser > 0.")

    def slippage_rate(self, amount: float, volume: float | None) -> float:
        vol = volume if volume else self.default_volume
        return min(self.max_slippage, amount / vol * self.impact_factor)

    def fee_amount(self, amount: float) -> float:
        return amount * self.fee_rate

    def effective_price(self, price: float, side: str, slippage: float) -> float:
        """Aplica slippage al precio de referencia: sube al comprar, baja al vender."""
        if _norm_side(side) == "BUY":
            return price * (1.0 + slippage)
        return price * (1.0 - slippage)

    def net_amount(self, amount: float, side: str, fee: float) -> float:
        if _norm_side(side) == "BUY":
            return amount + fee
        return amount - fee

    def estimate(self, *, side: str, amount: float, price: float, volume: float | None) -> ExecutionCosts:
        """Desglose completo de costes de una orden de mercado."""
        s = _norm_side(side)
        if amount <= 0:
            raise OrderValidationError(f"El importe debe ser > 0 (recibido {amount}).")
        if price <= 0:
            raise OrderValidationError(f"Precio de referencia inválido: {price}")
        slip = self.slippage_rate(amount, volume)
        fee = self.fee_amount(amount)
        return ExecutionCosts(
            side=s,
            reference_price=price,
            slippage=slip,
            exec_price=self.effective_price(price, s, slip),
            fee=fee,
            net_amount=self.net_amount(amount, s, fee),
        )


DEFAULT_COST_MODEL = CostModel()
