# src/core/errors.py
"""
Jerarquía de errores del motor de backtesting.

Clasificación
-------------
- ConfigurationError: escenario/duración/intervalo inválidos. Fatal, aborta
  antes de arrancar el loop.
- ExecutionError (InsufficientFundsError, InsufficientPositionError,
  OrderValidationError): violaciones de restricciones al ejecutar una orden.
  El loop las captura, las registra y descarta la orden.
- DataUnavailableError: no hay vela para el par/tick pedido. Se salta ese par
  en ese tick.
- AggregateSimulationError: cualquier otra excepción inesperada dentro de un
  tick. Se registra con tick y mensaje; la simulación continúa.
"""

from __future__ import annotations

__all__ = [
    "BacktestError",
    "ConfigurationError",
    "ExecutionError",
    "InsufficientFundsError",
    "InsufficientPositionError",
    "OrderValidationError",
    "DataUnavailableError",
    "AggregateSimulationError",
]


class BacktestError(Exception):
    """Raíz de todos los errores propios del motor."""


class ConfigurationError(BacktestError, ValueError):
    """Configuración inválida detectada en construcción."""


class ExecutionError(BacktestError):
    """Orden rechazada por el simulador de ejecución."""


class InsufficientFundsError(ExecutionError):
    def __init__(self, required: float, available: float) -> None:
        self.required = float(required)
        self.available = float(available)
        super().__init__(
            f"cash insuficiente para BUY: requerido={required:.2f} disponible={available:.2f}"
        )


class InsufficientPositionError(ExecutionError):
    def __init__(self, pair: str, required_qty: float, held_qty: float) -> None:
        self.pair = pair
        self.required_qty = float(required_qty)
        self.held_qty = float(held_qty)
        super().__init__(
            f"posición insuficiente para SELL {pair}: "
            f"requerido={required_qty:.8f} disponible={held_qty:.8f}"
        )


class OrderValidationError(ExecutionError):
    """Orden mal formada (lado desconocido, importe no positivo...)."""


class DataUnavailableError(BacktestError):
    def __init__(self, pair: str, tick: int | None = None, detail: str = "") -> None:
        self.pair = pair
        self.tick = tick
        msg = f"No hay datos de mercado para {pair}"
        if tick is not None:
            msg += f" en el tick {tick}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)


class AggregateSimulationError(BacktestError):
    """Envuelve una excepción inesperada ocurrida procesando un par en un tick."""

    def __init__(self, tick: int, pair: str | None, cause: BaseException) -> None:
        self.tick = tick
        self.pair = pair
        self.cause = cause
        where = f"tick {tick}" + (f" par {pair}" if pair else "")
        super().__init__(f"Error inesperado en {where}: {type(cause).__name__}: {cause}")
