"""Core backtesting components."""

from core.errors import (
    AggregateSimulationError,
    BacktestError,
    ConfigurationError,
    DataUnavailableError,
    ExecutionError,
    InsufficientFundsError,
    InsufficientPositionError,
    OrderValidationError,
)
from core.types import Order, Position, TimelineSample, TradeRecord

__all__ = [
    # Errores
    "BacktestError",
    "ConfigurationError",
    "ExecutionError",
    "InsufficientFundsError",
    "InsufficientPositionError",
    "OrderValidationError",
    "DataUnavailableError",
    "AggregateSimulationError",
    # Tipos
    "Order",
    "Position",
    "TradeRecord",
    "TimelineSample",
]
