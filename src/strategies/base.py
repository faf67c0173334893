# src/strategies/base.py
"""
Contrato del hook de decisión y utilidades base para estrategias.

Incluye:
- `MarketView`: lo que ve la estrategia de un par en un tick (velas vigentes
  por timeframe, ventana de velas cerradas, libro, sentimiento, noticias).
- Interfaz `Strategy` con `decide(pair, view, hints)` y ciclo de vida
  opcional `on_start(portfolio)` / `on_end(portfolio)`.
- `as_strategy`: acepta también funciones sueltas (sync o async).
- Registro global de estrategias: register_strategy / get_strategy_class / list_strategies.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Union

from bars.base import Candle
from core.types import NewsEvent, Order, OrderBookSnapshot, SentimentSnapshot

if TYPE_CHECKING:
    from core.portfolio import Portfolio
    from strategies.hints import MarketHints

# ------------------------------- Tipos -------------------------------------

Decision = Union[Order, None]
DecisionHook = Callable[[str, "MarketView", "MarketHints"], Union[Decision, Awaitable[Decision]]]


@dataclass(frozen=True)
class MarketView:
    """
    Vista de mercado de un par en un tick.

    `candles[interval]` es la vela parcial vigente (solo ticks <= tick actual);
    `history[interval]` son las últimas velas ya cerradas, de la más antigua a
    la más reciente.
    """

    pair: str
    tick: int
    timestamp: int
    candles: Mapping[str, Candle]
    history: Mapping[str, tuple[Candle, ...]] = field(default_factory=dict)
    order_book: OrderBookSnapshot | None = None
    sentiment: SentimentSnapshot | None = None
    news: tuple[NewsEvent, ...] = ()

    def candle(self, interval: str | None = None) -> Candle | None:
        """Vela de `interval`; sin argumento, la del timeframe más fino."""
        if interval is None:
            return next(iter(self.candles.values()), None)
        return self.candles.get(interval)

    @property
    def price(self) -> float:
        candle = self.candle()
        if candle is None:
            raise ValueError(f"MarketView de {self.pair} sin velas")
        return candle.close

    def change(self, interval: str) -> float | None:
        candle = self.candles.get(interval)
        return candle.change if candle is not None else None

    def closes(self, interval: str) -> list[float]:
        """Cierres de la ventana cerrada más el cierre vigente."""
        out = [c.close for c in self.history.get(interval, ())]
        current = self.candles.get(interval)
        if current is not None:
            out.append(current.close)
        return out


# ----------------------------- Interfaz base -------------------------------


class Strategy:
    """
    Interfaz común para estrategias.

    `decide` puede devolver una Order, None, o un awaitable de cualquiera de
    los dos; el SimulationClock lo espera si hace falta.
    """

    name: ClassVar[str] = "strategy"

    def decide(self, pair: str, view: MarketView, hints: MarketHints) -> Decision | Awaitable[Decision]:
        return None  # por defecto no hace nada

    # Ciclo de vida ----------------------------------------------------------

    def on_start(self, portfolio: Portfolio) -> None:
        _ = portfolio  # hook opcional

    def on_end(self, portfolio: Portfolio) -> None:
        _ = portfolio  # hook opcional


class FunctionStrategy(Strategy):
    """Adapta una función `fn(pair, view, hints)` a la interfaz Strategy."""

    name = "function"

    def __init__(self, fn: DecisionHook) -> None:
        self._fn = fn

    def decide(self, pair: str, view: MarketView, hints: MarketHints) -> Decision | Awaitable[Decision]:
        return self._fn(pair, view, hints)

    def __repr__(self) -> str:
        return f"FunctionStrategy({getattr(self._fn, '__name__', self._fn)!r})"


def as_strategy(hook: Strategy | DecisionHook) -> Strategy:
    if isinstance(hook, Strategy):
        return hook
    if callable(hook):
        return FunctionStrategy(hook)
    raise TypeError(f"Se esperaba Strategy o callable, recibido {type(hook).__name__}")


# ------------------------------- Registro ---------------------------------

_REGISTRY: dict[str, type[Strategy]] = {}


def register_strategy(*args: Any):
    """
    Registra una estrategia en el registro global.

    Usos soportados:
      - @register_strategy("nombre")
      - @register_strategy                    # usa cls.name
    """

    def _register(name: str, cls: type[Strategy]) -> type[Strategy]:
        _REGISTRY[name] = cls
        return cls

    # Decorador con nombre: @register_strategy("name")
    if len(args) == 1 and isinstance(args[0], str):
        name = args[0]

        def _decorator(cls: type[Strategy]) -> type[Strategy]:
            return _register(name, cls)

        return _decorator

    # Decorador sin paréntesis: @register_strategy
    if len(args) == 1 and isinstance(args[0], type):
        cls = args[0]
        return _register(getattr(cls, "name", cls.__name__).lower(), cls)

    raise TypeError("Uso: @register_strategy o @register_strategy('nombre')")


def get_strategy_class(name: str) -> type[Strategy]:
    if name in _REGISTRY:
        return _REGISTRY[name]
    raise KeyError(f"Estrategia no registrada: {name}")


def list_strategies() -> dict[str, type[Strategy]]:
    return dict(_REGISTRY)


__all__ = [
    "Decision",
    "DecisionHook",
    "MarketView",
    "Strategy",
    "FunctionStrategy",
    "as_strategy",
    "register_strategy",
    "get_strategy_class",
    "list_strategies",
]
