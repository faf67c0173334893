# src/core/sim_engine.py

"""
SimulationClock: orquestador del backtest (datos sintéticos → estrategia → ejecución → métricas).

✅ Principios:
- NO hace I/O a disco (eso queda para el runner/CLI).
- Un único hilo, estrictamente secuencial. El único punto de suspensión es
  esperar al hook de decisión si devuelve un awaitable.
- Aislamiento de fallos: un error en un par y tick se registra en el ledger
  de errores y el loop continúa con el siguiente par.
- Callbacks de eventos para enchufar reporter/dash sin tocar el loop.

📦 Uso típico:
    from core.sim_engine import BacktestConfig, SimulationClock
    from strategies import SentimentScalper

    cfg = BacktestConfig(scenario="trending_bull", seed=42)
    clock = SimulationClock(cfg, SentimentScalper())
    clock.on("trade", on_trade_callback)       # opcional
    result = clock.run_sync()                  # o: await clock.run()
    print(result.report.summary)

Estados: NOT_STARTED → RUNNING → {COMPLETED, FAILED}. FAILED solo si falla
la inicialización (configuración o datos); los errores por tick no lo provocan.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
import inspect
from typing import Any

from loguru import logger
import numpy as np

from bars.timeframes import DEFAULT_INTERVALS, sort_intervals
from core.costs import CostModel
from core.errors import (
    AggregateSimulationError,
    BacktestError,
    ConfigurationError,
    DataUnavailableError,
    OrderValidationError,
)
from core.executor import ExecutionSimulator
from core.portfolio import Portfolio
from core.types import Order, SimulationError, TimelineSample, TradeRecord
from data.synthetic.generator import DEFAULT_PAIRS, MarketData, MarketDataGenerator
from data.synthetic.rng import make_rng
from data.synthetic.scenarios import get_profile
from report.benchmark import BenchmarkTargets
from report.performance import PerformanceAnalyzer, PerformanceReport
from strategies.base import DecisionHook, MarketView, Strategy, as_strategy
from strategies.hints import REGIME_INTERVAL, MarketRegime, build_hints, detect_regime

__all__ = [
    "SimulationState",
    "BacktestConfig",
    "BacktestResult",
    "EventBus",
    "SimulationClock",
]


# ----------------------------- #
#  Configuración
# ----------------------------- #


class SimulationState(str, Enum):
    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class BacktestConfig:
    """Parámetros del backtest.

    Args:
        scenario: Etiqueta del escenario sintético (p. ej. "trending_bull").
        duration_ms: Duración simulada total.
        tick_interval_ms: Paso del reloj.
        initial_capital: Cash inicial en divisa de liquidación.
        base_price: Precio inicial del camino sintético.
        trading_pairs: Pares a simular.
        intervals: Timeframes a agregar.
        independent_pairs: Si True, cada par recibe su propio camino de precios.
        seed: Semilla del numpy Generator (None = no reproducible).
        timeline_every: Cada cuántos ticks se toma una muestra del timeline.
        progress_every: Cada cuántos ticks se loguea el progreso.
        history_window: Velas cerradas por timeframe visibles para la estrategia.
        cost_model: Fees y slippage.
        benchmarks: Objetivos para la nota final.
    """

    scenario: str = "trending_bull"
    duration_ms: int = 3_600_000
    tick_interval_ms: int = 1000
    initial_capital: float = 10_000.0
    base_price: float = 50_000.0
    trading_pairs: tuple[str, ...] = DEFAULT_PAIRS
    intervals: tuple[str, ...] = DEFAULT_INTERVALS
    independent_pairs: bool = False
    seed: int | None = None
    timeline_every: int = 60
    progress_every: int = 600
    history_window: int = 20
    cost_model: CostModel = field(default_factory=CostModel)
    benchmarks: BenchmarkTargets = field(default_factory=BenchmarkTargets)

    def __post_init__(self) -> None:
        if self.initial_capital <= 0:
            raise ConfigurationError(f"initial_capital debe ser > 0 (recibido {self.initial_capital})")
        if self.tick_interval_ms <= 0:
            raise ConfigurationError("tick_interval_ms debe ser > 0")
        if self.duration_ms < self.tick_interval_ms:
            raise ConfigurationError("duration_ms debe ser >= tick_interval_ms")
        if self.timeline_every <= 0 or self.progress_every <= 0:
            raise ConfigurationError("timeline_every y progress_every deben ser > 0")
        if self.history_window < 0:
            raise ConfigurationError("history_window no puede ser negativo")
        if not self.trading_pairs:
            raise ConfigurationError("trading_pairs no puede estar vacío")
        if not self.intervals:
            raise ConfigurationError("intervals no puede estar vacío")
        # escenario e intervalos se resuelven ya, no al arrancar el run
        get_profile(self.scenario)
        sort_intervals(self.intervals)

    @property
    def total_ticks(self) -> int:
        return self.duration_ms // self.tick_interval_ms

    def generator(self) -> MarketDataGenerator:
        return MarketDataGenerator(
            scenario=self.scenario,
            duration_ms=self.duration_ms,
            tick_interval_ms=self.tick_interval_ms,
            base_price=self.base_price,
            pairs=self.trading_pairs,
            intervals=self.intervals,
            independent_pairs=self.independent_pairs,
        )


@dataclass
class BacktestResult:
    state: SimulationState
    report: PerformanceReport
    portfolio: Portfolio
    trades: tuple[TradeRecord, ...]
    timeline: tuple[TimelineSample, ...]
    errors: tuple[SimulationError, ...]
    ticks_processed: int
    stopped_early: bool = False


# ----------------------------- #
#  Infraestructura de eventos
# ----------------------------- #


class EventBus:
    """Bus de eventos muy simple. Eventos: 'trade', 'timeline', 'error', 'progress', 'end'."""

    def __init__(self) -> None:
        self._subs: dict[str, list[Callable[[Any], None]]] = {}

    def on(self, event: str, fn: Callable[[Any], None]) -> None:
        self._subs.setdefault(event, []).append(fn)

    def emit(self, event: str, payload: Any) -> None:
        for fn in self._subs.get(event, []):
            try:
                fn(payload)
            except Exception:
                # un suscriptor externo (reporter/dash) no corta el loop
                logger.exception(f"Callback de '{event}' falló, se ignora")


# ----------------------------- #
#  Engine principal
# ----------------------------- #


class SimulationClock:
    """Reloj de simulación tick a tick."""

    def __init__(
        self,
        config: BacktestConfig,
        strategy: Strategy | DecisionHook,
        market_data: MarketData | None = None,
        rng: np.random.Generator | int | None = None,
        on_end: Callable[[BacktestResult], None] | None = None,
    ) -> None:
        self.config = config
        self.strategy = as_strategy(strategy)
        self.events = EventBus()
        self._market_data = market_data
        self._rng = rng
        self._on_end = on_end

        self.state = SimulationState.NOT_STARTED
        self.current_tick = 0
        self.portfolio = Portfolio(config.initial_capital)
        self.executor: ExecutionSimulator | None = None
        self._timeline: list[TimelineSample] = []
        self._errors: list[SimulationError] = []
        self._stop_requested = False
        self._pairs: tuple[str, ...] = ()

    # API para suscribirse a eventos
    def on(self, event: str, fn: Callable[[Any], None]) -> None:
        self.events.on(event, fn)

    @property
    def market_data(self) -> MarketData | None:
        return self._market_data

    @property
    def timeline(self) -> tuple[TimelineSample, ...]:
        return tuple(self._timeline)

    @property
    def errors(self) -> tuple[SimulationError, ...]:
        return tuple(self._errors)

    def stop(self) -> None:
        """Pide parar el loop; se respeta entre ticks, nunca a mitad de uno."""
        self._stop_requested = True

    # ------------------------------------------------------------------ #
    #  Inicialización
    # ------------------------------------------------------------------ #
    def _initialize(self) -> MarketData:
        if self.state is not SimulationState.NOT_STARTED:
            raise BacktestError(f"La simulación ya se ejecutó (estado {self.state.value})")
        try:
            data = self._market_data
            if data is None:
                seed = self._rng if self._rng is not None else self.config.seed
                data = self.config.generator().generate(make_rng(seed))
                self._market_data = data

            pairs = tuple(p for p in self.config.trading_pairs if p in data.pairs and len(data.pairs[p]) > 0)
            if not pairs or data.total_ticks <= 0:
                raise DataUnavailableError(
                    ", ".join(self.config.trading_pairs), detail="ningún par tiene datos de mercado"
                )
            missing = [p for p in self.config.trading_pairs if p not in pairs]
            if missing:
                logger.warning(f"Pares sin datos, se ignoran: {missing}")

            self._pairs = pairs
            self.executor = ExecutionSimulator(data, self.portfolio, self.config.cost_model)
            self.strategy.on_start(self.portfolio)
        except BaseException:
            self.state = SimulationState.FAILED
            raise
        return data

    # ------------------------------------------------------------------ #
    #  Loop
    # ------------------------------------------------------------------ #
    async def run(self) -> BacktestResult:
        data = self._initialize()
        self.state = SimulationState.RUNNING
        total = data.total_ticks
        logger.info(
            f"Backtest iniciado: escenario={data.scenario} ticks={total} pares={list(self._pairs)} "
            f"capital={self.config.initial_capital:.2f}"
        )

        processed = 0
        try:
            for tick in range(total):
                if self._stop_requested:
                    logger.info(f"Backtest detenido a petición en el tick {tick}")
                    break
                self.current_tick = tick
                await self._process_tick(data, tick)
                processed += 1

            return self._finish(data, processed)
        except BaseException:
            # nunca quedarse en RUNNING si algo escapa del loop
            if self.state is SimulationState.RUNNING:
                self.state = SimulationState.FAILED
            logger.exception(f"Backtest abortado en el tick {self.current_tick}")
            raise

    def run_sync(self) -> BacktestResult:
        return asyncio.run(self.run())

    async def _process_tick(self, data: MarketData, tick: int) -> None:
        assert self.executor is not None
        now = data.time_at(tick)

        views: dict[str, MarketView] = {}
        for pair in self._pairs:
            try:
                views[pair] = self._build_view(data, pair, tick, now)
            except BacktestError as exc:
                self._record_error(tick, now, pair, exc)

        regime = detect_regime(v.change(REGIME_INTERVAL) for v in views.values())
        conditions = {
            "timestamp": now,
            "tick": tick,
            "regime": regime.type,
            "volatility": regime.volatility,
        }

        for pair, view in views.items():
            try:
                await self._decide_and_execute(pair, view, regime, tick, conditions)
            except BacktestError as exc:
                self._record_error(tick, now, pair, exc)
            except Exception as exc:  # noqa: BLE001
                self._record_error(tick, now, pair, AggregateSimulationError(tick, pair, exc))

        self.portfolio.revalue({pair: view.price for pair, view in views.items()})

        if tick % self.config.timeline_every == 0:
            sample = self._sample(tick, now)
            self._timeline.append(sample)
            self.events.emit("timeline", sample)

        if tick > 0 and tick % self.config.progress_every == 0:
            pct = tick / data.total_ticks * 100.0
            logger.info(
                f"Progreso {pct:.1f}% | tick {tick}/{data.total_ticks} | "
                f"valor={self.portfolio.total_value:.2f} | trades={len(self.executor.trades)} | "
                f"errores={len(self._errors)}"
            )
            self.events.emit("progress", {"tick": tick, "pct": pct, "value": self.portfolio.total_value})

    async def _decide_and_execute(
        self,
        pair: str,
        view: MarketView,
        regime: MarketRegime,
        tick: int,
        conditions: dict[str, Any],
    ) -> None:
        assert self.executor is not None
        hints = build_hints(view, regime)
        decision = self.strategy.decide(pair, view, hints)
        if inspect.isawaitable(decision):
            decision = await decision
        if decision is None:
            return
        if not isinstance(decision, Order):
            raise OrderValidationError(f"El hook devolvió {type(decision).__name__}, se esperaba Order o None")
        if decision.pair not in self._pairs:
            raise DataUnavailableError(decision.pair, tick=tick, detail="par fuera del backtest")
        trade = self.executor.execute(decision, tick, conditions)
        self.events.emit("trade", trade)

    def _build_view(self, data: MarketData, pair: str, tick: int, now: int) -> MarketView:
        feed = data.feed(pair)
        candles = {}
        history = {}
        for interval in feed.intervals:
            candle = feed.candle_at(interval, tick)
            if candle is None:
                continue
            candles[interval] = candle
            history[interval] = feed.timeframes[interval].completed_before(now, self.config.history_window)
        if not candles:
            raise DataUnavailableError(pair, tick=tick, detail="sin velas")
        return MarketView(
            pair=pair,
            tick=tick,
            timestamp=now,
            candles=candles,
            history=history,
            order_book=feed.order_book_at(tick),
            sentiment=feed.sentiment_at(tick),
            news=data.active_news(now),
        )

    def _sample(self, tick: int, now: int) -> TimelineSample:
        pf = self.portfolio
        return TimelineSample(
            timestamp=now,
            tick=tick,
            portfolio_value=pf.total_value,
            cash=pf.cash,
            positions_value=pf.total_value - pf.cash,
            positions_count=len(pf.positions),
        )

    def _record_error(self, tick: int, now: int, pair: str | None, exc: BaseException) -> None:
        err = SimulationError(tick=tick, timestamp=now, message=str(exc), pair=pair, kind=type(exc).__name__)
        self._errors.append(err)
        logger.warning(f"tick {tick} {pair or '-'}: {type(exc).__name__}: {exc}")
        self.events.emit("error", err)

    # ------------------------------------------------------------------ #
    #  Cierre
    # ------------------------------------------------------------------ #
    def _finish(self, data: MarketData, processed: int) -> BacktestResult:
        assert self.executor is not None
        self.state = SimulationState.COMPLETED
        self.strategy.on_end(self.portfolio)

        trades = self.executor.trades
        report = PerformanceAnalyzer.from_portfolio(
            self.portfolio,
            trades=trades,
            timeline=self.timeline,
            duration_ms=processed * data.tick_interval_ms,
            targets=self.config.benchmarks,
            errors=self.errors,
            scenario=data.scenario,
        ).analyze()

        result = BacktestResult(
            state=self.state,
            report=report,
            portfolio=self.portfolio,
            trades=trades,
            timeline=self.timeline,
            errors=self.errors,
            ticks_processed=processed,
            stopped_early=processed < data.total_ticks,
        )
        logger.info(
            f"Backtest completado: {processed} ticks, {len(trades)} trades, {len(self._errors)} errores, "
            f"valor final={self.portfolio.total_value:.2f}"
        )
        self.events.emit("end", result)
        if self._on_end is not None:
            self._on_end(result)
        return result
