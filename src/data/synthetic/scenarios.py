# src/data/synthetic/scenarios.py
"""
Perfiles de escenario de mercado para el generador sintético.

Cada escenario es una variante cerrada (Scenario) que selecciona un par
(trend, volatility) por tick y, opcionalmente, una función de forma
determinista sobre el progreso normalizado p ∈ [0, 1].

Formas disponibles
------------------
- "none":          sin ajuste.
- "choppy_sine":   sin(20·p) · 0.01 (mercado lateral con vaivén).
- "news_impulses": con probabilidad 0.01 por tick, salto U(-0.02, 0.02).
- "flash_crash":   en 0.3 < p < 0.5 resta magnitude · sin((p-0.3)·π/0.2).

La única forma que consume aleatoriedad es "news_impulses"; recibe el mismo
generador que el resto del run para mantener la reproducibilidad por semilla.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace
from enum import Enum
import math

import numpy as np

from core.errors import ConfigurationError

__all__ = [
    "Scenario",
    "ScenarioProfile",
    "ShapeFn",
    "SHAPES",
    "FLASH_CRASH_WINDOW",
    "get_profile",
    "available_scenarios",
]

ShapeFn = Callable[[float, "ScenarioProfile", np.random.Generator], float]

FLASH_CRASH_WINDOW: tuple[float, float] = (0.3, 0.5)


class Scenario(str, Enum):
    TRENDING_BULL = "trending_bull"
    TRENDING_BEAR = "trending_bear"
    HIGH_VOLATILITY = "high_volatility"
    LOW_VOLATILITY = "low_volatility"
    SIDEWAYS_CHOPPY = "sideways_choppy"
    NEWS_DRIVEN = "news_driven"
    FLASH_CRASH = "flash_crash"
    RECOVERY_BOUNCE = "recovery_bounce"


# ------------------------------ Formas ------------------------------------


def _shape_none(p: float, profile: ScenarioProfile, rng: np.random.Generator) -> float:
    return 0.0


def _shape_choppy_sine(p: float, profile: ScenarioProfile, rng: np.random.Generator) -> float:
    return math.sin(p * 20.0) * profile.shape_magnitude


def _shape_news_impulses(p: float, profile: ScenarioProfile, rng: np.random.Generator) -> float:
    if rng.random() < profile.impulse_probability:
        return (rng.random() - 0.5) * 2.0 * profile.shape_magnitude
    return 0.0


def _shape_flash_crash(p: float, profile: ScenarioProfile, rng: np.random.Generator) -> float:
    lo, hi = FLASH_CRASH_WINDOW
    if lo < p < hi:
        return -profile.shape_magnitude * math.sin((p - lo) * math.pi / (hi - lo))
    return 0.0


SHAPES: dict[str, ShapeFn] = {
    "none": _shape_none,
    "choppy_sine": _shape_choppy_sine,
    "news_impulses": _shape_news_impulses,
    "flash_crash": _shape_flash_crash,
}


# ------------------------------ Perfil ------------------------------------


@dataclass(frozen=True)
class ScenarioProfile:
    """
    Parámetros de un escenario.

    Attributes
    ----------
    trend : float
        Deriva por tick (p.ej. 0.0002 = +0.02% por tick).
    volatility : float
        Amplitud del ruido uniforme: componente aleatoria en [-vol, +vol).
    shape : str
        Nombre de la función de forma (clave de SHAPES).
    shape_magnitude : float
        Escala de la forma (amplitud del seno, tamaño del crash o del salto).
    impulse_probability : float
        Probabilidad por tick de salto (solo "news_impulses").
    """

    name: str
    trend: float
    volatility: float
    shape: str = "none"
    shape_magnitude: float = 0.0
    impulse_probability: float = 0.0

    def __post_init__(self) -> None:
        if self.shape not in SHAPES:
            raise ConfigurationError(
                f"shape desconocida: {self.shape!r}. Disponibles: {', '.join(sorted(SHAPES))}"
            )
        if not math.isfinite(self.trend) or abs(self.trend) >= 0.1:
            raise ConfigurationError(f"trend fuera de rango: {self.trend}")
        if not math.isfinite(self.volatility) or not (0.0 <= self.volatility < 0.5):
            raise ConfigurationError(f"volatility fuera de rango: {self.volatility}")
        if self.shape_magnitude < 0.0:
            raise ConfigurationError("shape_magnitude no puede ser negativa.")
        if not (0.0 <= self.impulse_probability <= 1.0):
            raise ConfigurationError("impulse_probability debe estar en [0, 1].")

    def shape_adjustment(self, p: float, rng: np.random.Generator) -> float:
        return SHAPES[self.shape](p, self, rng)

    def with_overrides(self, **changes: float | str) -> ScenarioProfile:
        """Copia validada con parámetros sustituidos (trend, volatility...)."""
        return replace(self, **changes)  # type: ignore[arg-type]


_PROFILES: dict[Scenario, ScenarioProfile] = {
    Scenario.TRENDING_BULL: ScenarioProfile("trending_bull", trend=0.0002, volatility=0.002),
    Scenario.TRENDING_BEAR: ScenarioProfile("trending_bear", trend=-0.0002, volatility=0.0025),
    Scenario.HIGH_VOLATILITY: ScenarioProfile("high_volatility", trend=0.0, volatility=0.008),
    Scenario.LOW_VOLATILITY: ScenarioProfile("low_volatility", trend=0.0, volatility=0.0005),
    Scenario.SIDEWAYS_CHOPPY: ScenarioProfile(
        "sideways_choppy", trend=0.0, volatility=0.003, shape="choppy_sine", shape_magnitude=0.01
    ),
    Scenario.NEWS_DRIVEN: ScenarioProfile(
        "news_driven",
        trend=0.0001,
        volatility=0.004,
        shape="news_impulses",
        shape_magnitude=0.02,
        impulse_probability=0.01,
    ),
    Scenario.FLASH_CRASH: ScenarioProfile(
        "flash_crash", trend=0.0, volatility=0.002, shape="flash_crash", shape_magnitude=0.08
    ),
    Scenario.RECOVERY_BOUNCE: ScenarioProfile("recovery_bounce", trend=0.0003, volatility=0.006),
}


def _norm_tag(tag: str) -> str:
    return tag.strip().lower().replace("-", "_").replace(" ", "_")


def get_profile(scenario: Scenario | str | ScenarioProfile) -> ScenarioProfile:
    """
    Resuelve un escenario a su perfil.

    Acepta un Scenario, su etiqueta textual ("trending_bull", "flash-crash"...)
    o un ScenarioProfile ya construido (se devuelve tal cual).
    """
    if isinstance(scenario, ScenarioProfile):
        return scenario
    if isinstance(scenario, Scenario):
        return _PROFILES[scenario]
    try:
        return _PROFILES[Scenario(_norm_tag(str(scenario)))]
    except ValueError:
        available = ", ".join(available_scenarios())
        raise ConfigurationError(
            f"Escenario desconocido: {scenario!r}. Disponibles: {available}"
        ) from None


def available_scenarios() -> list[str]:
    return [s.value for s in Scenario]
