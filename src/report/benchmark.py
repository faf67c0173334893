# src/report/benchmark.py
"""
Comparación de métricas contra objetivos de benchmark.

API:
- BenchmarkTargets: objetivos (dataclass congelada, valores por defecto del proyecto).
- compare_to_benchmark(metrics, targets) -> BenchmarkComparison
- grade_from_pass_rate(rate) -> "A" | "B" | "C" | "D" | "F"
- generate_recommendations(metrics, targets) -> list[dict]

`metrics` es el dict `performance_metrics` del PerformanceReport; basta con
que tenga las claves win_rate, profit_factor, max_drawdown, sharpe_ratio,
trades_per_hour y hourly_return.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

from core.errors import ConfigurationError

__all__ = [
    "BenchmarkTargets",
    "BenchmarkCheck",
    "BenchmarkComparison",
    "PASS_THRESHOLD",
    "compare_to_benchmark",
    "grade_from_pass_rate",
    "generate_recommendations",
]

PASS_THRESHOLD = 0.7


@dataclass(frozen=True)
class BenchmarkTargets:
    min_win_rate: float = 0.55
    min_profit_factor: float = 1.8
    max_drawdown: float = 5.0  # %
    min_sharpe_ratio: float = 1.2
    min_trades_per_hour: float = 15.0
    target_hourly_return: float = 2.0  # %

    def __post_init__(self) -> None:
        if not (0.0 <= self.min_win_rate <= 1.0):
            raise ConfigurationError(f"min_win_rate debe estar en [0, 1]: {self.min_win_rate}")
        if self.max_drawdown < 0:
            raise ConfigurationError("max_drawdown no puede ser negativo")
        if self.min_trades_per_hour < 0:
            raise ConfigurationError("min_trades_per_hour no puede ser negativo")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> BenchmarkTargets:
        """Construye desde un dict (p.ej. la sección `benchmark` del YAML). Ignora claves desconocidas."""
        if not data:
            return cls()
        known = {k: float(v) for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**known)

    def as_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class BenchmarkCheck:
    actual: float
    target: float
    passed: bool


@dataclass(frozen=True)
class BenchmarkComparison:
    checks: dict[str, BenchmarkCheck]
    passed_tests: int
    total_tests: int

    @property
    def pass_rate(self) -> float:
        return self.passed_tests / self.total_tests if self.total_tests else 0.0

    @property
    def status(self) -> str:
        return "PASS" if self.passed_tests >= self.total_tests * PASS_THRESHOLD else "FAIL"

    @property
    def grade(self) -> str:
        return grade_from_pass_rate(self.pass_rate)

    def as_dict(self) -> dict[str, Any]:
        return {
            "comparison": {k: asdict(v) for k, v in self.checks.items()},
            "passed_tests": self.passed_tests,
            "total_tests": self.total_tests,
            "pass_rate": self.pass_rate,
            "status": self.status,
            "grade": self.grade,
        }


def compare_to_benchmark(metrics: Mapping[str, float], targets: BenchmarkTargets) -> BenchmarkComparison:
    def _ge(key: str, target: float) -> BenchmarkCheck:
        actual = float(metrics[key])
        return BenchmarkCheck(actual=actual, target=target, passed=actual >= target)

    dd = float(metrics["max_drawdown"])
    checks = {
        "win_rate": _ge("win_rate", targets.min_win_rate),
        "profit_factor": _ge("profit_factor", targets.min_profit_factor),
        "max_drawdown": BenchmarkCheck(actual=dd, target=targets.max_drawdown, passed=dd <= targets.max_drawdown),
        "sharpe_ratio": _ge("sharpe_ratio", targets.min_sharpe_ratio),
        "trades_per_hour": _ge("trades_per_hour", targets.min_trades_per_hour),
        "hourly_return": _ge("hourly_return", targets.target_hourly_return),
    }
    passed = sum(1 for c in checks.values() if c.passed)
    return BenchmarkComparison(checks=checks, passed_tests=passed, total_tests=len(checks))


def grade_from_pass_rate(rate: float) -> str:
    if rate >= 0.9:
        return "A"
    if rate >= 0.8:
        return "B"
    if rate >= 0.7:
        return "C"
    if rate >= 0.6:
        return "D"
    return "F"


# ------------------------------ Recomendaciones ---------------------------- #
def _rec(category: str, priority: str, issue: str, recommendation: str) -> dict[str, str]:
    return {"category": category, "priority": priority, "issue": issue, "recommendation": recommendation}


def generate_recommendations(metrics: Mapping[str, float], targets: BenchmarkTargets) -> list[dict[str, str]]:
    recs: list[dict[str, str]] = []

    win_rate = float(metrics["win_rate"])
    if win_rate < targets.min_win_rate:
        recs.append(
            _rec(
                "Entry Strategy",
                "HIGH",
                f"Win rate ({win_rate * 100:.1f}%) por debajo del objetivo ({targets.min_win_rate * 100:.1f}%)",
                "Aumentar la selectividad de señales y endurecer los criterios de entrada; "
                "añadir indicadores de confirmación.",
            )
        )

    pf = float(metrics["profit_factor"])
    if pf < targets.min_profit_factor:
        recs.append(
            _rec(
                "Risk Management",
                "HIGH",
                f"Profit factor ({pf:.2f}) por debajo del objetivo ({targets.min_profit_factor})",
                "Mejorar la relación ganancia/pérdida: stops más ajustados o take-profits más amplios; "
                "revisar el sizing.",
            )
        )

    dd = float(metrics["max_drawdown"])
    if dd > targets.max_drawdown:
        recs.append(
            _rec(
                "Risk Management",
                "CRITICAL",
                f"Drawdown máximo ({dd:.2f}%) supera el límite ({targets.max_drawdown}%)",
                "Controles de riesgo más estrictos: reducir tamaños y añadir circuit breakers "
                "en periodos de alta volatilidad.",
            )
        )

    sharpe = float(metrics["sharpe_ratio"])
    if sharpe < targets.min_sharpe_ratio:
        recs.append(
            _rec(
                "Risk Management",
                "MEDIUM",
                f"Sharpe ratio ({sharpe:.2f}) por debajo del objetivo ({targets.min_sharpe_ratio})",
                "Reducir la varianza de los retornos: menos exposición en regímenes volátiles.",
            )
        )

    tph = float(metrics["trades_per_hour"])
    if tph < targets.min_trades_per_hour:
        recs.append(
            _rec(
                "Strategy Optimization",
                "MEDIUM",
                f"Frecuencia de trading ({tph:.1f} trades/hora) por debajo del objetivo "
                f"({targets.min_trades_per_hour:g})",
                "Relajar umbrales de entrada o añadir pares; considerar timeframes más cortos.",
            )
        )

    hr = float(metrics["hourly_return"])
    if hr < targets.target_hourly_return:
        recs.append(
            _rec(
                "Performance",
                "MEDIUM",
                f"Retorno horario ({hr:.2f}%) por debajo del objetivo ({targets.target_hourly_return}%)",
                "Optimizar el sizing y la calidad de señal; considerar estrategias de momentum.",
            )
        )

    if not recs:
        recs.append(
            _rec(
                "Performance",
                "INFO",
                "Strategy meets all benchmark criteria",
                "La estrategia rinde bien. Considerar optimizaciones menores para ganar consistencia.",
            )
        )
    return recs
