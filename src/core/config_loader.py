# ============================================================
# src/core/config_loader.py — Cargador central de configuración
# ------------------------------------------------------------
# OBJETIVO:
#   Leer la configuración del backtest desde un YAML
#   (src/config/backtest.yaml) y aplicar "overrides" desde
#   variables de entorno (.env).
#
# CARACTERÍSTICAS:
#   - Cache interna (evita relecturas del archivo en cada import).
#   - Overrides vía .env (LOG_LEVEL, SCENARIO, SEED, INITIAL_CAPITAL,
#     TRADING_PAIRS).
#   - Validación mínima del esquema (claves imprescindibles).
#   - build_backtest_config(): dict -> BacktestConfig tipado.
#
# USO BÁSICO:
#   from core.config_loader import get_config, build_backtest_config
#   cfg = get_config()
#   bt_cfg = build_backtest_config(cfg)
#
# NOTA:
#   Este módulo NO configura logs (evita dependencia circular).
# ============================================================

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, MutableMapping, Optional

from dotenv import load_dotenv
import yaml

from core.costs import CostModel
from core.errors import ConfigurationError
from core.sim_engine import BacktestConfig
from data.synthetic.scenarios import get_profile
from report.benchmark import BenchmarkTargets

# ------------------------------------------------------------
# Constantes y cache interna
# ------------------------------------------------------------
DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[1] / "config" / "backtest.yaml"

# Se invalida llamando a reload_config().
_CONFIG_CACHE: Optional[Dict[str, Any]] = None


# ------------------------------------------------------------
# Utilidades internas de tipos / paths
# ------------------------------------------------------------
def _to_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} debe ser entero (recibido {value!r})") from None


def _to_float(value: Any, name: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} debe ser numérico (recibido {value!r})") from None


def _to_pairs(value: Any) -> List[str]:
    """Acepta lista YAML o cadena separada por comas ("BTC/USDT,ETH/USDT")."""
    if isinstance(value, str):
        items = [p.strip() for p in value.split(",")]
    else:
        items = [str(p).strip() for p in value or []]
    return [p for p in items if p]


def _deep_set(d: MutableMapping[str, Any], keys: Iterable[str], value: Any) -> None:
    """
    Asigna value en un diccionario anidado siguiendo la lista de 'keys'.
    Crea los nodos intermedios si no existen.
    """
    keys = list(keys)
    current = d
    for k in keys[:-1]:
        if k not in current or not isinstance(current[k], dict):
            current[k] = {}
        current = current[k]
    current[keys[-1]] = value


# ------------------------------------------------------------
# Carga YAML + overrides desde .env
# ------------------------------------------------------------
def _load_yaml_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ConfigurationError(f"No se encontró el archivo de configuración: {path.resolve()}")
    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"YAML inválido en {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"El YAML debe mapear a dict en la raíz. Archivo: {path}")
    return data


# Mapeo: ENV_VAR -> (ruta en backtest.yaml)
ENV_TO_CFG: Dict[str, tuple[str, str]] = {
    "LOG_LEVEL": ("environment", "log_level"),
    "SCENARIO": ("simulation", "scenario"),
    "SEED": ("simulation", "seed"),
    "INITIAL_CAPITAL": ("simulation", "initial_capital"),
    "TRADING_PAIRS": ("simulation", "trading_pairs"),
}


def _apply_env_overrides(cfg: Dict[str, Any]) -> None:
    """Aplica overrides de variables de entorno (.env) sobre el dict `cfg`."""
    load_dotenv(override=False)

    for env_var, path_keys in ENV_TO_CFG.items():
        raw = os.getenv(env_var)
        if raw is None or raw == "":
            continue

        value: Any
        if env_var == "SEED":
            value = _to_int(raw, env_var)
        elif env_var == "INITIAL_CAPITAL":
            value = _to_float(raw, env_var)
        elif env_var == "TRADING_PAIRS":
            value = _to_pairs(raw)
        else:
            value = raw

        _deep_set(cfg, path_keys, value)


# ------------------------------------------------------------
# Validación mínima del esquema (imprescindibles)
# ------------------------------------------------------------
REQUIRED_PATHS: List[tuple[str, ...]] = [
    ("environment", "log_level"),
    ("simulation", "scenario"),
    ("simulation", "duration_ms"),
    ("simulation", "initial_capital"),
    ("simulation", "trading_pairs"),
    ("benchmark",),
]


def _validate_schema(cfg: Dict[str, Any]) -> None:
    """Lanza ConfigurationError si falta alguna clave imprescindible."""
    missing: List[str] = []
    for path_keys in REQUIRED_PATHS:
        if get_nested(cfg, *path_keys, default=None) is None:
            missing.append(".".join(path_keys))

    if missing:
        raise ConfigurationError(
            "Faltan claves imprescindibles en backtest.yaml (o tras overrides): " + ", ".join(missing)
        )
    # Escenario conocido
    get_profile(cfg["simulation"]["scenario"])


# ------------------------------------------------------------
# API pública
# ------------------------------------------------------------
def get_config(path: Optional[Path | str] = None, use_cache: bool = True) -> Dict[str, Any]:
    """
    Devuelve la configuración como diccionario.
    - path: ruta alternativa al YAML (opcional).
    - use_cache: si True, reutiliza la última carga.
    """
    global _CONFIG_CACHE
    if use_cache and _CONFIG_CACHE is not None:
        return _CONFIG_CACHE

    cfg_path = Path(path) if path else DEFAULT_CONFIG_PATH
    cfg = _load_yaml_config(cfg_path)
    _apply_env_overrides(cfg)
    _validate_schema(cfg)

    _CONFIG_CACHE = cfg
    return cfg


def reload_config(path: Optional[Path | str] = None) -> Dict[str, Any]:
    """Fuerza la recarga del YAML y re-aplica overrides del .env."""
    global _CONFIG_CACHE
    _CONFIG_CACHE = None
    return get_config(path=path, use_cache=False)


def get_nested(cfg: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """
    Acceso seguro a valores anidados: get_nested(cfg, "simulation", "scenario")
    Devuelve `default` si no existe la ruta.
    """
    node: Any = cfg
    for k in keys:
        if not isinstance(node, dict) or k not in node:
            return default
        node = node[k]
    return node


def build_backtest_config(cfg: Dict[str, Any]) -> BacktestConfig:
    """Traduce el dict de configuración a un BacktestConfig validado."""
    sim = cfg.get("simulation", {}) or {}
    exe = cfg.get("execution", {}) or {}

    kwargs: Dict[str, Any] = {
        "scenario": str(sim["scenario"]),
        "duration_ms": _to_int(sim["duration_ms"], "simulation.duration_ms"),
        "initial_capital": _to_float(sim["initial_capital"], "simulation.initial_capital"),
        "trading_pairs": tuple(_to_pairs(sim["trading_pairs"])),
        "seed": None if sim.get("seed") is None else _to_int(sim["seed"], "simulation.seed"),
        "independent_pairs": bool(sim.get("independent_pairs", False)),
    }
    for key in ("tick_interval_ms", "timeline_every", "progress_every", "history_window"):
        if sim.get(key) is not None:
            kwargs[key] = _to_int(sim[key], f"simulation.{key}")
    if sim.get("base_price") is not None:
        kwargs["base_price"] = _to_float(sim["base_price"], "simulation.base_price")
    if sim.get("intervals"):
        kwargs["intervals"] = tuple(str(i) for i in sim["intervals"])

    cost_kwargs = {
        k: _to_float(exe[k], f"execution.{k}")
        for k in ("fee_rate", "impact_factor", "max_slippage", "default_volume")
        if exe.get(k) is not None
    }
    kwargs["cost_model"] = CostModel(**cost_kwargs)
    kwargs["benchmarks"] = BenchmarkTargets.from_mapping(cfg.get("benchmark"))
    return BacktestConfig(**kwargs)
