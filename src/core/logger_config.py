# ============================================================
# src/core/logger_config.py — Configuración central del logger
# ------------------------------------------------------------
# init_logger() configura el logger global de Loguru para los
# backtests: nivel desde argumento o variable LOG_LEVEL (.env),
# salida a consola colorizada y, opcionalmente, a archivo con
# rotación diaria.
#
# Los módulos del motor solo hacen `from loguru import logger`;
# nunca añaden sinks por su cuenta.
# ============================================================

from __future__ import annotations

import os
from pathlib import Path
import sys

from dotenv import load_dotenv
from loguru import logger

from core.errors import ConfigurationError

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)


# ============================================================
# Función: init_logger
# ============================================================
def init_logger(level: str | None = None, log_dir: Path | str | None = None) -> str:
    """
    Inicializa la configuración global del logger.

    Args:
        level: nivel explícito (DEBUG/INFO/...). Si es None se lee LOG_LEVEL.
        log_dir: carpeta para `backtest.log`. Si es None no se escribe a disco.

    Returns:
        El nivel efectivo aplicado.
    """
    load_dotenv(override=False)
    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    # --- Eliminar configuración previa ---
    logger.remove()

    # --- Consola (colorizada) ---
    try:
        logger.add(sink=sys.stderr, level=log_level, colorize=True, format=LOG_FORMAT)
    except ValueError as e:
        # nivel desconocido para loguru: dejar al menos la consola por defecto
        logger.add(sink=sys.stderr, level="INFO", colorize=True, format=LOG_FORMAT)
        raise ConfigurationError(f"Nivel de log inválido: {log_level}") from e

    # --- Archivo (rotación diaria) ---
    if log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            sink=path / "backtest.log",
            level=log_level,
            rotation="1 day",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=False,
            format=LOG_FORMAT,
        )

    logger.debug(f"Logger inicializado (nivel {log_level})")
    return log_level
