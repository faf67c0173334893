# ============================================================
# main.py — Punto de entrada del backtest sobre mercado sintético
# ------------------------------------------------------------
# Añade /src al sys.path ANTES de importar "core.*", carga la
# configuración (YAML + .env), lanza un backtest y loguea el
# resumen del reporte.
#
# Uso:
#   python main.py --scenario flash_crash --seed 7
#   python main.py --config src/config/backtest.yaml --run-dir runs/demo
# ============================================================

from __future__ import annotations

import argparse
from dataclasses import replace
import json
from pathlib import Path
import sys

# --- 1) AÑADIR ./src AL sys.path ANTES DE NADA ----------------
PROJECT_ROOT = Path(__file__).parent
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

# --- 2) IMPORTS DEL PROYECTO ----------------------------------
from loguru import logger  # noqa: E402

from core.config_loader import build_backtest_config, get_config, get_nested, reload_config  # noqa: E402
from core.errors import BacktestError, ConfigurationError  # noqa: E402
from core.logger_config import init_logger  # noqa: E402
from core.sim_engine import BacktestResult, SimulationClock  # noqa: E402
from data.synthetic.scenarios import available_scenarios  # noqa: E402
from report.frames import timeline_to_dataframe, trades_to_dataframe  # noqa: E402
from strategies import get_strategy_class  # noqa: E402


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Backtest de estrategia sobre mercado sintético")
    ap.add_argument("--scenario", choices=available_scenarios(), help="Escenario (override del YAML)")
    ap.add_argument("--seed", type=int, help="Semilla del generador (override del YAML)")
    ap.add_argument("--config", type=Path, help="Ruta alternativa a backtest.yaml")
    ap.add_argument("--log-level", help="DEBUG / INFO / WARNING ...")
    ap.add_argument("--run-dir", type=Path, help="Si se indica, guarda trades.csv, timeline.csv y report.json")
    return ap.parse_args(argv)


def write_run(run_dir: Path, result: BacktestResult) -> None:
    run_dir.mkdir(parents=True, exist_ok=True)
    trades_to_dataframe(result.trades).to_csv(run_dir / "trades.csv", index=False)
    timeline_to_dataframe(result.timeline).to_csv(run_dir / "timeline.csv", index=False)
    report = result.report.as_dict()
    # el detalle ya va en los CSV
    report.pop("trades")
    report.pop("timeline")
    (run_dir / "report.json").write_text(json.dumps(report, indent=2, default=str), encoding="utf-8")
    logger.info(f"Resultados guardados en {run_dir}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        cfg = reload_config(args.config) if args.config else get_config()
        init_logger(
            level=args.log_level or get_nested(cfg, "environment", "log_level"),
            log_dir=get_nested(cfg, "environment", "log_dir"),
        )
        bt_cfg = build_backtest_config(cfg)
        overrides = {}
        if args.scenario:
            overrides["scenario"] = args.scenario
        if args.seed is not None:
            overrides["seed"] = args.seed
        if overrides:
            bt_cfg = replace(bt_cfg, **overrides)

        strategy_name = get_nested(cfg, "strategy", "name", default="sentiment_scalper")
        params = get_nested(cfg, "strategy", "params", default={}) or {}
        try:
            strategy_cls = get_strategy_class(strategy_name)
        except KeyError as e:
            raise ConfigurationError(f"Estrategia desconocida: {strategy_name}") from e
        strategy = strategy_cls(**params)

        result = SimulationClock(bt_cfg, strategy).run_sync()
    except BacktestError as e:
        logger.error(f"Backtest abortado: {e}")
        return 1

    summary = result.report.summary
    logger.info(
        f"Escenario={summary['scenario']} | retorno={summary['final_return']:.2f}% | "
        f"trades={summary['total_trades']} | estado={summary['benchmark_status']} | "
        f"nota={summary['overall_grade']}"
    )
    for rec in result.report.recommendations:
        logger.info(f"[{rec['priority']}] {rec['category']}: {rec['issue']}")

    if args.run_dir is not None:
        write_run(args.run_dir, result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
