# src/report/frames.py
"""
Exportación tabular (pandas) del ledger de trades y del timeline.

Las columnas tienen un orden estable; un ledger vacío produce un DataFrame
vacío con las mismas columnas.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict

import pandas as pd

from core.types import TimelineSample, TradeRecord

__all__ = ["TRADE_COLUMNS", "TIMELINE_COLUMNS", "trades_to_dataframe", "timeline_to_dataframe"]

TRADE_COLUMNS: list[str] = [
    "timestamp",
    "tick",
    "pair",
    "side",
    "requested_amount",
    "exec_price",
    "slippage",
    "fee",
    "net_amount",
    "quantity",
    "pnl",
    "confidence",
    "regime",
]

TIMELINE_COLUMNS: list[str] = [
    "timestamp",
    "tick",
    "portfolio_value",
    "cash",
    "positions_value",
    "positions_count",
]


def trades_to_dataframe(trades: Iterable[TradeRecord]) -> pd.DataFrame:
    rows = [t.as_dict() for t in trades]
    df = pd.DataFrame(rows, columns=TRADE_COLUMNS)
    if not df.empty:
        df["pnl_cum"] = df["pnl"].cumsum()
    else:
        df["pnl_cum"] = pd.Series(dtype=float)
    return df


def timeline_to_dataframe(samples: Iterable[TimelineSample]) -> pd.DataFrame:
    df = pd.DataFrame([asdict(s) for s in samples], columns=TIMELINE_COLUMNS)
    if not df.empty:
        # Retorno entre muestras consecutivas; la primera fila no tiene previa
        df["return"] = df["portfolio_value"].pct_change()
    else:
        df["return"] = pd.Series(dtype=float)
    return df
