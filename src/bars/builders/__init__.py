"""Candle builders."""

from bars.builders.time import TimeframeCandleBuilder

__all__ = ["TimeframeCandleBuilder"]
