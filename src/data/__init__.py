"""Fuentes de datos de mercado del backtest."""
