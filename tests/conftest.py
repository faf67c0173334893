import sys
from pathlib import Path

import pytest

# Ensure the `src` folder is on sys.path when running pytest so imports like
# `from core import ...` or `from data.synthetic import ...` work without
# needing to install the package. The project root is added too so tests can
# import `main`.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT / "src"))
sys.path.insert(0, str(ROOT))


@pytest.fixture
def short_data():
    """Dataset de 2 minutos, baja volatilidad, semilla fija."""
    from data.synthetic import MarketDataGenerator

    return MarketDataGenerator("low_volatility", duration_ms=120_000).generate(3)


@pytest.fixture
def portfolio():
    from core.portfolio import Portfolio

    return Portfolio(10_000.0)
