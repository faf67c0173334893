"""Fuente de aleatoriedad explícita para los generadores sintéticos."""

from __future__ import annotations

import numpy as np

RandomSource = np.random.Generator


def make_rng(seed: int | np.random.Generator | None = None) -> np.random.Generator:
    """
    Devuelve un numpy Generator.

    - int: generador PCG64 sembrado (reproducible).
    - Generator: se reutiliza tal cual (permite enchufar otro BitGenerator).
    - None: semilla de entropía del sistema (no reproducible).
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)
