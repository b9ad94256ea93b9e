"""Small numeric helpers shared by the analysis and fusion stages"""

import math
from typing import Sequence

import numpy as np


def clamp(value: float, low: float, high: float) -> float:
    """Clamp ``value`` to [low, high]; NaN maps to ``low``."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def clamp01(value: float) -> float:
    return clamp(float(value), 0.0, 1.0)


def safe_mean(values: Sequence[float], default: float = 0.0) -> float:
    """Mean of ``values`` or ``default`` when empty."""
    if len(values) == 0:
        return default
    return float(np.mean(values))
