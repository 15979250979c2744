# dealscope/core/numbers.py

from __future__ import annotations

import math


def round_half_up(x: float) -> int:
    """Round to the nearest integer with .5 going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(x + 0.5))


def safe_div(num: float, den: float) -> float:
    """num / den, or 0.0 when den is not positive."""
    return num / den if den > 0 else 0.0
