# dealscope/core/valuation/trend.py
"""Market-trend value adjustment."""

from __future__ import annotations

from dealscope.core.numbers import round_half_up
from dealscope.schemas.models import MarketTrendSignal, TrendAdjustment


def adjustment_amount(pre_adjustment_value: float, signal: MarketTrendSignal | None) -> int:
    """round(pre × pct / 100); exactly 0 when no signal was supplied."""
    if signal is None:
        return 0
    return round_half_up(pre_adjustment_value * signal.value_adjustment_pct / 100.0)


def apply_trend(
    pre_adjustment_value: float, signal: MarketTrendSignal | None
) -> tuple[float, TrendAdjustment | None]:
    """
    Shift a value by the trend signal.

    Returns (adjusted_value, record). No signal → (value unchanged, None).
    """
    if signal is None:
        return pre_adjustment_value, None
    amount = adjustment_amount(pre_adjustment_value, signal)
    record = TrendAdjustment(
        pre_adjustment_value=pre_adjustment_value,
        adjustment_pct=signal.value_adjustment_pct,
        adjustment_amount=amount,
        temperature=signal.temperature,
        direction=signal.direction,
        annual_appreciation_pct=signal.annual_appreciation_pct,
    )
    return pre_adjustment_value + amount, record
