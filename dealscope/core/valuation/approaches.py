# dealscope/core/valuation/approaches.py
"""
Per-approach value breakdown (income, sales, cost) for a blended valuation.

These figures are reported alongside the blended estimate; they do not feed
back into it.
"""

from __future__ import annotations

from datetime import date

from dealscope.core.numbers import round_half_up
from dealscope.schemas.models import (
    ApproachBreakdown,
    CostApproach,
    EngineSettings,
    IncomeApproach,
    PropertySnapshot,
    SalesApproach,
)

_COMMERCIAL_TYPES = frozenset({"commercial", "retail", "office", "hospitality"})
_INDUSTRIAL_TYPES = frozenset({"industrial", "self-storage"})


def build_cost_class(property_type: str) -> str:
    """Map a property type onto the build-cost classes: residential / commercial / industrial."""
    if property_type in _COMMERCIAL_TYPES:
        return "commercial"
    if property_type in _INDUSTRIAL_TYPES:
        return "industrial"
    return "residential"


def income_approach(
    estimated_value: float,
    *,
    noi: float | None,
    area_cap_rate_pct: float | None,
    settings: EngineSettings,
) -> IncomeApproach:
    """
    Capitalize NOI at the area cap rate.

    Uses the actual NOI when the deal's rent roll / expenses produced a positive one;
    otherwise the value is the estimate itself and NOI is imputed as
    estimated_value × cap rate.
    """
    cap = area_cap_rate_pct if area_cap_rate_pct and area_cap_rate_pct > 0 else settings.default_area_cap_rate_pct
    if noi is None or noi <= 0:
        return IncomeApproach(
            value=float(round_half_up(estimated_value)),
            cap_rate=cap,
            noi=float(round_half_up(estimated_value * cap / 100.0)),
        )
    return IncomeApproach(value=float(round_half_up(noi / (cap / 100.0))), cap_rate=cap, noi=float(round_half_up(noi)))


def sales_approach(base_sqft: float, anchor_price_per_sqft: float, comp_count: int) -> SalesApproach:
    return SalesApproach(
        value=float(round_half_up(base_sqft * anchor_price_per_sqft)),
        price_per_sqft=anchor_price_per_sqft,
        comp_count=comp_count,
    )


def land_value(estimated_value: float, lot_size_acres: float | None, settings: EngineSettings) -> float:
    """
    Land portion of the value.

    Known lot: lot × value / (lot + 1) × lot_land_share, so larger lots approach
    lot_land_share of value per acre. Unknown lot: land_share of value.
    """
    if lot_size_acres is None or lot_size_acres <= 0:
        return estimated_value * settings.land_share
    return lot_size_acres * (estimated_value / (lot_size_acres + 1.0)) * settings.lot_land_share


def cost_approach(
    subject: PropertySnapshot,
    estimated_value: float,
    *,
    as_of: date,
    settings: EngineSettings,
) -> CostApproach:
    """land + replacement cost − depreciation (straight-line by age, capped; unknown age uses the default)."""
    build_cost = settings.build_cost_per_sqft[build_cost_class(subject.property_type)]
    replacement = subject.square_feet * build_cost
    age = max(0, as_of.year - subject.year_built) if subject.year_built else settings.default_building_age_years
    depreciation = replacement * min(age * settings.depreciation_per_year, settings.max_depreciation)
    land = land_value(estimated_value, subject.lot_size_acres, settings)
    return CostApproach(
        value=float(round_half_up(land + replacement - depreciation)),
        land_value=float(round_half_up(land)),
        replacement_cost=float(round_half_up(replacement)),
        depreciation=float(round_half_up(depreciation)),
    )


def build_breakdown(
    subject: PropertySnapshot,
    *,
    estimated_value: float,
    anchor_price_per_sqft: float,
    comp_count: int,
    noi: float | None,
    area_cap_rate_pct: float | None,
    as_of: date,
    settings: EngineSettings,
) -> ApproachBreakdown:
    return ApproachBreakdown(
        income=income_approach(estimated_value, noi=noi, area_cap_rate_pct=area_cap_rate_pct, settings=settings),
        sales=sales_approach(subject.square_feet, anchor_price_per_sqft, comp_count),
        cost=cost_approach(subject, estimated_value, as_of=as_of, settings=settings),
    )
