# tests/unit/test_valuation_approaches.py

from __future__ import annotations

import pytest

from dealscope.core.valuation.approaches import (
    build_breakdown,
    build_cost_class,
    cost_approach,
    income_approach,
    land_value,
)
from dealscope.schemas.models import EngineSettings
from tests.utils import DEFAULT_AS_OF, make_subject


@pytest.mark.parametrize(
    "property_type,expected",
    [
        ("single-family", "residential"),
        ("multifamily", "residential"),
        ("mixed-use", "residential"),
        ("office", "commercial"),
        ("hospitality", "commercial"),
        ("self-storage", "industrial"),
    ],
)
def test_build_cost_class(property_type, expected):
    assert build_cost_class(property_type) == expected


def test_income_approach_imputes_noi_from_estimate(settings):
    inc = income_approach(500_000.0, noi=None, area_cap_rate_pct=None, settings=settings)
    assert inc.cap_rate == 6.0
    assert inc.noi == pytest.approx(30_000.0)
    assert inc.value == 500_000


def test_income_approach_uses_actual_noi(settings):
    inc = income_approach(500_000.0, noi=36_000.0, area_cap_rate_pct=7.2, settings=settings)
    assert inc.value == 500_000
    assert inc.cap_rate == 7.2


def test_income_approach_non_positive_noi_falls_back_to_estimate(settings):
    for noi in (0.0, -10_000.0):
        inc = income_approach(500_000.0, noi=noi, area_cap_rate_pct=5.0, settings=settings)
        assert inc.value == 500_000
        assert inc.noi == 25_000


def test_income_approach_rounds_noi_and_value(settings):
    inc = income_approach(410_000.0, noi=24_600.4, area_cap_rate_pct=6.0, settings=settings)
    assert inc.noi == 24_600
    assert inc.value == 410_007


@pytest.mark.parametrize(
    "lot,expected",
    [
        (None, 100_000),  # 20% of value
        (0.0, 100_000),
        (1.0, 75_000),  # 1 × 500k / 2 × 30%
        (3.0, 112_500),  # 3 × 500k / 4 × 30%
    ],
)
def test_land_value_from_lot_size(settings, lot, expected):
    assert land_value(500_000.0, lot, settings) == pytest.approx(expected)


def test_cost_approach_uses_lot_size(settings):
    cost = cost_approach(make_subject(lot_size_acres=1.0), 500_000.0, as_of=DEFAULT_AS_OF, settings=settings)
    assert cost.land_value == 75_000
    assert cost.value == 75_000 + 300_000 - 72_000


def test_cost_approach_depreciation(settings):
    subject = make_subject(square_feet=2_000.0, year_built=2004)
    cost = cost_approach(subject, 500_000.0, as_of=DEFAULT_AS_OF, settings=settings)

    assert cost.replacement_cost == 300_000  # 2,000 × $150
    assert cost.depreciation == 72_000  # 20 yrs × 1.2%
    assert cost.land_value == 100_000
    assert cost.value == 328_000


def test_cost_approach_depreciation_capped(settings):
    subject = make_subject(property_type="office", square_feet=1_000.0, year_built=1900)
    cost = cost_approach(subject, 400_000.0, as_of=DEFAULT_AS_OF, settings=settings)
    assert cost.replacement_cost == 175_000
    assert cost.depreciation == 70_000  # 40% cap


def test_unknown_year_built_assumes_default_age():
    cost = cost_approach(make_subject(year_built=None), 400_000.0, as_of=DEFAULT_AS_OF, settings=EngineSettings())
    assert cost.depreciation == 72_000  # 20 yrs × 1.2% of 300,000


def test_default_building_age_is_configurable():
    cfg = EngineSettings(default_building_age_years=10)
    cost = cost_approach(make_subject(year_built=None), 400_000.0, as_of=DEFAULT_AS_OF, settings=cfg)
    assert cost.depreciation == 36_000


def test_breakdown_sales_uses_anchor(settings):
    b = build_breakdown(
        make_subject(),
        estimated_value=420_000.0,
        anchor_price_per_sqft=205.0,
        comp_count=4,
        noi=None,
        area_cap_rate_pct=None,
        as_of=DEFAULT_AS_OF,
        settings=settings,
    )
    assert b.sales.value == 410_000
    assert b.sales.comp_count == 4
