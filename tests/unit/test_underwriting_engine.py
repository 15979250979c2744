# tests/unit/test_underwriting_engine.py

from __future__ import annotations

import pytest

from dealscope.core.finance import compute_noi, resolve_operations, run_underwriting
from dealscope.core.finance.amortization import monthly_payment
from dealscope.schemas.models import EngineSettings, EnrichmentData, OperatingExpenseLine
from tests.utils import make_deal, make_unit


def test_canonical_deal_metrics(baseline_deal):
    out = run_underwriting(baseline_deal())

    expected_pmt = monthly_payment(750_000, 6.0, 30)
    expected_ads = expected_pmt * 12

    assert out.down_payment == pytest.approx(250_000)
    assert out.loan_amount == pytest.approx(750_000)
    assert out.monthly_payment == pytest.approx(expected_pmt)
    assert out.annual_debt_service == pytest.approx(expected_ads)

    assert out.gross_rent_annual == pytest.approx(120_000)
    assert out.effective_gross_income == pytest.approx(114_000)
    assert out.operating_expenses == pytest.approx(39_900)
    assert out.noi == pytest.approx(74_100)
    assert out.cap_rate == pytest.approx(7.41)
    assert out.grm == pytest.approx(8.3333, abs=1e-3)

    assert out.cash_flow == pytest.approx(74_100 - expected_ads)
    # Closing costs zeroed in the canonical deal, so cash required == down payment
    assert out.total_cash_required == pytest.approx(250_000)
    assert out.cash_on_cash == pytest.approx((74_100 - expected_ads) / 250_000 * 100)
    assert out.dscr == pytest.approx(74_100 / expected_ads)
    assert out.break_even_occupancy == pytest.approx((39_900 + expected_ads) / 120_000 * 100)
    assert out.warnings == []


def test_year1_interest_and_principal_sum_to_debt_service(baseline_deal):
    out = run_underwriting(baseline_deal())
    assert out.year1_interest + out.year1_principal == pytest.approx(out.annual_debt_service, rel=1e-9)
    assert out.year1_interest > out.year1_principal


def test_zero_price_guards_every_price_ratio(baseline_deal):
    out = run_underwriting(baseline_deal(purchase_price=0.0))
    assert out.loan_amount == 0.0
    assert out.annual_debt_service == 0.0
    assert out.cap_rate == 0.0
    assert out.grm == 0.0
    assert out.cash_on_cash == 0.0
    assert out.dscr == 0.0


def test_missing_price_is_treated_as_zero(baseline_deal):
    out = run_underwriting(baseline_deal(purchase_price=None))
    assert out.purchase_price == 0.0
    assert out.cap_rate == 0.0


def test_zero_rent_guards_income_ratios(baseline_deal):
    out = run_underwriting(baseline_deal(gross_rent_monthly=0.0))
    assert out.gross_rent_annual == 0.0
    assert out.grm == 0.0
    assert out.break_even_occupancy == 0.0
    assert out.noi == 0.0
    assert "negative cash flow" in out.warnings


def test_zero_rate_uses_straight_line_payment(baseline_deal):
    out = run_underwriting(baseline_deal(interest_rate_pct=0.0))
    assert out.monthly_payment == pytest.approx(750_000 / 360)
    assert out.year1_interest == pytest.approx(0.0)


def test_zero_term_means_no_debt_service(baseline_deal):
    out = run_underwriting(baseline_deal(loan_term_years=0))
    assert out.annual_debt_service == 0.0
    assert out.dscr == 0.0


def test_break_even_capped_at_100(baseline_deal):
    out = run_underwriting(baseline_deal(purchase_price=5_000_000.0))
    assert out.break_even_occupancy == 100.0
    assert "DSCR below 1.00" in out.warnings
    assert "negative cash flow" in out.warnings
    assert any("break-even" in w for w in out.warnings)


def test_rent_roll_replaces_manual_rent():
    units = [
        make_unit("1", 2_000.0),
        make_unit("2", 2_500.0),
        make_unit("3", 1_800.0, status="vacant"),
    ]
    deal = make_deal(gross_rent_monthly=99_999.0, rent_roll=units)
    ops = resolve_operations(deal)
    assert ops.gross_rent_annual == pytest.approx((2_000 + 2_500) * 12)
    assert ops.unit_count == 3
    assert ops.square_feet == pytest.approx(2_100.0)

    out = run_underwriting(deal)
    assert out.price_per_unit == pytest.approx(1_000_000 / 3)
    assert out.price_per_sqft == pytest.approx(1_000_000 / 2_100)


def test_expense_lines_beat_actual_total_and_ratio():
    lines = {
        "tax": OperatingExpenseLine(category="Tax", annual=12_000.0, monthly=1_000.0),
        "ins": OperatingExpenseLine(category="Insurance", annual=3_000.0, monthly=250.0),
    }
    ops = resolve_operations(make_deal(expense_lines=lines, operating_expenses=50_000.0))
    assert ops.operating_expenses == pytest.approx(15_000.0)
    assert ops.expense_source == "ledger"


def test_actual_total_beats_ratio():
    ops = resolve_operations(make_deal(operating_expenses=30_000.0))
    assert ops.operating_expenses == pytest.approx(30_000.0)
    assert ops.expense_source == "actual"
    assert compute_noi(make_deal(operating_expenses=30_000.0)) == pytest.approx(114_000 - 30_000)


@pytest.mark.parametrize(
    "deal_pct,enrichment_pct,expected",
    [
        (2.0, 4.0, 20_000.0),  # explicit deal term wins
        (None, 4.0, 40_000.0),  # enrichment estimate next
        (None, None, 35_000.0),  # settings default (3.5%)
    ],
)
def test_closing_cost_resolution(deal_pct, enrichment_pct, expected):
    deal = make_deal(
        closing_cost_pct=deal_pct,
        enrichment=EnrichmentData(closing_cost_pct=enrichment_pct) if enrichment_pct is not None else None,
    )
    out = run_underwriting(deal, settings=EngineSettings())
    assert out.closing_costs == pytest.approx(expected)
    assert out.total_cash_required == pytest.approx(250_000 + expected)
