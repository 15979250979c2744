# tests/test_amortization.py
import pytest

from dealscope.core.finance.amortization import (
    annual_debt_service,
    annual_split,
    generate_schedule,
    monthly_payment,
)


def test_monthly_payment_basic():
    pmt = monthly_payment(300_000, 6.0, 30)  # common mortgage
    assert pmt == pytest.approx(1798.65, abs=0.01)


def test_monthly_payment_canonical_deal_loan():
    # $750k loan (25% down on $1M) at 6% over 30 years
    assert monthly_payment(750_000, 6.0, 30) == pytest.approx(4496.63, abs=0.01)
    assert annual_debt_service(750_000, 6.0, 30) == pytest.approx(4496.63 * 12, abs=0.1)


def test_zero_interest_rate_is_straight_line():
    assert monthly_payment(24_000, 0.0, 2) == pytest.approx(1000.0)
    sched = generate_schedule(24_000, 0.0, 2)
    assert len(sched) == 24
    assert {p.total for p in sched} == {1000.0}
    assert sched[-1].balance == pytest.approx(0.0, abs=1e-6)


@pytest.mark.parametrize(
    "principal,rate,years",
    [
        (0.0, 6.0, 30),
        (-5_000.0, 6.0, 30),
        (100_000.0, 6.0, 0),
    ],
)
def test_degenerate_loans_pay_nothing(principal, rate, years):
    assert monthly_payment(principal, rate, years) == 0.0
    assert generate_schedule(principal, rate, years) == []


@pytest.mark.parametrize("rate,years", [(-1.0, 30), (6.0, -1)])
def test_negative_terms_rejected(rate, years):
    with pytest.raises(ValueError):
        monthly_payment(100_000, rate, years)


def test_schedule_amortizes_to_zero():
    sched = generate_schedule(120_000, 4.0, 20)
    assert len(sched) == 240
    assert sched[-1].balance == pytest.approx(0.0, abs=1e-6)
    assert sum(p.principal for p in sched) == pytest.approx(120_000, rel=1e-9)
    # Interest share shrinks over time
    assert sched[0].interest > sched[-1].interest


def test_year1_split_adds_up():
    sched = generate_schedule(120_000, 4.0, 20)
    total, interest, principal = annual_split(sched, 1)
    assert total == pytest.approx(sum(p.total for p in sched[:12]))
    assert interest + principal == pytest.approx(total)


def test_split_past_end_of_schedule_is_zero():
    sched = generate_schedule(12_000, 6.0, 1)
    assert annual_split(sched, 2) == (0.0, 0.0, 0.0)


def test_split_year_index_is_one_based():
    with pytest.raises(ValueError):
        annual_split(generate_schedule(12_000, 6.0, 1), 0)
