# dealscope/core/finance/amortization.py
from __future__ import annotations

from dataclasses import dataclass

_EPS = 1e-6  # for floating cleanup


@dataclass(frozen=True)
class PaymentBreakdown:
    """
    Immutable record of a single monthly payment.

    Attributes:
        month (int): 1-based month index.
        interest (float): Interest paid this month.
        principal (float): Principal paid this month.
        total (float): Total payment this month (interest + principal).
        balance (float): Remaining principal balance after this month's payment.
    """

    month: int
    interest: float
    principal: float
    total: float
    balance: float


def monthly_payment(principal: float, annual_rate_pct: float, years: int) -> float:
    """
    Compute the constant monthly payment for a fully-amortizing fixed-rate loan.

    Formula (standard annuity):
        PMT = [ P * r * (1 + r)^n ] / [ (1 + r)^n - 1 ]

    Where:
        P = principal
        r = monthly rate = annual_rate_pct / 100 / 12
        n = number of monthly payments = years * 12

    Guards:
        - n == 0 → 0.0 (no loan term, no payment)
        - r == 0 → P / n (the annuity formula divides by zero here)
        - principal <= 0 → 0.0

    Args:
        principal: Loan amount.
        annual_rate_pct: Annual rate in percent (6.0 = 6%).
        years: Term in years.

    Returns:
        The fixed monthly P&I payment.
    """
    if years < 0:
        raise ValueError("years must be >= 0")
    if annual_rate_pct < 0:
        raise ValueError("annual_rate_pct must be >= 0")

    n = years * 12
    if n == 0 or principal <= 0:
        return 0.0

    r = annual_rate_pct / 100.0 / 12.0
    if r == 0:
        return principal / n

    growth = (1 + r) ** n
    return principal * r * growth / (growth - 1)


def annual_debt_service(principal: float, annual_rate_pct: float, years: int) -> float:
    """Twelve monthly payments."""
    return monthly_payment(principal, annual_rate_pct, years) * 12.0


def generate_schedule(principal: float, annual_rate_pct: float, years: int) -> list[PaymentBreakdown]:
    """
    Build the month-by-month amortization schedule for a fully-amortizing loan.

    The final payment is trimmed so the balance never goes negative.
    """
    if principal <= 0 or years <= 0:
        return []

    r = annual_rate_pct / 100.0 / 12.0
    pmt = monthly_payment(principal, annual_rate_pct, years)
    schedule: list[PaymentBreakdown] = []
    bal = float(principal)

    for month in range(1, years * 12 + 1):
        interest = bal * r
        principal_paid = max(0.0, pmt - interest)
        total = pmt
        # Guard for rounding drift in the final payment
        if principal_paid > bal:
            principal_paid = bal
            total = interest + principal_paid
        bal = bal - principal_paid
        if bal < _EPS:
            bal = 0.0
        schedule.append(PaymentBreakdown(month, interest, principal_paid, total, bal))

    return schedule


def annual_split(schedule: list[PaymentBreakdown], year_index: int) -> tuple[float, float, float]:
    """
    Aggregate one 1-based year of a monthly schedule.

    Returns:
        (total_debt_service, interest_paid, principal_paid); zeros past the end of the schedule.
    """
    if year_index <= 0:
        raise ValueError("year_index is 1-based (Year 1, Year 2, ...).")

    start = (year_index - 1) * 12
    end = min(len(schedule), year_index * 12)
    if start >= len(schedule):
        return (0.0, 0.0, 0.0)

    rows = schedule[start:end]
    return (
        sum(p.total for p in rows),
        sum(p.interest for p in rows),
        sum(p.principal for p in rows),
    )
