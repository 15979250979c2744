# dealscope/core/finance/engine.py
"""
Closed-form underwriting model.

Order of computation:
  1) down payment / loan amount
  2) monthly payment & annual debt service (amortization)
  3) closing costs & total cash required
  4) gross rent → vacancy → EGI
  5) operating expenses (ledger lines → actual total → ratio of EGI)
  6) NOI & cash flow
  7) cap rate, cash-on-cash, DSCR, GRM
  8) break-even occupancy

Every ratio degrades to 0 when its denominator is 0 so partially-filled deal
terms still produce a result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from dealscope.core.finance.amortization import annual_split, generate_schedule, monthly_payment
from dealscope.core.finance.rent_roll import aggregate_rent_roll
from dealscope.core.numbers import round_half_up, safe_div
from dealscope.schemas.models import EngineSettings, UnderwritingInputs, UnderwritingResult

logger = logging.getLogger(__name__)

BREAK_EVEN_WARN_PCT = 90.0


@dataclass(frozen=True)
class ResolvedOperations:
    """Income/expense figures after choosing rent roll vs manual and ledger vs ratio."""

    gross_rent_annual: float
    vacancy_pct: float
    effective_gross_income: float
    operating_expenses: float
    noi: float
    unit_count: int
    square_feet: float
    expense_source: str


def resolve_operations(inputs: UnderwritingInputs) -> ResolvedOperations:
    """Steps 4-6 of the model (everything that does not depend on price or debt)."""
    if inputs.rent_roll:
        roll = aggregate_rent_roll(inputs.rent_roll)
        gross_rent_annual = roll.total_monthly_rent * 12.0
        unit_count = roll.total_units
        square_feet = roll.total_sqft or (inputs.square_feet or 0.0)
    else:
        gross_rent_annual = inputs.gross_rent_monthly * 12.0
        unit_count = inputs.unit_count or 0
        square_feet = inputs.square_feet or 0.0

    vacancy_fraction = inputs.vacancy_pct / 100.0
    egi = gross_rent_annual * (1.0 - vacancy_fraction)

    if inputs.expense_lines:
        opex = sum(line.annual for line in inputs.expense_lines.values())
        source = "ledger"
    elif inputs.operating_expenses is not None:
        opex = inputs.operating_expenses
        source = "actual"
    else:
        opex = egi * inputs.opex_ratio_pct / 100.0
        source = "ratio"

    return ResolvedOperations(
        gross_rent_annual=gross_rent_annual,
        vacancy_pct=inputs.vacancy_pct,
        effective_gross_income=egi,
        operating_expenses=opex,
        noi=egi - opex,
        unit_count=unit_count,
        square_feet=square_feet,
        expense_source=source,
    )


def compute_noi(inputs: UnderwritingInputs) -> float:
    """NOI from the deal's income/expense data alone (independent of price and loan)."""
    return resolve_operations(inputs).noi


def _closing_cost_pct(inputs: UnderwritingInputs, settings: EngineSettings) -> float:
    if inputs.closing_cost_pct is not None:
        return inputs.closing_cost_pct
    if inputs.enrichment is not None and inputs.enrichment.closing_cost_pct is not None:
        return inputs.enrichment.closing_cost_pct
    return settings.default_closing_cost_pct


def run_underwriting(inputs: UnderwritingInputs, *, settings: EngineSettings | None = None) -> UnderwritingResult:
    """
    Underwrite one deal.

    Args:
        inputs: Deal terms. A missing purchase price is treated as 0 (callers seed it
            from the estimated value before calling, see orchestrator.run_engine).
        settings: Heuristic defaults (closing-cost %).

    Returns:
        UnderwritingResult with every ratio guarded against zero denominators.
    """
    cfg = settings or EngineSettings()
    price = inputs.purchase_price or 0.0
    ops = resolve_operations(inputs)

    # 1) Loan sizing
    down_payment = price * inputs.down_payment_pct / 100.0
    loan_amount = price - down_payment

    # 2) Debt service
    pmt = monthly_payment(loan_amount, inputs.interest_rate_pct, inputs.loan_term_years)
    ads = pmt * 12.0
    _, y1_interest, y1_principal = (
        annual_split(generate_schedule(loan_amount, inputs.interest_rate_pct, inputs.loan_term_years), 1)
        if loan_amount > 0 and inputs.loan_term_years > 0
        else (0.0, 0.0, 0.0)
    )

    # 3) Cash to close
    closing_costs = float(round_half_up(price * _closing_cost_pct(inputs, cfg) / 100.0))
    total_cash_required = down_payment + closing_costs

    # 6) NOI & cash flow (4-5 resolved above)
    noi = ops.noi
    cash_flow = noi - ads

    # 7) Ratios
    cap_rate = safe_div(noi, price) * 100.0
    cash_on_cash = safe_div(cash_flow, total_cash_required) * 100.0
    dscr = safe_div(noi, ads)
    grm = safe_div(price, ops.gross_rent_annual)

    # 8) Break-even
    break_even = (
        min(100.0, (ops.operating_expenses + ads) / ops.gross_rent_annual * 100.0) if ops.gross_rent_annual > 0 else 0.0
    )

    warnings: list[str] = []
    if cash_flow < 0:
        warnings.append("negative cash flow")
    if ads > 0 and dscr < 1.0:
        warnings.append("DSCR below 1.00")
    if break_even > BREAK_EVEN_WARN_PCT:
        warnings.append(f"break-even occupancy above {BREAK_EVEN_WARN_PCT:.0f}%")

    logger.debug(
        "underwriting price=%.0f noi=%.2f ads=%.2f opex_source=%s", price, noi, ads, ops.expense_source
    )

    return UnderwritingResult(
        purchase_price=price,
        down_payment=down_payment,
        loan_amount=loan_amount,
        interest_rate_pct=inputs.interest_rate_pct,
        loan_term_years=inputs.loan_term_years,
        monthly_payment=pmt,
        annual_debt_service=ads,
        gross_rent_annual=ops.gross_rent_annual,
        vacancy_pct=ops.vacancy_pct,
        effective_gross_income=ops.effective_gross_income,
        operating_expenses=ops.operating_expenses,
        noi=noi,
        cash_flow=cash_flow,
        cap_rate=cap_rate,
        cash_on_cash=cash_on_cash,
        dscr=dscr,
        grm=grm,
        closing_costs=closing_costs,
        total_cash_required=total_cash_required,
        break_even_occupancy=break_even,
        price_per_unit=safe_div(price, ops.unit_count),
        price_per_sqft=safe_div(price, ops.square_feet),
        year1_interest=y1_interest,
        year1_principal=y1_principal,
        warnings=warnings,
    )
