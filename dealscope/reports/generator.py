# dealscope/reports/generator.py
from __future__ import annotations

from dealscope.schemas.models import (
    AnalysisOutcome,
    ApproachBreakdown,
    ConditionReport,
    ExpenseTotals,
    PropertySnapshot,
    RentRollTotals,
    ScenarioResult,
    UnderwritingResult,
    ValuationResult,
)


def _fmt_currency(x: float) -> str:
    """
    Format a float as USD-style currency with thousands separators.

    Example:
        123456.789 -> $123,456.79
        -2000 -> -$2,000.00
    """
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.2f}"


def _fmt_whole(x: float) -> str:
    sign = "-" if x < 0 else ""
    return f"{sign}${abs(x):,.0f}"


def _fmt_pct(x: float) -> str:
    """
    Format a percent value with two decimals.

    Example:
        6.5 -> 6.50%
    """
    return f"{x:.2f}%"


def _section(title: str) -> str:
    """
    Render a level-2 heading for Markdown sections.
    """
    return f"\n## {title}\n"


# -----------------------
# Header & valuation
# -----------------------


def _render_header(subject: PropertySnapshot | None, title: str | None) -> str:
    addr = subject.address if subject and subject.address else "Subject Property"
    body = [f"# {title or f'Valuation & Underwriting – {addr}'}", ""]
    if subject is not None:
        facts = [f"**Type:** {subject.property_type}", f"**Area:** {subject.square_feet:,.0f} sqft"]
        if subject.year_built:
            facts.append(f"**Built:** {subject.year_built}")
        if subject.unit_count > 1:
            facts.append(f"**Units:** {subject.unit_count}")
        body.append(" | ".join(facts))
    return "\n".join(body) + "\n"


def _render_valuation(v: ValuationResult) -> str:
    lines = [
        _section("Valuation"),
        f"- **Estimated Value:** {_fmt_whole(v.estimated_value)}",
        f"- **Value Range:** {_fmt_whole(v.value_range.low)} – {_fmt_whole(v.value_range.high)}",
        f"- **Confidence:** {v.confidence}/100",
        f"- **Method:** {v.method} (anchor $/sqft from {v.anchor_source}, {v.comps_used} comps)",
    ]
    if v.trend_adjustment is not None:
        t = v.trend_adjustment
        lines.append(
            f"- **Market Trend Adjustment:** {t.adjustment_pct:+.2f}% "
            f"({_fmt_whole(t.pre_adjustment_value)} → {_fmt_whole(t.pre_adjustment_value + t.adjustment_amount)})"
        )
        lines.append(
            f"- **Market:** {t.temperature.upper()} ({t.direction}, {t.annual_appreciation_pct:+.2f}%/yr appreciation)"
        )
    else:
        lines.append("- **Market Trend Adjustment:** none (no trend data)")
    return "\n".join(lines) + "\n"


def _render_market_factors(factors: list[str]) -> str:
    if not factors:
        return ""
    return "\n".join([_section("Market Factors"), *(f"- {f}" for f in factors)]) + "\n"


def _render_approaches(a: ApproachBreakdown) -> str:
    """
    Income / sales / cost approach values side by side.
    """
    header = [
        _section("Approach Breakdown"),
        "| Approach | Value | Basis |",
        "| --- | ---: | --- |",
    ]
    rows = [
        f"| Income | {_fmt_whole(a.income.value)} | NOI {_fmt_whole(a.income.noi)} @ {_fmt_pct(a.income.cap_rate)} cap |",
        f"| Sales | {_fmt_whole(a.sales.value)} | {_fmt_currency(a.sales.price_per_sqft)}/sqft × {a.sales.comp_count} comps |",
        (
            f"| Cost | {_fmt_whole(a.cost.value)} | land {_fmt_whole(a.cost.land_value)} + replacement "
            f"{_fmt_whole(a.cost.replacement_cost)} − depreciation {_fmt_whole(a.cost.depreciation)} |"
        ),
    ]
    return "\n".join(header + rows) + "\n"


# -----------------------
# Underwriting
# -----------------------


def _render_underwriting(u: UnderwritingResult) -> str:
    lines = [
        _section("Underwriting"),
        f"- **Purchase Price:** {_fmt_currency(u.purchase_price)}",
        f"- **Down Payment / Loan:** {_fmt_currency(u.down_payment)} / {_fmt_currency(u.loan_amount)}",
        f"- **Monthly Payment:** {_fmt_currency(u.monthly_payment)} ({_fmt_pct(u.interest_rate_pct)}, {u.loan_term_years} yrs)",
        f"- **Annual Debt Service:** {_fmt_currency(u.annual_debt_service)}",
        f"- **Total Cash Required:** {_fmt_currency(u.total_cash_required)} (closing {_fmt_currency(u.closing_costs)})",
        f"- **Gross Rent / EGI:** {_fmt_currency(u.gross_rent_annual)} / {_fmt_currency(u.effective_gross_income)}",
        f"- **Operating Expenses:** {_fmt_currency(u.operating_expenses)}",
        f"- **NOI:** {_fmt_currency(u.noi)}",
        f"- **Cash Flow:** {_fmt_currency(u.cash_flow)}",
        f"- **Cap Rate:** {_fmt_pct(u.cap_rate)}",
        f"- **Cash-on-Cash:** {_fmt_pct(u.cash_on_cash)}",
        f"- **DSCR:** {u.dscr:.2f}",
        f"- **GRM:** {u.grm:.2f}",
        f"- **Break-even Occupancy:** {_fmt_pct(u.break_even_occupancy)}",
    ]
    if u.loan_amount > 0:
        lines.append(
            f"- **Year 1 Interest / Principal:** {_fmt_currency(u.year1_interest)} / {_fmt_currency(u.year1_principal)}"
        )
    return "\n".join(lines) + "\n"


def _render_scenarios(s: ScenarioResult) -> str:
    """
    Render conservative / base / optimistic as columns.
    """
    cols = (s.conservative, s.base, s.optimistic)
    header = [
        _section("Scenario Analysis"),
        "| Metric | Conservative | Base | Optimistic |",
        "| --- | ---: | ---: | ---: |",
    ]
    rows = [
        "| NOI | " + " | ".join(_fmt_currency(c.noi) for c in cols) + " |",
        "| Cash Flow | " + " | ".join(_fmt_currency(c.cash_flow) for c in cols) + " |",
        "| Cap Rate | " + " | ".join(_fmt_pct(c.cap_rate) for c in cols) + " |",
        "| Cash-on-Cash | " + " | ".join(_fmt_pct(c.cash_on_cash) for c in cols) + " |",
        "| DSCR | " + " | ".join(f"{c.dscr:.2f}" for c in cols) + " |",
    ]
    return "\n".join(header + rows) + "\n"


def _render_rent_roll(r: RentRollTotals) -> str:
    lines = [
        _section("Rent Roll"),
        f"- **Units:** {r.total_units} ({r.occupied_units} occupied, {r.vacant_units} vacant, {r.notice_units} on notice)",
        f"- **Occupancy:** {_fmt_pct(r.occupancy_rate)}",
        f"- **In-place Rent (monthly):** {_fmt_currency(r.total_monthly_rent)}",
        f"- **Market Rent (monthly):** {_fmt_currency(r.total_market_rent)}",
        f"- **Loss to Lease (monthly):** {_fmt_currency(r.loss_to_lease)}",
    ]
    return "\n".join(lines) + "\n"


def _render_expenses(e: ExpenseTotals) -> str:
    lines = [_section("Operating Expenses")]
    for category, amount in sorted(e.by_category.items()):
        lines.append(f"- {category}: {_fmt_currency(amount)}")
    lines.append(f"- **Total (annual / monthly):** {_fmt_currency(e.total_annual)} / {_fmt_currency(e.total_monthly)}")
    return "\n".join(lines) + "\n"


def _render_condition(c: ConditionReport) -> str:
    lines = [_section("Condition & Improvements"), f"- **Condition Score:** {c.condition_score}/100"]
    for item in c.improvements:
        lines.append(
            f"- [{item.priority}] {item.area}: {item.recommendation or item.issue} "
            f"({_fmt_whole(item.cost_low)}–{_fmt_whole(item.cost_high)}, ROI {_fmt_pct(item.roi_pct)})"
        )
    if c.improvements:
        total = c.total_cost_range()
        lines.append(f"- **Total Cost Range:** {_fmt_whole(total.low)} – {_fmt_whole(total.high)}")
    return "\n".join(lines) + "\n"


def _render_warnings(warnings: list[str]) -> str:
    """
    Render engine notes and underwriting warnings, if any.
    """
    if not warnings:
        return ""
    lines = [_section("Notes & Warnings")]
    for w in warnings:
        lines.append(f"- {w}")
    return "\n".join(lines) + "\n"


# -----------------------
# Orchestration
# -----------------------


def generate_report(
    outcome: AnalysisOutcome,
    subject: PropertySnapshot | None = None,
    *,
    include_scenarios: bool = True,
    title_override: str | None = None,
) -> str:
    """
    Generate a Markdown report for one analysis outcome.

    Sections:
      - Header: subject summary
      - Valuation: estimate, range, confidence, method, trend adjustment
      - Approach Breakdown: income / sales / cost
      - Market Factors: evidence behind the estimate
      - Underwriting (if deal terms were given)
      - Scenario Analysis (if requested and available)
      - Rent Roll / Operating Expenses (if provided)
      - Condition & Improvements (if an advisor responded)
      - Notes & Warnings
    """
    warnings = list(outcome.valuation.notes)
    if outcome.underwriting is not None:
        warnings.extend(outcome.underwriting.warnings)

    parts = [
        _render_header(subject, title_override),
        _render_valuation(outcome.valuation),
        _render_approaches(outcome.valuation.approaches),
        _render_market_factors(outcome.valuation.market_factors),
        _render_underwriting(outcome.underwriting) if outcome.underwriting else "",
        _render_scenarios(outcome.scenarios) if include_scenarios and outcome.scenarios else "",
        _render_rent_roll(outcome.rent_roll) if outcome.rent_roll else "",
        _render_expenses(outcome.expenses) if outcome.expenses else "",
        _render_condition(outcome.condition) if outcome.condition else "",
        _render_warnings(warnings),
    ]
    return "\n".join(part for part in parts if part).strip() + "\n"


def write_report(
    path: str,
    outcome: AnalysisOutcome,
    subject: PropertySnapshot | None = None,
    *,
    include_scenarios: bool = True,
) -> None:
    """
    Convenience helper to write the generated report to disk.
    """
    md = generate_report(outcome, subject, include_scenarios=include_scenarios)
    with open(path, "w", encoding="utf-8") as f:
        f.write(md)
