# main.py
"""
Entry point for dealscope valuation & underwriting

Purpose
-------
Run the engine end-to-end and emit a Markdown report:
  1) Load analysis inputs (sample defaults or --config JSON).
  2) Merge comps, blend the valuation, apply the market trend.
  3) Underwrite the deal (if deal terms are present) and run scenarios.
  4) Generate a Markdown valuation & underwriting report.

Usage
-----
    python main.py
    python main.py --config data/sample/analysis.json --out out.md --log-level DEBUG
"""

from __future__ import annotations

import argparse
import logging
from datetime import date, timedelta

from dealscope.core.errors import ENGINE_ERRORS
from dealscope.inputs.inputs import AppInputs, InputsLoader
from dealscope.orchestrator.run import run_engine
from dealscope.reports.generator import write_report
from dealscope.schemas.models import (
    AnalysisInput,
    ComparableSale,
    EngineSettings,
    MarketSummary,
    MarketTrendSignal,
    OperatingExpenseLine,
    PropertySnapshot,
    RentRollUnit,
    SaleRecord,
    UnderwritingInputs,
    ValueRange,
)

logger = logging.getLogger("dealscope")


def build_sample_inputs(as_of: date | None = None) -> AnalysisInput:
    """Return a four-unit demo analysis (AI + verified comps, sale history, trend, rent roll)."""
    today = as_of or date.today()
    subject = PropertySnapshot(
        property_type="multifamily",
        square_feet=3_600.0,
        lot_size_acres=0.3,
        year_built=1978,
        unit_count=4,
        address="123 Main St, Springfield, IL",
        city="Springfield",
    )
    ai_comps = [
        ComparableSale(
            address="140 Main St",
            distance_miles=0.2,
            sale_price=612_000.0,
            sale_date=today - timedelta(days=75),
            square_feet=3_400.0,
            price_per_sqft=180.0,
        ),
        ComparableSale(
            address="88 Oak Ave",
            distance_miles=0.6,
            sale_price=705_000.0,
            sale_date=today - timedelta(days=210),
            square_feet=3_900.0,
        ),
        ComparableSale(
            address="17 Elm St",
            distance_miles=0.9,
            sale_price=560_000.0,
            sale_date=today - timedelta(days=320),
            square_feet=3_200.0,
            price_per_sqft=175.0,
        ),
    ]
    verified_comps = [
        ComparableSale(
            address="88 Oak Ave",
            distance_miles=0.6,
            sale_price=698_000.0,
            sale_date=today - timedelta(days=212),
            square_feet=3_900.0,
            verified=True,
        ),
    ]
    return AnalysisInput(
        subject=subject,
        ai_comps=ai_comps,
        verified_comps=verified_comps,
        market_summary=MarketSummary(
            avg_price_per_sqft=178.0,
            median_sale_price=640_000.0,
            suggested_value=645_000.0,
            value_range=ValueRange(low=600_000.0, high=690_000.0),
            confidence=60,
            market_trend="steady demand for small multifamily",
        ),
        sale_history=[SaleRecord(sale_date=today - timedelta(days=5 * 365), price=520_000.0, sale_type="warranty deed")],
        trend=MarketTrendSignal(
            temperature="warm",
            annual_appreciation_pct=3.5,
            direction="appreciating",
            velocity="moderate",
            value_adjustment_pct=1.5,
            highlights=["Downtown employer expansion announced"],
        ),
        deal=UnderwritingInputs(
            down_payment_pct=25.0,
            interest_rate_pct=6.75,
            loan_term_years=30,
            rent_roll=[
                RentRollUnit(unit_id="1A", unit_type="2BR", square_feet=900, monthly_rent=1_450, market_rent=1_550),
                RentRollUnit(unit_id="1B", unit_type="2BR", square_feet=900, monthly_rent=1_500, market_rent=1_550),
                RentRollUnit(unit_id="2A", unit_type="2BR", square_feet=900, monthly_rent=1_525, market_rent=1_550),
                RentRollUnit(unit_id="2B", unit_type="2BR", square_feet=900, market_rent=1_550, status="vacant"),
            ],
            vacancy_pct=5.0,
            expense_lines={
                "taxes": OperatingExpenseLine(category="Property Tax", annual=9_600.0, monthly=800.0),
                "insurance": OperatingExpenseLine(category="Insurance", annual=3_000.0, monthly=250.0),
                "repairs": OperatingExpenseLine(category="Repairs & Maintenance", annual=4_800.0, monthly=400.0),
                "utilities": OperatingExpenseLine(category="Utilities", annual=3_600.0, monthly=300.0),
            },
        ),
        as_of=today,
    )


def parse_args() -> argparse.Namespace:
    """Parse CLI arguments for configurable runs."""
    p = argparse.ArgumentParser(description="dealscope valuation & underwriting")
    p.add_argument("--config", type=str, default=None, help="Path to JSON config (AnalysisInput or AppInputs).")
    p.add_argument("--out", type=str, default=None, help="Output Markdown path (overrides config).")
    p.add_argument("--no-scenarios", action="store_true", help="Omit the scenario table from the report.")
    p.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    return p.parse_args()


def main() -> int:
    """Run the engine and write valuation_report.md (or chosen output)."""
    args = parse_args()
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    loader = InputsLoader()
    if args.config:
        cfg: AppInputs = loader.load(args.config)
    else:
        cfg = AppInputs(analysis=build_sample_inputs(), settings=EngineSettings())
    cfg = loader.with_overrides(cfg, out=args.out, scenarios=False if args.no_scenarios else None)

    try:
        outcome = run_engine(cfg.analysis, settings=cfg.settings)
    except ENGINE_ERRORS as e:
        logger.error("Analysis failed: %s", e)
        return 1

    write_report(cfg.run.out, outcome, cfg.analysis.subject, include_scenarios=cfg.run.scenarios)

    v = outcome.valuation
    print(f"Report written to {cfg.run.out}")
    print(f"Estimated value: ${v.estimated_value:,.0f} (${v.value_range.low:,.0f} – ${v.value_range.high:,.0f}), confidence {v.confidence}")
    if outcome.underwriting is not None:
        u = outcome.underwriting
        print(f"Cap rate {u.cap_rate:.2f}% | Cash-on-cash {u.cash_on_cash:.2f}% | DSCR {u.dscr:.2f}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
