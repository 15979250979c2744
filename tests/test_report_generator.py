# tests/test_report_generator.py
from dealscope.orchestrator import run_engine
from dealscope.providers import parse_condition_report
from dealscope.reports.generator import generate_report, write_report
from dealscope.schemas.models import OperatingExpenseLine
from tests.utils import make_analysis, make_deal, make_subject, make_trend, make_unit


def _outcome(**deal_overrides):
    deal = make_deal(
        rent_roll=[make_unit("1", 2_400.0), make_unit("2", 2_300.0, status="vacant")],
        expense_lines={
            "tax": OperatingExpenseLine(category="Tax", annual=6_000.0, monthly=500.0),
            "ins": OperatingExpenseLine(category="Insurance", annual=2_400.0, monthly=200.0),
        },
        **deal_overrides,
    )
    outcome = run_engine(make_analysis(deal=deal, trend=make_trend(2.0)))
    condition = parse_condition_report(
        {
            "conditionScore": 68,
            "improvements": [{"area": "Roof", "recommendation": "Replace shingles", "cost": "8000-12000", "priority": "high"}],
        }
    )
    return outcome.model_copy(update={"condition": condition})


def test_generate_report_contains_key_sections():
    md = generate_report(_outcome(), make_subject(address="123 Main St"))

    assert md.startswith("# Valuation & Underwriting – 123 Main St")
    for section in (
        "## Valuation",
        "## Approach Breakdown",
        "## Underwriting",
        "## Scenario Analysis",
        "## Rent Roll",
        "## Operating Expenses",
        "## Condition & Improvements",
    ):
        assert section in md

    assert "- **Estimated Value:** $408,000" in md
    assert "- **Market Trend Adjustment:** +2.00%" in md
    assert "| Conservative | Base | Optimistic |" in md
    assert "[high] Roof: Replace shingles ($8,000–$12,000" in md
    assert "- Insurance: $2,400.00" in md


def test_scenarios_omitted_when_disabled():
    md = generate_report(_outcome(), include_scenarios=False)
    assert "## Scenario Analysis" not in md
    assert "## Underwriting" in md


def test_valuation_only_outcome_skips_deal_sections():
    md = generate_report(run_engine(make_analysis()), title_override="Quick Value")

    assert md.startswith("# Quick Value")
    assert "## Valuation" in md
    assert "none (no trend data)" in md
    for section in ("## Underwriting", "## Scenario Analysis", "## Rent Roll", "## Condition & Improvements"):
        assert section not in md


def test_warnings_section_lists_underwriting_warnings():
    md = generate_report(_outcome(purchase_price=5_000_000.0))
    assert "## Notes & Warnings" in md
    assert "- DSCR below 1.00" in md


def test_write_report_creates_md_file(tmp_path):
    out_file = tmp_path / "valuation_report.md"
    write_report(str(out_file), _outcome(), make_subject(address="456 Elm St"))

    assert out_file.exists()
    content = out_file.read_text(encoding="utf-8")
    assert "# Valuation & Underwriting – 456 Elm St" in content
    assert "## Underwriting" in content
    assert len(content) > 200


def test_market_factors_section_lists_evidence():
    md = generate_report(_outcome())
    assert "## Market Factors" in md
    assert "- Market temperature: NEUTRAL, stable at moderate pace" in md
    assert "- **Market:** NEUTRAL (stable, +0.00%/yr appreciation)" in md
