# dealscope/core/finance/scenarios.py
"""
Conservative / base / optimistic re-runs of the underwriting engine.

Each scenario starts from the base deal's *resolved* gross rent, vacancy and
operating expenses, perturbs them with one `ScenarioPerturbation`, and
underwrites an independent copy of the inputs. Loan terms are never touched,
so debt service is identical across scenarios.
"""

from __future__ import annotations

from dealscope.core.finance.engine import ResolvedOperations, resolve_operations, run_underwriting
from dealscope.schemas.models import (
    EngineSettings,
    ScenarioPerturbation,
    ScenarioResult,
    UnderwritingInputs,
)

CONSERVATIVE = ScenarioPerturbation(label="conservative", rent_multiplier=0.95, vacancy_delta=3.0, opex_multiplier=1.10)
BASE = ScenarioPerturbation(label="base")
OPTIMISTIC = ScenarioPerturbation(
    label="optimistic", rent_multiplier=1.05, vacancy_delta=-2.0, opex_multiplier=0.95, vacancy_floor=1.0
)

DEFAULT_PERTURBATIONS: tuple[ScenarioPerturbation, ...] = (CONSERVATIVE, BASE, OPTIMISTIC)


def perturb(inputs: UnderwritingInputs, resolved: ResolvedOperations, p: ScenarioPerturbation) -> UnderwritingInputs:
    """
    Return a new UnderwritingInputs with rent, vacancy and opex perturbed.

    The rent roll and ledger are replaced by their resolved totals so the
    multipliers apply to the same figures the base run used; unit count and
    square footage are carried explicitly for the per-unit/per-sqft metrics.
    """
    if p == BASE:
        return inputs

    vacancy = min(100.0, max(p.vacancy_floor, resolved.vacancy_pct + p.vacancy_delta))
    return inputs.model_copy(
        update={
            "rent_roll": [],
            "gross_rent_monthly": resolved.gross_rent_annual * p.rent_multiplier / 12.0,
            "vacancy_pct": vacancy,
            "expense_lines": {},
            "operating_expenses": resolved.operating_expenses * p.opex_multiplier,
            "unit_count": resolved.unit_count,
            "square_feet": resolved.square_feet,
        }
    )


def analyze_scenarios(
    inputs: UnderwritingInputs,
    *,
    settings: EngineSettings | None = None,
    perturbations: tuple[ScenarioPerturbation, ...] = DEFAULT_PERTURBATIONS,
) -> ScenarioResult:
    """Underwrite the deal once per perturbation (conservative, base, optimistic)."""
    resolved = resolve_operations(inputs)
    results = {p.label: run_underwriting(perturb(inputs, resolved, p), settings=settings) for p in perturbations}
    missing = {"conservative", "base", "optimistic"} - set(results)
    if missing:
        raise ValueError(f"perturbations missing labels: {sorted(missing)}")
    return ScenarioResult(
        conservative=results["conservative"],
        base=results["base"],
        optimistic=results["optimistic"],
        perturbations=perturbations,
    )
