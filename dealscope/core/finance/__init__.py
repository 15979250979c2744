# dealscope/core/finance/__init__.py

from .amortization import (
    annual_debt_service,
    annual_split,
    generate_schedule,
    monthly_payment,
)
from .engine import compute_noi, resolve_operations, run_underwriting
from .expenses import ExpenseLedger
from .rent_roll import RentRoll, aggregate_rent_roll, expiring_leases
from .scenarios import analyze_scenarios

__all__ = [
    "run_underwriting",
    "resolve_operations",
    "compute_noi",
    "analyze_scenarios",
    "monthly_payment",
    "annual_debt_service",
    "generate_schedule",
    "annual_split",
    "aggregate_rent_roll",
    "expiring_leases",
    "RentRoll",
    "ExpenseLedger",
]
