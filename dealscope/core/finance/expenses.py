# dealscope/core/finance/expenses.py
"""
Operating-expense ledger.

Each line stores both an annual and a monthly figure. Edits are single-field:
setting one recomputes the other, so `annual == round(monthly * 12)` and
`monthly == round(annual / 12)` hold after every edit. Totals are recomputed on
every read.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from dealscope.core.numbers import round_half_up
from dealscope.schemas.models import EnrichmentData, ExpenseTotals, OperatingExpenseLine


def line_from_annual(category: str, annual: float) -> OperatingExpenseLine:
    return OperatingExpenseLine(category=category, annual=annual, monthly=round_half_up(annual / 12.0))


def line_from_monthly(category: str, monthly: float) -> OperatingExpenseLine:
    return OperatingExpenseLine(category=category, annual=round_half_up(monthly * 12.0), monthly=monthly)


class ExpenseLedger:
    """Mapping of line id → OperatingExpenseLine with consistent annual/monthly pairs."""

    def __init__(self, lines: Mapping[str, OperatingExpenseLine] | None = None) -> None:
        self._lines: dict[str, OperatingExpenseLine] = {}
        for line_id, line in (lines or {}).items():
            # Re-derive monthly from annual so imported lines satisfy the invariant.
            self._lines[line_id] = line_from_annual(line.category, line.annual)

    # ---------- Editing ----------

    def add_line(
        self,
        line_id: str,
        category: str,
        *,
        annual: float | None = None,
        monthly: float | None = None,
    ) -> OperatingExpenseLine:
        """Add a line from exactly one of annual/monthly (neither means 0)."""
        if line_id in self._lines:
            raise ValueError(f"duplicate expense line: {line_id!r}")
        if annual is not None and monthly is not None:
            raise ValueError("provide annual or monthly, not both")
        if monthly is not None:
            line = line_from_monthly(category, monthly)
        else:
            line = line_from_annual(category, annual or 0.0)
        self._lines[line_id] = line
        return line

    def set_annual(self, line_id: str, annual: float) -> OperatingExpenseLine:
        line = line_from_annual(self._lines[line_id].category, annual)
        self._lines[line_id] = line
        return line

    def set_monthly(self, line_id: str, monthly: float) -> OperatingExpenseLine:
        line = line_from_monthly(self._lines[line_id].category, monthly)
        self._lines[line_id] = line
        return line

    def set_category(self, line_id: str, category: str) -> OperatingExpenseLine:
        line = self._lines[line_id].model_copy(update={"category": category})
        self._lines[line_id] = line
        return line

    def remove_line(self, line_id: str) -> None:
        del self._lines[line_id]

    # ---------- Reads ----------

    def __getitem__(self, line_id: str) -> OperatingExpenseLine:
        return self._lines[line_id]

    def __contains__(self, line_id: object) -> bool:
        return line_id in self._lines

    def __iter__(self) -> Iterator[str]:
        return iter(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def lines(self) -> dict[str, OperatingExpenseLine]:
        return dict(self._lines)

    @property
    def total_annual(self) -> float:
        return sum(line.annual for line in self._lines.values())

    @property
    def total_monthly(self) -> float:
        return sum(line.monthly for line in self._lines.values())

    def totals(self) -> ExpenseTotals:
        by_category: dict[str, float] = {}
        for line in self._lines.values():
            by_category[line.category] = by_category.get(line.category, 0.0) + line.annual
        return ExpenseTotals(
            line_count=len(self._lines),
            total_annual=self.total_annual,
            total_monthly=self.total_monthly,
            by_category=by_category,
        )

    # ---------- Seeding ----------

    @classmethod
    def from_enrichment(cls, enrichment: EnrichmentData, purchase_price: float | None = None) -> ExpenseLedger:
        """
        Seed tax / insurance / maintenance / reserves lines from enrichment figures.

        Property tax uses the dollar estimate, else rate × purchase price when both are known.
        Figures the provider did not return produce no line.
        """
        ledger = cls()
        tax = enrichment.property_tax_estimate
        if tax is None and enrichment.property_tax_rate_pct is not None and purchase_price:
            tax = purchase_price * enrichment.property_tax_rate_pct / 100.0
        seeds = (
            ("property_tax", "Property Tax", tax),
            ("insurance", "Insurance", enrichment.insurance_estimate),
            ("maintenance", "Maintenance", enrichment.maintenance_annual),
            ("reserves", "Reserves", enrichment.reserves_annual),
        )
        for line_id, category, amount in seeds:
            if amount is not None:
                ledger.add_line(line_id, category, annual=amount)
        return ledger
