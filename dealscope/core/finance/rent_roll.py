# dealscope/core/finance/rent_roll.py
"""
Rent roll aggregation.

Totals are always derived from the current unit list; nothing is cached, so an
edit is visible on the very next read.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, timedelta

from dealscope.schemas.models import RentRollTotals, RentRollUnit


def aggregate_rent_roll(units: Iterable[RentRollUnit]) -> RentRollTotals:
    """
    Summarize a set of units.

    - Monthly rent and loss-to-lease count occupied units only.
    - Market rent counts every unit.
    - An empty set yields all-zero totals (occupancy 0, no division).
    """
    rows = list(units)
    if not rows:
        return RentRollTotals()

    occupied = [u for u in rows if u.status == "occupied"]
    total = len(rows)

    return RentRollTotals(
        total_units=total,
        occupied_units=len(occupied),
        vacant_units=sum(1 for u in rows if u.status == "vacant"),
        notice_units=sum(1 for u in rows if u.status == "notice"),
        total_sqft=sum(u.square_feet for u in rows),
        total_monthly_rent=sum(u.monthly_rent for u in occupied),
        total_market_rent=sum(u.market_rent for u in rows),
        occupancy_rate=len(occupied) / total * 100.0,
        loss_to_lease=sum(u.market_rent - u.monthly_rent for u in occupied),
    )


def expiring_leases(units: Iterable[RentRollUnit], as_of: date, within_days: int = 90) -> list[RentRollUnit]:
    """Occupied units whose lease ends in [as_of, as_of + within_days], soonest first."""
    horizon = as_of + timedelta(days=within_days)
    hits = [u for u in units if u.status == "occupied" and u.lease_end is not None and as_of <= u.lease_end <= horizon]
    return sorted(hits, key=lambda u: (u.lease_end, u.unit_id))


class RentRoll:
    """
    Caller-owned, editable set of units keyed by unit_id.

    Units are frozen models; `update` replaces the stored record.
    """

    def __init__(self, units: Iterable[RentRollUnit] = ()) -> None:
        self._units: dict[str, RentRollUnit] = {}
        for u in units:
            self.add(u)

    def add(self, unit: RentRollUnit) -> None:
        if unit.unit_id in self._units:
            raise ValueError(f"duplicate unit_id: {unit.unit_id!r}")
        self._units[unit.unit_id] = unit

    def update(self, unit_id: str, /, **changes: object) -> RentRollUnit:
        if unit_id not in self._units:
            raise KeyError(unit_id)
        if "unit_id" in changes and changes["unit_id"] != unit_id:
            raise ValueError("unit_id cannot be changed; remove and re-add the unit instead")
        updated = RentRollUnit.model_validate({**self._units[unit_id].model_dump(), **changes})
        self._units[unit_id] = updated
        return updated

    def remove(self, unit_id: str) -> None:
        del self._units[unit_id]

    @property
    def units(self) -> list[RentRollUnit]:
        return list(self._units.values())

    @property
    def totals(self) -> RentRollTotals:
        return aggregate_rent_roll(self._units.values())

    def __len__(self) -> int:
        return len(self._units)
