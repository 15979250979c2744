# dealscope/core/valuation/comps.py
"""
Comparable-sales merging.

Public API
----------
merge_comparables(ai_comps, verified_comps=()) -> list[ComparableSale]
synthesize_fallback_comps(base_sqft, as_of) -> list[ComparableSale]
ensure_comps(ai_comps, base_sqft, as_of) -> list[ComparableSale]
score_recency(comp, as_of) -> ComparableSale
mean_price_per_sqft(comps) -> float

Invariants
----------
- Inputs are never mutated; merging returns a new list.
- Verified comps come first; an AI comp sharing a verified comp's address
  (case-insensitive) is dropped, so each such address appears once.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, timedelta

import numpy as np

from dealscope.core.errors import EmptyInputError
from dealscope.core.numbers import round_half_up
from dealscope.schemas.models import ComparableSale

logger = logging.getLogger(__name__)

FALLBACK_PRICE_PER_SQFT = 200.0
# Five fixed offsets inside ±2-8% so fallback output is reproducible.
FALLBACK_OFFSETS: tuple[float, ...] = (0.02, -0.035, 0.05, -0.065, 0.08)
FALLBACK_SPACING_DAYS = 30

# (max age in days, label)
_RECENCY_LABELS: tuple[tuple[int, str], ...] = (
    (90, "Very recent"),
    (180, "Recent"),
    (365, "Within 1 year"),
    (730, "1-2 years"),
)
_RECENCY_ZERO_DAYS = 730


def _address_key(address: str) -> str:
    return " ".join(address.split()).casefold()


def merge_comparables(
    ai_comps: Sequence[ComparableSale],
    verified_comps: Sequence[ComparableSale] = (),
) -> list[ComparableSale]:
    """
    Merge AI-estimated and verified comps into one ordered list.

    Raises:
        EmptyInputError: both inputs are empty (callers supply a fallback set via ensure_comps).
    """
    if not ai_comps and not verified_comps:
        raise EmptyInputError("no comparable sales: both AI and verified comp sets are empty")

    verified = [c if c.verified else c.model_copy(update={"verified": True}) for c in verified_comps]
    taken = {_address_key(c.address) for c in verified}
    extra = [c for c in ai_comps if _address_key(c.address) not in taken]

    dropped = len(ai_comps) - len(extra)
    if dropped:
        logger.debug("merge_comparables: dropped %d AI comps duplicated by verified records", dropped)
    return verified + extra


def synthesize_fallback_comps(
    base_sqft: float,
    as_of: date,
    *,
    price_per_sqft: float = FALLBACK_PRICE_PER_SQFT,
) -> list[ComparableSale]:
    """Five synthetic comps around base_sqft × $/sqft with staggered sale dates."""
    anchor = base_sqft * price_per_sqft
    comps: list[ComparableSale] = []
    for i, offset in enumerate(FALLBACK_OFFSETS, start=1):
        price = float(round_half_up(anchor * (1.0 + offset)))
        comps.append(
            ComparableSale(
                id=f"fallback-{i}",
                address=f"Estimated Comparable {i}",
                distance_miles=round(0.25 * i, 2),
                sale_price=price,
                sale_date=as_of - timedelta(days=FALLBACK_SPACING_DAYS * i),
                square_feet=base_sqft,
                price_per_sqft=float(round_half_up(price / base_sqft)) if base_sqft > 0 else 0.0,
                verified=False,
            )
        )
    return [score_recency(c, as_of) for c in comps]


def ensure_comps(
    ai_comps: Sequence[ComparableSale],
    base_sqft: float,
    as_of: date,
    *,
    price_per_sqft: float = FALLBACK_PRICE_PER_SQFT,
) -> list[ComparableSale]:
    """AI comps as given, or the synthetic fallback when the AI source produced none."""
    if ai_comps:
        return list(ai_comps)
    logger.info("AI comp source returned no comps; synthesizing %d fallback comps", len(FALLBACK_OFFSETS))
    return synthesize_fallback_comps(base_sqft, as_of, price_per_sqft=price_per_sqft)


def score_recency(comp: ComparableSale, as_of: date) -> ComparableSale:
    """
    Fill recency_score / recency_label from the sale date when the provider omitted them.

    Score falls linearly from 100 (sold on as_of) to 0 at two years.
    """
    if comp.recency_score is not None or comp.sale_date is None:
        return comp
    days = max(0, (as_of - comp.sale_date).days)
    score = max(0, min(100, round_half_up(100.0 * (1.0 - days / _RECENCY_ZERO_DAYS))))
    label = next((name for limit, name in _RECENCY_LABELS if days <= limit), "Older than 2 years")
    return comp.model_copy(update={"recency_score": score, "recency_label": comp.recency_label or label})


def mean_price_per_sqft(comps: Sequence[ComparableSale]) -> float:
    """Arithmetic mean $/sqft over comps with a usable figure; 0.0 when none."""
    values = np.array([c.effective_price_per_sqft() for c in comps], dtype=float)
    values = values[values > 0]
    if values.size == 0:
        return 0.0
    return float(np.mean(values))
