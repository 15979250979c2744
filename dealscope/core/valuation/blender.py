# dealscope/core/valuation/blender.py
"""
Valuation blender.

Combines the merged comp set, the subject's public-record sale history and the
AI market summary into one estimated value, range and confidence, then shifts
the result by the market trend.

Pipeline
--------
1. Anchor $/sqft: verified comps → last subject sale → AI average → merged comps
   (first available wins; never averaged).
2. Pre-adjustment value: first matching rule in SOURCE_RULES.
3. Trend adjustment (trend.apply_trend).
4. Value range: AI range or ±default %, shifted by the trend amount, tightened when
   verified comps exist, re-centered when inverted or not containing the estimate.
5. Confidence: AI confidence (or default), +sale-history boost (capped), then
   +verified boost (capped); caps are applied after each step.
6. Approach breakdown (approaches.build_breakdown).
7. Market factors: narrative lines naming the evidence behind the estimate.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from dealscope.core.errors import EmptyInputError, InvalidPropertyDataError
from dealscope.core.numbers import round_half_up
from dealscope.core.valuation.approaches import build_breakdown
from dealscope.core.valuation.comps import ensure_comps, mean_price_per_sqft, merge_comparables, score_recency
from dealscope.core.valuation.trend import apply_trend
from dealscope.schemas.models import (
    AnalysisInput,
    ComparableSale,
    EngineSettings,
    MarketSummary,
    MarketTrendSignal,
    PropertySnapshot,
    SaleRecord,
    ValuationResult,
    ValueRange,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValueSources:
    """Which sources are present for one valuation, with their values."""

    base_sqft: float
    anchor_price_per_sqft: float
    verified_value: float | None
    last_sale_price: float | None
    ai_value: float | None

    @property
    def has_verified(self) -> bool:
        return self.verified_value is not None

    @property
    def has_sale_history(self) -> bool:
        return self.last_sale_price is not None

    @property
    def has_ai(self) -> bool:
        return self.ai_value is not None


SourceRule = tuple[str, Callable[[ValueSources], bool], Callable[[ValueSources], float]]

# Highest-fidelity combination first; the final rule always matches.
SOURCE_RULES: tuple[SourceRule, ...] = (
    (
        "verified+sale_history+ai",
        lambda s: s.has_verified and s.has_sale_history and s.has_ai,
        lambda s: 0.50 * s.verified_value + 0.30 * s.last_sale_price + 0.20 * s.ai_value,
    ),
    (
        "verified+ai",
        lambda s: s.has_verified and s.has_ai,
        lambda s: 0.65 * s.verified_value + 0.35 * s.ai_value,
    ),
    ("verified", lambda s: s.has_verified, lambda s: s.verified_value),
    (
        "sale_history+ai",
        lambda s: s.has_sale_history and s.has_ai,
        lambda s: 0.60 * s.last_sale_price + 0.40 * s.ai_value,
    ),
    ("sale_history", lambda s: s.has_sale_history, lambda s: s.last_sale_price),
    ("ai", lambda s: s.has_ai, lambda s: s.ai_value),
    ("anchor", lambda s: True, lambda s: s.base_sqft * s.anchor_price_per_sqft),
)


def select_value(sources: ValueSources, rules: Sequence[SourceRule] = SOURCE_RULES) -> tuple[str, float]:
    """Evaluate rules in priority order and return (rule_name, value) of the first match."""
    for name, applies, value_fn in rules:
        if applies(sources):
            return name, value_fn(sources)
    raise ValueError("no source rule matched")


def latest_sale(sale_history: Sequence[SaleRecord]) -> SaleRecord | None:
    priced = [s for s in sale_history if s.price > 0]
    return max(priced, key=lambda s: s.sale_date) if priced else None


def anchor_price_per_sqft(
    base_sqft: float,
    *,
    verified_ppsf: float,
    last_sale: SaleRecord | None,
    summary: MarketSummary | None,
    merged_ppsf: float,
) -> tuple[str, float]:
    """
    First available $/sqft source: verified → last sale → AI average → merged comps.

    Computed figures are rounded to whole dollars; the AI average is used as reported.
    """
    if verified_ppsf > 0:
        return "verified_comps", float(round_half_up(verified_ppsf))
    if last_sale is not None:
        return "sale_history", float(round_half_up(last_sale.price / base_sqft))
    if summary is not None and summary.avg_price_per_sqft:
        return "ai_summary", summary.avg_price_per_sqft
    return "merged_comps", float(round_half_up(merged_ppsf))


def _recenter(center: float, pct: float) -> tuple[float, float]:
    return center * (1.0 - pct / 100.0), center * (1.0 + pct / 100.0)


def value_range(
    *,
    pre_adjustment_value: float,
    estimated_value: float,
    adjustment: float,
    summary: MarketSummary | None,
    has_verified: bool,
    settings: EngineSettings,
) -> tuple[ValueRange, list[str]]:
    notes: list[str] = []
    if summary is not None and summary.value_range is not None:
        low, high = summary.value_range.low, summary.value_range.high
    else:
        low, high = _recenter(pre_adjustment_value, settings.default_range_pct)

    low += adjustment
    high += adjustment

    if has_verified:
        t = settings.range_tightening_pct / 100.0
        low, high = low * (1.0 + t), high * (1.0 - t)

    if low > high:
        low, high = _recenter((low + high) / 2.0, settings.recenter_pct)
        notes.append("value range inverted after tightening; re-centered on its midpoint")

    low, high = float(round_half_up(low)), float(round_half_up(high))
    if not (low <= estimated_value <= high):
        low, high = (float(round_half_up(x)) for x in _recenter(estimated_value, settings.recenter_pct))
        notes.append("value range re-centered on the estimated value")

    return ValueRange(low=low, high=high), notes


def blend_confidence(
    summary: MarketSummary | None, *, has_sale_history: bool, has_verified: bool, settings: EngineSettings
) -> int:
    conf = settings.default_confidence
    if summary is not None and summary.confidence is not None:
        conf = summary.confidence
    if has_sale_history:
        conf = min(conf + settings.sale_history_boost, settings.sale_history_cap)
    if has_verified:
        conf = min(conf + settings.verified_boost, settings.verified_cap)
    return max(0, min(100, conf))


def _signed(x: float) -> str:
    return f"+{x:g}" if x > 0 else f"{x:g}"


def market_factors(
    subject: PropertySnapshot,
    *,
    comp_count: int,
    verified_count: int,
    verified_ppsf: float,
    anchor: float,
    last_sale: SaleRecord | None,
    summary: MarketSummary | None,
    trend: MarketTrendSignal | None,
    confidence: int,
) -> list[str]:
    """
    Narrative lines for the report, strongest evidence first.

    Verified comps and the recorded sale lead, then trend context and area
    highlights, then the AI insights. Without AI insights a generic summary of
    the anchor, trend label, comp mix and confidence closes the list.
    """
    factors: list[str] = []
    if verified_count:
        ppsf = round_half_up(verified_ppsf) if verified_ppsf > 0 else round_half_up(anchor)
        factors.append(f"{verified_count} verified comparable sales from county records (avg ${ppsf:,}/sqft)")
    if last_sale is not None:
        ppsf = round_half_up(last_sale.price / subject.square_feet)
        factors.append(f"Last recorded sale: ${last_sale.price:,.0f} (${ppsf:,}/sqft) from public records")
    if trend is not None:
        factors.append(f"Market temperature: {trend.temperature.upper()}, {trend.direction} at {trend.velocity} pace")
        applied = (
            f" ({_signed(trend.value_adjustment_pct)}% applied to valuation)" if trend.value_adjustment_pct != 0 else ""
        )
        factors.append(f"Annual appreciation: {_signed(trend.annual_appreciation_pct)}%{applied}")
        factors.extend(trend.highlights)

    insights = summary.key_insights if summary is not None else []
    if insights:
        factors.extend(insights)
        return factors

    trend_label = summary.market_trend if summary is not None and summary.market_trend else "stable"
    mix = f" ({verified_count} verified + {comp_count - verified_count} AI)" if verified_count else ""
    factors.extend(
        [
            f"Average price per sqft in {subject.city or 'the area'}: ${anchor:,.0f}",
            f"Market trend: {trend_label}",
            f"{comp_count} comparable sales analyzed{mix}",
            f"Confidence level: {confidence}%",
        ]
    )
    return factors


def blend_valuation(
    subject: PropertySnapshot,
    *,
    comps: Sequence[ComparableSale],
    sale_history: Sequence[SaleRecord] = (),
    market_summary: MarketSummary | None = None,
    trend: MarketTrendSignal | None = None,
    noi: float | None = None,
    area_cap_rate_pct: float | None = None,
    settings: EngineSettings | None = None,
    as_of: date | None = None,
) -> ValuationResult:
    """
    Blend all available sources into one ValuationResult.

    Args:
        subject: Subject property; square_feet must be > 0.
        comps: Merged comp set (verified comps flagged `verified=True`).
        sale_history: Authoritative sale history of the subject itself.
        market_summary: AI market summary, if the AI source returned one.
        trend: Market trend signal; None means no adjustment at all.
        noi: Actual NOI from rent roll / expenses, when available.
        area_cap_rate_pct: Area cap rate; defaults to settings.default_area_cap_rate_pct.

    Raises:
        InvalidPropertyDataError: square_feet <= 0.
        EmptyInputError: comps is empty.
    """
    cfg = settings or EngineSettings()
    today = as_of or date.today()
    base_sqft = subject.square_feet
    if base_sqft <= 0:
        raise InvalidPropertyDataError(f"square_feet must be > 0 to value a property (got {base_sqft})")
    if not comps:
        raise EmptyInputError("blend_valuation requires at least one comparable sale")

    verified = [c for c in comps if c.verified]
    verified_ppsf = mean_price_per_sqft(verified)
    last_sale = latest_sale(sale_history)
    ai_value = market_summary.suggested_value if market_summary is not None and market_summary.suggested_value else None

    anchor_source, anchor = anchor_price_per_sqft(
        base_sqft,
        verified_ppsf=verified_ppsf,
        last_sale=last_sale,
        summary=market_summary,
        merged_ppsf=mean_price_per_sqft(comps),
    )
    notes: list[str] = []
    if anchor <= 0:
        anchor_source, anchor = "fallback", cfg.fallback_price_per_sqft
        notes.append(f"no usable $/sqft in any source; anchored at ${anchor:,.0f}/sqft")

    sources = ValueSources(
        base_sqft=base_sqft,
        anchor_price_per_sqft=anchor,
        verified_value=float(round_half_up(base_sqft * verified_ppsf)) if verified_ppsf > 0 else None,
        last_sale_price=last_sale.price if last_sale is not None else None,
        ai_value=ai_value,
    )
    method, raw_value = select_value(sources)
    pre_value = float(round_half_up(raw_value))
    logger.debug("blend_valuation: method=%s anchor=%s(%.2f) pre=%.0f", method, anchor_source, anchor, pre_value)

    estimated, trend_record = apply_trend(pre_value, trend)
    adjustment = trend_record.adjustment_amount if trend_record is not None else 0.0

    rng, range_notes = value_range(
        pre_adjustment_value=pre_value,
        estimated_value=estimated,
        adjustment=adjustment,
        summary=market_summary,
        has_verified=bool(verified),
        settings=cfg,
    )
    notes.extend(range_notes)

    confidence = blend_confidence(
        market_summary,
        has_sale_history=sources.has_sale_history,
        has_verified=bool(verified),
        settings=cfg,
    )

    approaches = build_breakdown(
        subject,
        estimated_value=estimated,
        anchor_price_per_sqft=anchor,
        comp_count=len(comps),
        noi=noi,
        area_cap_rate_pct=area_cap_rate_pct,
        as_of=today,
        settings=cfg,
    )

    return ValuationResult(
        estimated_value=estimated,
        value_range=rng,
        confidence=confidence,
        approaches=approaches,
        trend_adjustment=trend_record,
        pre_adjustment_value=pre_value,
        method=method,
        anchor_source=anchor_source,
        comps_used=len(comps),
        notes=notes,
        market_factors=market_factors(
            subject,
            comp_count=len(comps),
            verified_count=len(verified),
            verified_ppsf=verified_ppsf,
            anchor=anchor,
            last_sale=last_sale,
            summary=market_summary,
            trend=trend,
            confidence=confidence,
        ),
    )


def area_cap_rate(analysis: AnalysisInput) -> float | None:
    """Explicit area cap rate, else the AI summary's; None leaves the engine default."""
    if analysis.area_cap_rate_pct:
        return analysis.area_cap_rate_pct
    summary = analysis.market_summary
    if summary is not None and summary.avg_cap_rate_pct:
        return summary.avg_cap_rate_pct
    return None


def appraise(
    analysis: AnalysisInput,
    *,
    noi: float | None = None,
    settings: EngineSettings | None = None,
) -> ValuationResult:
    """
    Run merger → blender → trend adjuster for one analysis input.

    Fails fast on a zero-area subject before any fallback comps are synthesized.
    """
    cfg = settings or EngineSettings()
    today = analysis.as_of or date.today()
    subject = analysis.subject
    if subject.square_feet <= 0:
        raise InvalidPropertyDataError(f"square_feet must be > 0 to value a property (got {subject.square_feet})")

    ai_comps = ensure_comps(analysis.ai_comps, subject.square_feet, today, price_per_sqft=cfg.fallback_price_per_sqft)
    merged = merge_comparables(
        [score_recency(c, today) for c in ai_comps],
        [score_recency(c, today) for c in analysis.verified_comps],
    )
    return blend_valuation(
        subject,
        comps=merged,
        sale_history=analysis.sale_history,
        market_summary=analysis.market_summary,
        trend=analysis.trend,
        noi=noi,
        area_cap_rate_pct=area_cap_rate(analysis),
        settings=cfg,
        as_of=today,
    )
