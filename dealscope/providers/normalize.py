# dealscope/providers/normalize.py
"""
Provider payload normalization (JSON-shaped mapping → typed records).

Provider responses carry arbitrary optional fields, camelCase or snake_case
keys and money as numbers or strings ("$1,200", "5k", "5000-10000"). Everything
is coerced here so the valuation core only ever sees typed, defaulted values.

Rules
-----
- Unknown keys are ignored.
- A malformed optional field falls back to its default and logs a warning.
- A comp without an address or a positive sale price is dropped (warning).
- Percent fields stay in percent units (6.5 means 6.5%); a trailing "%" is allowed.
- `verified` comes from which provider answered, never from the payload itself.
- Only an authoritative public record yields real sale history
  (PublicRecord.verified_sales()).
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from datetime import date, datetime
from typing import Any

from dealscope.schemas.models import (
    ComparableSale,
    ComparablesResponse,
    ConditionReport,
    EnrichmentData,
    ImprovementItem,
    MarketSummary,
    MarketTrendSignal,
    PublicRecord,
    SaleRecord,
    ValueRange,
)

logger = logging.getLogger(__name__)

_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?$")
_RANGE_SPLIT_RE = re.compile(r"\s*(?:-|–|to)\s*(?=[$\d])", re.IGNORECASE)
_SUFFIX = {"k": 1_000.0, "m": 1_000_000.0}

_TEMPERATURES = {"hot", "warm", "neutral", "cool", "cold"}
_DIRECTIONS = {"appreciating", "stable", "declining"}
_VELOCITIES = {"rapid", "moderate", "slow"}
_PRIORITIES = {"high", "medium", "low"}
_AUTHORITATIVE_TAGS = {"authoritative", "rentcast", "public_record", "public-record", "county", "assessor"}
_DISTANCE_UNIT_RE = re.compile(r"\s*(?:mi|miles?)\.?\s*$", re.IGNORECASE)
_SQFT_PER_ACRE = 43_560.0


# ---------- Scalar coercion ----------


def _clean_money_text(text: str) -> float | None:
    t = text.strip().lower().replace("$", "").replace(",", "").replace("usd", "").replace("%", "").strip()
    if not t:
        return None
    mult = 1.0
    if t[-1] in _SUFFIX:
        mult = _SUFFIX[t[-1]]
        t = t[:-1].strip()
    if not _NUMBER_RE.match(t):
        return None
    return float(t) * mult


def parse_money(value: Any) -> float | None:
    """
    Coerce a number or money string to float.

    "$1,200" → 1200.0, "5k" → 5000.0, "5000-10000" → 7500.0 (midpoint), None/"" → None.
    Returns None for anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        rng = parse_money_range(value)
        if rng is not None and rng.low != rng.high:
            return (rng.low + rng.high) / 2.0
        return _clean_money_text(value)
    return None


def parse_money_range(value: Any) -> ValueRange | None:
    """
    Coerce a range in any common shape to a ValueRange (low ≤ high).

    Accepts {"low","high"} / {"min","max"} mappings, two-item sequences,
    "5000-10000" / "$5k to $10k" strings and single numbers (low == high).
    """
    if value is None or isinstance(value, bool):
        return None
    low: float | None
    high: float | None
    if isinstance(value, Mapping):
        low = parse_money(_pick(value, "low", "min"))
        high = parse_money(_pick(value, "high", "max"))
    elif isinstance(value, list | tuple):
        if len(value) != 2:
            return None
        low, high = parse_money(value[0]), parse_money(value[1])
    elif isinstance(value, str):
        parts = _RANGE_SPLIT_RE.split(value.strip(), maxsplit=1)
        if len(parts) == 2:
            low, high = _clean_money_text(parts[0]), _clean_money_text(parts[1])
        else:
            low = high = _clean_money_text(value)
    else:
        low = high = parse_money(value)
    if low is None or high is None:
        return None
    return ValueRange(low=min(low, high), high=max(low, high))


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _money(raw: Mapping[str, Any], *keys: str, default: float | None = None) -> float | None:
    value = _pick(raw, *keys)
    if value is None:
        return default
    parsed = parse_money(value)
    if parsed is None:
        logger.warning("Ignoring malformed numeric field %s=%r", keys[0], value)
        return default
    return parsed


def _int(raw: Mapping[str, Any], *keys: str) -> int | None:
    value = _money(raw, *keys)
    return int(value) if value is not None else None


def _date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    logger.warning("Ignoring malformed date %r", value)
    return None


def _choice(value: Any, allowed: set[str], default: str, field: str) -> str:
    if value is None:
        return default
    v = str(value).strip().lower()
    if v in allowed:
        return v
    logger.warning("Unknown %s %r; using %r", field, value, default)
    return default


def _items(value: Any) -> Iterable[Mapping[str, Any]]:
    if not isinstance(value, list | tuple):
        return ()
    return (v for v in value if isinstance(v, Mapping))


def _section(raw: Mapping[str, Any], *keys: str) -> Mapping[str, Any]:
    """Nested object under the first present key; empty mapping otherwise."""
    value = _pick(raw, *keys)
    return value if isinstance(value, Mapping) else {}


def parse_distance(value: Any) -> float | None:
    """Miles as a number or string; "0.3 mi" and "1.2 miles" are accepted."""
    if isinstance(value, str):
        value = _DISTANCE_UNIT_RE.sub("", value.strip())
    return parse_money(value)


# ---------- Comparable sales ----------


def _distance(raw: Mapping[str, Any]) -> float:
    value = _pick(raw, "distance", "distanceMiles", "distance_miles")
    if value is None:
        return 0.0
    miles = parse_distance(value)
    if miles is None:
        logger.warning("Ignoring malformed numeric field distance=%r", value)
        return 0.0
    return max(0.0, miles)


def parse_comparable(raw: Mapping[str, Any], *, verified: bool = False) -> ComparableSale | None:
    """One comp record; None when it has no address or no positive sale price."""
    address = str(raw.get("address") or "").strip()
    price = _money(raw, "salePrice", "sale_price", "price")
    if not address or not price or price <= 0:
        logger.warning("Dropping comparable without address or sale price: %r", raw.get("id") or address or raw)
        return None

    sqft = _money(raw, "sqft", "squareFeet", "square_feet", default=0.0) or 0.0
    score = _int(raw, "recencyScore", "recency_score")
    adjustments = raw.get("adjustments")
    return ComparableSale(
        id=str(raw["id"]) if raw.get("id") is not None else None,
        address=address,
        distance_miles=_distance(raw),
        sale_price=price,
        sale_date=_date(_pick(raw, "saleDate", "sale_date", "date")),
        square_feet=max(0.0, sqft),
        price_per_sqft=max(0.0, _money(raw, "pricePerSqft", "price_per_sqft", default=0.0) or 0.0),
        verified=verified,
        recency_score=max(0, min(100, score)) if score is not None else None,
        recency_label=raw.get("recencyLabel") or raw.get("recency_label"),
        property_type=raw.get("propertyType") or raw.get("property_type"),
        year_built=_int(raw, "yearBuilt", "year_built"),
        bedrooms=_money(raw, "beds", "bedrooms"),
        bathrooms=_money(raw, "baths", "bathrooms"),
        units=_int(raw, "units"),
        cap_rate=_money(raw, "capRate", "cap_rate"),
        adjustments=(
            {k: v for k, v in ((k, parse_money(v)) for k, v in adjustments.items()) if v is not None}
            if isinstance(adjustments, Mapping)
            else {}
        ),
    )


def parse_market_summary(raw: Any) -> MarketSummary | None:
    if not isinstance(raw, Mapping) or not raw:
        return None
    confidence = _int(raw, "confidence")
    insights = raw.get("keyInsights") or raw.get("key_insights") or []
    return MarketSummary(
        avg_price_per_sqft=_money(raw, "avgPricePerSqft", "avg_price_per_sqft"),
        median_sale_price=_money(raw, "medianSalePrice", "median_sale_price"),
        suggested_value=_money(raw, "suggestedValue", "suggested_value"),
        value_range=parse_money_range(_pick(raw, "valueRange", "value_range")),
        confidence=max(0, min(100, confidence)) if confidence is not None else None,
        market_trend=raw.get("marketTrend") or raw.get("market_trend"),
        key_insights=[str(i) for i in insights] if isinstance(insights, list) else [],
        avg_cap_rate_pct=_money(raw, "avgCapRate", "avg_cap_rate_pct"),
    )


def parse_comparables_response(payload: Mapping[str, Any] | None, *, verified: bool = False) -> ComparablesResponse:
    """
    Normalize a comparable-sales (or verified-sales) provider response.

    `verified=True` marks every comp as coming from the authoritative provider.
    """
    if not payload:
        return ComparablesResponse()
    raw_comps = _pick(payload, "comps", "comparables", "sales") or []
    comps = [c for c in (parse_comparable(r, verified=verified) for r in _items(raw_comps)) if c is not None]
    summary = parse_market_summary(_pick(payload, "marketSummary", "market_summary", "summary"))
    return ComparablesResponse(comps=comps, summary=summary)


# ---------- Public records ----------


def parse_sale_record(raw: Mapping[str, Any]) -> SaleRecord | None:
    sale_date = _date(_pick(raw, "date", "saleDate", "sale_date"))
    price = _money(raw, "price", "salePrice", "sale_price")
    if sale_date is None or price is None or price <= 0:
        return None
    kind = _pick(raw, "type", "saleType", "sale_type")
    return SaleRecord(sale_date=sale_date, price=price, sale_type=str(kind) if kind is not None else None)


def _lot_acres(payload: Mapping[str, Any]) -> float | None:
    """Lot size in acres; a square-foot figure is converted when acres are absent."""
    acres = _money(payload, "lotSizeAcres", "lot_size_acres", "lotSize", "lot_size")
    if acres is not None:
        return acres
    sqft = _money(payload, "lotSizeSqft", "lot_size_sqft")
    return sqft / _SQFT_PER_ACRE if sqft else None


def parse_public_records(payload: Mapping[str, Any] | None) -> PublicRecord:
    """
    Public-record lookup for the subject.

    Only a record from an authoritative source ("rentcast", "county", ...) marks
    its sale history as real; "openai" and "fallback" records are estimates.
    """
    if not payload:
        return PublicRecord()
    history = [s for s in (parse_sale_record(r) for r in _items(_pick(payload, "saleHistory", "sale_history"))) if s]
    tag = str(payload.get("source") or "").strip().lower()
    details = _pick(payload, "details", "propertyDetails", "property_details")
    return PublicRecord(
        lot_size_acres=_lot_acres(payload),
        sale_history=history,
        details=dict(details) if isinstance(details, Mapping) else {},
        source="authoritative" if tag in _AUTHORITATIVE_TAGS else "estimated",
    )


# ---------- Market trend ----------


def parse_trend_signal(payload: Mapping[str, Any] | None) -> MarketTrendSignal | None:
    """
    None when the provider returned nothing, so no adjustment is applied.

    Accepts the signal bare or wrapped as {"marketTrends": {...}}.
    """
    if not payload:
        return None
    if "marketTrends" in payload or "market_trends" in payload:
        wrapped = _pick(payload, "marketTrends", "market_trends")
        if not isinstance(wrapped, Mapping) or not wrapped:
            return None
        payload = wrapped
    highlights = _pick(payload, "areaHighlights", "highlights")
    return MarketTrendSignal(
        temperature=_choice(
            _pick(payload, "marketTemperature", "temperature"), _TEMPERATURES, "neutral", "temperature"
        ),
        annual_appreciation_pct=_money(
            payload,
            "annualAppreciationRate",
            "annualAppreciationPct",
            "annualAppreciation",
            "annual_appreciation_pct",
            default=0.0,
        ),
        direction=_choice(_pick(payload, "trendDirection", "direction"), _DIRECTIONS, "stable", "direction"),
        velocity=_choice(_pick(payload, "trendVelocity", "velocity"), _VELOCITIES, "moderate", "velocity"),
        value_adjustment_pct=_money(
            payload,
            "valueAdjustmentPercent",
            "valueAdjustmentPct",
            "valueAdjustment",
            "value_adjustment_pct",
            default=0.0,
        ),
        highlights=[str(h) for h in highlights] if isinstance(highlights, list) else [],
    )


# ---------- Enrichment ----------


def _rates(raw: Any) -> dict[str, float]:
    rates: dict[str, float] = {}
    if not isinstance(raw, Mapping):
        return rates
    for product, rate in raw.items():
        parsed = parse_money(rate)
        if parsed is None:
            logger.warning("Ignoring malformed mortgage rate %s=%r", product, rate)
            continue
        rates[str(product)] = parsed
    return rates


def parse_enrichment(payload: Mapping[str, Any] | None) -> EnrichmentData | None:
    """
    Area and cost enrichment for underwriting defaults.

    Reads the sectioned shape (propertyTax, insurance, closingCosts,
    maintenanceReserves, areaStatistics, currentMortgageRates) and falls back to
    operatingExpenseBenchmarks, then to flat top-level keys.
    """
    if not payload:
        return None
    tax = _section(payload, "propertyTax", "property_tax")
    insurance = _section(payload, "insurance")
    closing = _section(payload, "closingCosts", "closing_costs")
    upkeep = _section(payload, "maintenanceReserves", "maintenance_reserves")
    bench = _section(payload, "operatingExpenseBenchmarks", "operating_expense_benchmarks")
    area = _section(payload, "areaStatistics", "areaStats", "area_stats") or payload

    def first(*pairs: tuple[Mapping[str, Any], tuple[str, ...]]) -> float | None:
        for source, keys in pairs:
            value = _money(source, *keys)
            if value is not None:
                return value
        return None

    return EnrichmentData(
        property_tax_rate_pct=first(
            (tax, ("effectiveTaxRate",)),
            (payload, ("propertyTaxRate", "propertyTaxRatePct", "property_tax_rate_pct")),
        ),
        property_tax_estimate=first(
            (tax, ("annualTaxEstimate",)),
            (bench, ("propertyTaxAnnual",)),
            (payload, ("propertyTaxEstimate", "property_tax_estimate")),
        ),
        insurance_estimate=first(
            (insurance, ("annualPremiumEstimate",)),
            (bench, ("insuranceAnnual",)),
            (payload, ("insuranceEstimate", "insurance_estimate")),
        ),
        closing_cost_pct=first(
            (closing, ("buyerClosingCostPercent",)),
            (payload, ("closingCostPct", "closing_cost_pct")),
        ),
        maintenance_annual=first(
            (upkeep, ("annualMaintenanceTotal",)),
            (bench, ("repairsMaintenanceAnnual",)),
            (payload, ("maintenanceAnnual", "maintenance", "maintenance_annual")),
        ),
        reserves_annual=first(
            (bench, ("reservesAnnual",)),
            (payload, ("reservesAnnual", "reserves", "reserves_annual")),
        ),
        area_median_price=_money(area, "medianHomePrice", "medianPrice", "area_median_price"),
        area_avg_cap_rate_pct=_money(area, "averageCapRate", "avgCapRate", "area_avg_cap_rate_pct"),
        area_vacancy_rate_pct=_money(area, "vacancyRate", "area_vacancy_rate_pct"),
        mortgage_rates=_rates(_pick(payload, "currentMortgageRates", "mortgageRates", "mortgage_rates")),
    )


# ---------- Condition advisor ----------


def parse_improvement(raw: Mapping[str, Any]) -> ImprovementItem:
    cost = parse_money_range(_pick(raw, "cost", "costRange", "cost_range", "estimatedCost"))
    if cost is None:
        low = _money(raw, "costLow", "cost_low", default=0.0) or 0.0
        high = _money(raw, "costHigh", "cost_high", default=low) or low
        cost = ValueRange(low=min(low, high), high=max(low, high))
    return ImprovementItem(
        area=str(raw.get("area") or "general"),
        issue=str(raw.get("issue") or ""),
        recommendation=str(raw.get("recommendation") or ""),
        cost_low=cost.low,
        cost_high=cost.high,
        value_add=_money(raw, "potentialValueAdd", "valueAdd", "value_add", default=0.0) or 0.0,
        roi_pct=_money(raw, "roiPercent", "roi", "roiPct", "roi_pct", default=0.0) or 0.0,
        priority=_choice(raw.get("priority"), _PRIORITIES, "medium", "priority"),
    )


def parse_condition_report(payload: Mapping[str, Any] | None) -> ConditionReport | None:
    if not payload:
        return None
    score = _int(payload, "overallScore", "conditionScore", "condition_score", "score")
    items = [parse_improvement(r) for r in _items(_pick(payload, "improvements", "items"))]
    return ConditionReport(
        condition_score=max(0, min(100, score)) if score is not None else 50,
        improvements=items,
    )


__all__ = [
    "parse_money",
    "parse_money_range",
    "parse_distance",
    "parse_comparable",
    "parse_market_summary",
    "parse_comparables_response",
    "parse_sale_record",
    "parse_public_records",
    "parse_trend_signal",
    "parse_enrichment",
    "parse_improvement",
    "parse_condition_report",
]
