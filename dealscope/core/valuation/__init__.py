# dealscope/core/valuation/__init__.py

from .blender import SOURCE_RULES, appraise, blend_valuation, market_factors, select_value
from .comps import ensure_comps, mean_price_per_sqft, merge_comparables, score_recency, synthesize_fallback_comps
from .trend import adjustment_amount, apply_trend

__all__ = [
    "blend_valuation",
    "appraise",
    "select_value",
    "market_factors",
    "SOURCE_RULES",
    "merge_comparables",
    "synthesize_fallback_comps",
    "ensure_comps",
    "score_recency",
    "mean_price_per_sqft",
    "apply_trend",
    "adjustment_amount",
]
