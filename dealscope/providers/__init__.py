# dealscope/providers/__init__.py
from .base import (
    ComparablesProvider,
    ConditionAdvisor,
    EnrichmentProvider,
    MarketTrendProvider,
    Payload,
    ProviderSet,
    PublicRecordsProvider,
    VerifiedSalesProvider,
)
from .normalize import (
    parse_comparables_response,
    parse_condition_report,
    parse_enrichment,
    parse_money,
    parse_money_range,
    parse_public_records,
    parse_trend_signal,
)

__all__ = [
    "Payload",
    "ProviderSet",
    "ComparablesProvider",
    "VerifiedSalesProvider",
    "PublicRecordsProvider",
    "MarketTrendProvider",
    "EnrichmentProvider",
    "ConditionAdvisor",
    "parse_comparables_response",
    "parse_public_records",
    "parse_trend_signal",
    "parse_enrichment",
    "parse_condition_report",
    "parse_money",
    "parse_money_range",
]
