# dealscope/providers/base.py
"""
External provider contracts.

The engine consumes, but does not implement, these providers. Each returns a
JSON-shaped mapping that `dealscope.providers.normalize` turns into typed
records before anything reaches the valuation core.

Public API
----------
class ComparablesProvider(Protocol):      async fetch_comparables(request) -> Payload
class VerifiedSalesProvider(Protocol):    async fetch_verified_sales(request) -> Payload
class PublicRecordsProvider(Protocol):    async fetch_public_records(request) -> Payload
class MarketTrendProvider(Protocol):      async fetch_trend(request, comps, current_value) -> Payload
class EnrichmentProvider(Protocol):       async fetch_enrichment(request, financials) -> Payload
class ConditionAdvisor(Protocol):         async assess(request) -> Payload

@dataclass ProviderSet  (every slot optional; a missing provider is a missing source)

Invariants & Guardrails
-----------------------
- Providers may raise or time out; callers treat that as "source absent".
- Quota accounting for verified sales is the caller's concern.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol, TypeAlias

from dealscope.schemas.models import AnalysisRequest, ComparableSale

Payload: TypeAlias = Mapping[str, Any]


class ComparablesProvider(Protocol):
    async def fetch_comparables(self, request: AnalysisRequest) -> Payload: ...


class VerifiedSalesProvider(Protocol):
    # One quota unit per call.
    async def fetch_verified_sales(self, request: AnalysisRequest) -> Payload: ...


class PublicRecordsProvider(Protocol):
    async def fetch_public_records(self, request: AnalysisRequest) -> Payload: ...


class MarketTrendProvider(Protocol):
    async def fetch_trend(
        self,
        request: AnalysisRequest,
        comps: Sequence[ComparableSale],
        current_value: float | None,
    ) -> Payload: ...


class EnrichmentProvider(Protocol):
    async def fetch_enrichment(self, request: AnalysisRequest, financials: Payload) -> Payload: ...


class ConditionAdvisor(Protocol):
    async def assess(self, request: AnalysisRequest) -> Payload: ...


@dataclass(frozen=True)
class ProviderSet:
    """Providers wired into one AnalysisCoordinator. Only `comparables` is expected in practice."""

    comparables: ComparablesProvider | None = None
    verified_sales: VerifiedSalesProvider | None = None
    public_records: PublicRecordsProvider | None = None
    market_trend: MarketTrendProvider | None = None
    enrichment: EnrichmentProvider | None = None
    condition: ConditionAdvisor | None = None
