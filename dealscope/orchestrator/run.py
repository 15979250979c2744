# dealscope/orchestrator/run.py
"""
Analysis run orchestration.

Purpose
-------
Gather provider data for one property, feed it through the engine in order
(merge → blend → trend → underwrite → scenarios) and publish the outcome as the
single "current" result.

Design
------
- `run_engine` is synchronous and pure: AnalysisInput in, AnalysisOutcome out.
- `AnalysisCoordinator` owns the async side. Every run gets a fresh
  CancellationToken; starting a run cancels the previous one.
- Provider failures and timeouts become missing sources, never exceptions.
- A run's results are committed only while its token is live; stale results
  are dropped and `analyze` returns None.

Public API
----------
class CancellationToken
run_engine(analysis, *, settings=None, token=None) -> AnalysisOutcome
class AnalysisCoordinator(providers, *, settings=None, timeout_s=30.0)
    start_run() -> CancellationToken
    async analyze(request, deal=None, *, as_of=None) -> AnalysisOutcome | None
    current -> AnalysisOutcome | None
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from datetime import date
from typing import Any

from dealscope.core.errors import AnalysisCancelledError
from dealscope.core.finance import (
    ExpenseLedger,
    aggregate_rent_roll,
    analyze_scenarios,
    resolve_operations,
    run_underwriting,
)
from dealscope.core.valuation import appraise
from dealscope.providers.base import Payload, ProviderSet
from dealscope.providers.normalize import (
    parse_comparables_response,
    parse_condition_report,
    parse_enrichment,
    parse_public_records,
    parse_trend_signal,
)
from dealscope.schemas.models import (
    AnalysisInput,
    AnalysisOutcome,
    AnalysisRequest,
    EngineSettings,
    UnderwritingInputs,
)

logger = logging.getLogger(__name__)

_run_ids = itertools.count(1)


class CancellationToken:
    """One-shot cancellation flag shared by every stage of a single run."""

    def __init__(self) -> None:
        self.run_id = next(_run_ids)
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise AnalysisCancelledError(f"analysis run {self.run_id} was cancelled")

    def __repr__(self) -> str:
        return f"CancellationToken(run_id={self.run_id}, cancelled={self._cancelled})"


# =========================
# Synchronous engine pipeline
# =========================


def run_engine(
    analysis: AnalysisInput,
    *,
    settings: EngineSettings | None = None,
    token: CancellationToken | None = None,
) -> AnalysisOutcome:
    """
    Value the subject and, when deal terms are present, underwrite it.

    - A positive NOI from the deal's rent data feeds the income approach.
    - A deal without a purchase price is underwritten at the estimated value.
    - The area cap rate falls back to the deal's enrichment figure, then the AI summary's.

    Raises:
        InvalidPropertyDataError: subject square_feet <= 0.
        AnalysisCancelledError: `token` was cancelled between stages.
    """
    cfg = settings or EngineSettings()
    deal = analysis.deal

    noi: float | None = None
    if deal is not None:
        ops = resolve_operations(deal)
        noi = ops.noi if ops.gross_rent_annual > 0 and ops.noi > 0 else None
        enrichment = deal.enrichment
        if analysis.area_cap_rate_pct is None and enrichment is not None and enrichment.area_avg_cap_rate_pct:
            analysis = analysis.model_copy(update={"area_cap_rate_pct": enrichment.area_avg_cap_rate_pct})

    valuation = appraise(analysis, noi=noi, settings=cfg)
    if token is not None:
        token.raise_if_cancelled()

    if deal is None:
        return AnalysisOutcome(valuation=valuation)

    if deal.purchase_price is None:
        deal = deal.model_copy(update={"purchase_price": valuation.estimated_value})

    underwriting = run_underwriting(deal, settings=cfg)
    scenarios = analyze_scenarios(deal, settings=cfg)
    if token is not None:
        token.raise_if_cancelled()

    return AnalysisOutcome(
        valuation=valuation,
        underwriting=underwriting,
        scenarios=scenarios,
        rent_roll=aggregate_rent_roll(deal.rent_roll) if deal.rent_roll else None,
        expenses=ExpenseLedger(deal.expense_lines).totals() if deal.expense_lines else None,
    )


# =========================
# Async coordinator
# =========================


class AnalysisCoordinator:
    """
    Runs analyses against a ProviderSet; last-started-and-not-cancelled wins.

    Phase 1 fetches comps, verified sales, public records, enrichment and the
    condition report concurrently. Phase 2 fetches the trend signal, which
    needs the comps and the AI value from phase 1.
    """

    def __init__(
        self,
        providers: ProviderSet,
        *,
        settings: EngineSettings | None = None,
        timeout_s: float = 30.0,
    ) -> None:
        self.providers = providers
        self.settings = settings or EngineSettings()
        self.timeout_s = timeout_s
        self._token: CancellationToken | None = None
        self._current: AnalysisOutcome | None = None

    @property
    def current(self) -> AnalysisOutcome | None:
        return self._current

    def start_run(self) -> CancellationToken:
        """Cancel any in-flight run and issue the token for a new one."""
        if self._token is not None:
            self._token.cancel()
        self._token = CancellationToken()
        logger.debug("started analysis run %d", self._token.run_id)
        return self._token

    async def _fetch(self, call: Callable[[], Awaitable[Payload]] | None) -> Payload | None:
        if call is None:
            return None
        return await asyncio.wait_for(call(), timeout=self.timeout_s)

    def _absent_on_error(self, name: str, result: Any) -> Any:
        if isinstance(result, BaseException):
            logger.warning("%s provider failed (%s: %s); treating source as absent", name, type(result).__name__, result)
            return None
        return result

    async def gather_inputs(
        self,
        request: AnalysisRequest,
        deal: UnderwritingInputs | None = None,
        *,
        as_of: date | None = None,
        token: CancellationToken | None = None,
    ) -> tuple[AnalysisInput, Payload | None]:
        """
        Fetch and normalize every provider's payload into one AnalysisInput.

        The trend request is skipped once `token` is cancelled.
        """
        p = self.providers
        financials: Payload = deal.model_dump(mode="json", exclude={"rent_roll", "expense_lines"}) if deal else {}

        calls: dict[str, Callable[[], Awaitable[Payload]] | None] = {
            "comparables": (lambda: p.comparables.fetch_comparables(request)) if p.comparables else None,
            "verified_sales": (
                (lambda: p.verified_sales.fetch_verified_sales(request))
                if p.verified_sales and request.include_verified
                else None
            ),
            "public_records": (lambda: p.public_records.fetch_public_records(request)) if p.public_records else None,
            "enrichment": (lambda: p.enrichment.fetch_enrichment(request, financials)) if p.enrichment else None,
            "condition": (lambda: p.condition.assess(request)) if p.condition else None,
        }
        results = await asyncio.gather(
            *(self._fetch(call) for call in calls.values()),
            return_exceptions=True,
        )
        raw = {name: self._absent_on_error(name, r) for name, r in zip(calls, results)}

        comps = parse_comparables_response(raw["comparables"])
        verified = parse_comparables_response(raw["verified_sales"], verified=True)
        record = parse_public_records(raw["public_records"])
        enrichment = parse_enrichment(raw["enrichment"])

        trend = None
        if token is not None and token.cancelled:
            logger.info("run %d cancelled before the trend request; skipping it", token.run_id)
        elif p.market_trend is not None:
            current_value = comps.summary.suggested_value if comps.summary else None
            merged = verified.comps + comps.comps
            trend_raw = await asyncio.gather(
                self._fetch(lambda: p.market_trend.fetch_trend(request, merged, current_value)),
                return_exceptions=True,
            )
            trend = parse_trend_signal(self._absent_on_error("market_trend", trend_raw[0]))

        subject = request.subject
        if subject.city is None and request.city:
            subject = subject.model_copy(update={"city": request.city})
        if subject.lot_size_acres is None and record.lot_size_acres is not None:
            subject = subject.model_copy(update={"lot_size_acres": record.lot_size_acres})
        if deal is not None and deal.enrichment is None and enrichment is not None:
            deal = deal.model_copy(update={"enrichment": enrichment})

        analysis = AnalysisInput(
            subject=subject,
            ai_comps=comps.comps,
            verified_comps=verified.comps,
            market_summary=comps.summary,
            sale_history=record.verified_sales(),
            trend=trend,
            deal=deal,
            area_cap_rate_pct=enrichment.area_avg_cap_rate_pct if enrichment and enrichment.area_avg_cap_rate_pct else None,
            as_of=as_of,
        )
        return analysis, raw["condition"]

    async def analyze(
        self,
        request: AnalysisRequest,
        deal: UnderwritingInputs | None = None,
        *,
        as_of: date | None = None,
    ) -> AnalysisOutcome | None:
        """
        Run one analysis and publish it as `current`.

        Returns None (and leaves `current` untouched) when a newer run started
        before this one finished.
        """
        token = self.start_run()
        analysis, condition_raw = await self.gather_inputs(request, deal, as_of=as_of, token=token)
        if token.cancelled:
            logger.info("discarding provider results of cancelled run %d", token.run_id)
            return None

        try:
            outcome = run_engine(analysis, settings=self.settings, token=token)
        except AnalysisCancelledError:
            logger.info("analysis run %d cancelled during engine run", token.run_id)
            return None

        condition = parse_condition_report(condition_raw)
        if condition is not None:
            outcome = outcome.model_copy(update={"condition": condition})

        if token.cancelled:
            logger.info("discarding results of cancelled run %d", token.run_id)
            return None
        self._current = outcome
        return outcome
