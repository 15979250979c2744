# dealscope/schemas/models.py

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

PropertyType = Literal[
    "single-family",
    "multifamily",
    "commercial",
    "industrial",
    "retail",
    "office",
    "mixed-use",
    "land",
    "hospitality",
    "self-storage",
]

MarketTemperature = Literal["hot", "warm", "neutral", "cool", "cold"]
TrendDirection = Literal["appreciating", "stable", "declining"]
TrendVelocity = Literal["rapid", "moderate", "slow"]
UnitStatus = Literal["occupied", "vacant", "notice"]
ScenarioLabel = Literal["conservative", "base", "optimistic"]

# =========================
# Subject property & comps
# =========================


class PropertySnapshot(BaseModel):
    """
    Immutable description of the subject property for one analysis run.

    `square_feet` is unconstrained here; the valuation blender rejects a zero-area
    property with a typed error.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    property_type: PropertyType = Field("single-family", description="Asset class of the subject property.")
    square_feet: float = Field(..., description="Building area in square feet (base sqft for all $/sqft math).")
    lot_size_acres: float | None = Field(None, ge=0, description="Lot size in acres, when known.")
    year_built: int | None = Field(None, ge=1700, description="Year of construction, when known.")
    unit_count: int = Field(1, ge=0, description="Number of rentable units (1 for single-family).")
    bedrooms: float | None = Field(None, ge=0)
    bathrooms: float | None = Field(None, ge=0)
    address: str | None = Field(None, description="Human-readable address, used for reporting only.")
    city: str | None = Field(None, description="City name, used in narrative market factors only.")


class ComparableSale(BaseModel):
    """A sale of a *different* property used as a comparable."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    address: str = Field(..., description="Street address; compared case-insensitively when merging.")
    distance_miles: float = Field(0.0, ge=0, description="Distance from the subject property.")
    sale_price: float = Field(..., ge=0)
    sale_date: date | None = None
    square_feet: float = Field(0.0, ge=0)
    price_per_sqft: float = Field(0.0, ge=0, description="Reported $/sqft; 0 means not reported.")
    verified: bool = Field(False, description="True only for comps from an authoritative record provider.")
    recency_score: int | None = Field(None, ge=0, le=100, description="0-100, higher = more recent.")
    recency_label: str | None = None

    # Provider extras (optional, carried through untouched)
    id: str | None = None
    property_type: str | None = None
    year_built: int | None = None
    bedrooms: float | None = None
    bathrooms: float | None = None
    units: int | None = None
    cap_rate: float | None = None
    adjustments: dict[str, float] = Field(default_factory=dict)

    def effective_price_per_sqft(self) -> float:
        """Reported $/sqft, else sale_price / square_feet, else 0."""
        if self.price_per_sqft > 0:
            return self.price_per_sqft
        if self.square_feet > 0:
            return self.sale_price / self.square_feet
        return 0.0


class SaleRecord(BaseModel):
    """A historical sale of the subject property itself."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    sale_date: date
    price: float = Field(..., ge=0)
    sale_type: str | None = Field(None, description="Deed/transfer type as reported (e.g. 'warranty deed').")


class ValueRange(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    low: float
    high: float


class MarketSummary(BaseModel):
    """AI-estimated market summary returned alongside AI comps."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    avg_price_per_sqft: float | None = Field(None, ge=0)
    median_sale_price: float | None = Field(None, ge=0)
    suggested_value: float | None = Field(None, ge=0, description="The AI source's value for the subject.")
    value_range: ValueRange | None = None
    confidence: int | None = Field(None, ge=0, le=100)
    market_trend: str | None = None
    key_insights: list[str] = Field(default_factory=list)
    avg_cap_rate_pct: float | None = Field(None, ge=0, description="AI-reported area cap rate in percent, when given.")


class MarketTrendSignal(BaseModel):
    """Area market trend; only `value_adjustment_pct` moves valuations."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    temperature: MarketTemperature = "neutral"
    annual_appreciation_pct: float = Field(0.0, description="Annual appreciation in percent (3.5 = 3.5%/yr).")
    direction: TrendDirection = "stable"
    velocity: TrendVelocity = "moderate"
    value_adjustment_pct: float = Field(0.0, description="Percent applied to the pre-adjustment value.")
    highlights: list[str] = Field(default_factory=list, description="Area highlights reported with the trend.")

    def summary(self) -> str:
        return (
            f"[MarketTrend] {self.temperature} | {self.direction} ({self.velocity}) | "
            f"Appreciation: {self.annual_appreciation_pct:.2f}%/yr | Adjustment: {self.value_adjustment_pct:+.2f}%"
        )

    def __str__(self) -> str:
        return self.summary()


# =========================
# Valuation outputs
# =========================


class IncomeApproach(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    cap_rate: float = Field(..., description="Area cap rate in percent used to capitalize NOI.")
    noi: float


class SalesApproach(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    price_per_sqft: float
    comp_count: int


class CostApproach(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: float
    land_value: float
    replacement_cost: float
    depreciation: float


class ApproachBreakdown(BaseModel):
    model_config = ConfigDict(frozen=True)

    income: IncomeApproach
    sales: SalesApproach
    cost: CostApproach


class TrendAdjustment(BaseModel):
    model_config = ConfigDict(frozen=True)

    pre_adjustment_value: float
    adjustment_pct: float
    adjustment_amount: float
    temperature: MarketTemperature = "neutral"
    direction: TrendDirection = "stable"
    annual_appreciation_pct: float = 0.0


class ValuationResult(BaseModel):
    """Blended estimate for the subject property."""

    model_config = ConfigDict(frozen=True)

    estimated_value: float
    value_range: ValueRange
    confidence: int = Field(..., ge=0, le=100)
    approaches: ApproachBreakdown
    trend_adjustment: TrendAdjustment | None = None
    pre_adjustment_value: float
    method: str = Field(..., description="Name of the source-selection rule that produced the pre-adjustment value.")
    anchor_source: str = Field(..., description="Which source supplied the anchor $/sqft.")
    comps_used: int = 0
    notes: list[str] = Field(default_factory=list)
    market_factors: list[str] = Field(
        default_factory=list, description="Narrative lines describing what grounded the estimate."
    )

    @model_validator(mode="after")
    def _range_contains_estimate(self) -> ValuationResult:
        if not (self.value_range.low <= self.estimated_value <= self.value_range.high):
            raise ValueError(
                f"value_range [{self.value_range.low}, {self.value_range.high}] does not contain {self.estimated_value}"
            )
        return self


# =========================
# Rent roll & expenses
# =========================


class RentRollUnit(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    unit_id: str
    unit_type: str = ""
    square_feet: float = Field(0.0, ge=0)
    monthly_rent: float = Field(0.0, ge=0)
    market_rent: float = Field(0.0, ge=0)
    lease_start: date | None = None
    lease_end: date | None = None
    tenant_name: str | None = None
    status: UnitStatus = "occupied"


class RentRollTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_units: int = 0
    occupied_units: int = 0
    vacant_units: int = 0
    notice_units: int = 0
    total_sqft: float = 0.0
    total_monthly_rent: float = Field(0.0, description="Monthly rent of occupied units only.")
    total_market_rent: float = Field(0.0, description="Market rent across all units.")
    occupancy_rate: float = Field(0.0, description="Occupied / total units, in percent.")
    loss_to_lease: float = Field(0.0, description="Sum of (market - in-place) rent over occupied units.")


class OperatingExpenseLine(BaseModel):
    """One expense line; `annual` and `monthly` are kept consistent by the ledger."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    category: str
    annual: float = 0.0
    monthly: float = 0.0


class ExpenseTotals(BaseModel):
    model_config = ConfigDict(frozen=True)

    line_count: int = 0
    total_annual: float = 0.0
    total_monthly: float = 0.0
    by_category: dict[str, float] = Field(default_factory=dict)


class EnrichmentData(BaseModel):
    """Normalized enrichment-provider figures (all optional)."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    property_tax_rate_pct: float | None = None
    property_tax_estimate: float | None = None
    insurance_estimate: float | None = None
    closing_cost_pct: float | None = None
    maintenance_annual: float | None = None
    reserves_annual: float | None = None
    area_median_price: float | None = None
    area_avg_cap_rate_pct: float | None = None
    area_vacancy_rate_pct: float | None = None
    mortgage_rates: dict[str, float] = Field(default_factory=dict, description="Current rate (percent) by loan product.")


# =========================
# Underwriting
# =========================


class UnderwritingInputs(BaseModel):
    """
    Deal terms for one underwriting run.

    All rates are percents. `purchase_price=None` means "seed from the estimated value".
    Operating expenses resolve in order: expense lines → `operating_expenses` → ratio of EGI.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    purchase_price: float | None = Field(None, ge=0)
    down_payment_pct: float = Field(25.0, ge=0, le=100)
    interest_rate_pct: float = Field(7.0, ge=0)
    loan_term_years: int = Field(30, ge=0)

    gross_rent_monthly: float = Field(0.0, ge=0, description="Manual gross rent; ignored when the rent roll is non-empty.")
    rent_roll: list[RentRollUnit] = Field(default_factory=list)
    vacancy_pct: float = Field(5.0, ge=0, le=100)

    opex_ratio_pct: float = Field(35.0, ge=0)
    expense_lines: dict[str, OperatingExpenseLine] = Field(default_factory=dict)
    operating_expenses: float | None = Field(None, ge=0, description="Actual annual expense total, when known.")

    closing_cost_pct: float | None = Field(None, ge=0)
    enrichment: EnrichmentData | None = None

    unit_count: int | None = Field(None, ge=0)
    square_feet: float | None = Field(None, ge=0)


class UnderwritingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    purchase_price: float
    down_payment: float
    loan_amount: float
    interest_rate_pct: float
    loan_term_years: int
    monthly_payment: float
    annual_debt_service: float

    gross_rent_annual: float
    vacancy_pct: float
    effective_gross_income: float
    operating_expenses: float
    noi: float
    cash_flow: float

    cap_rate: float = Field(..., description="NOI / price, in percent.")
    cash_on_cash: float = Field(..., description="Cash flow / total cash required, in percent.")
    dscr: float
    grm: float

    closing_costs: float
    total_cash_required: float
    break_even_occupancy: float = Field(..., description="Percent occupancy covering opex + debt service (max 100).")
    price_per_unit: float = 0.0
    price_per_sqft: float = 0.0

    year1_interest: float = 0.0
    year1_principal: float = 0.0
    warnings: list[str] = Field(default_factory=list)


class ScenarioPerturbation(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: ScenarioLabel
    rent_multiplier: float = 1.0
    vacancy_delta: float = Field(0.0, description="Absolute change in vacancy percentage points.")
    opex_multiplier: float = 1.0
    vacancy_floor: float = Field(0.0, ge=0, description="Lowest vacancy percent allowed after the delta.")


class ScenarioResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    conservative: UnderwritingResult
    base: UnderwritingResult
    optimistic: UnderwritingResult
    perturbations: tuple[ScenarioPerturbation, ...] = ()

    def by_label(self, label: ScenarioLabel) -> UnderwritingResult:
        return {"conservative": self.conservative, "base": self.base, "optimistic": self.optimistic}[label]


# =========================
# Engine settings
# =========================


class EngineSettings(BaseModel):
    """
    Heuristic constants used by the valuation blender and underwriting engine.

    Defaults reproduce the documented behavior; every value can be overridden
    through the inputs loader.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    default_area_cap_rate_pct: float = Field(6.0, gt=0)
    build_cost_per_sqft: dict[str, float] = Field(
        default_factory=lambda: {"residential": 150.0, "commercial": 175.0, "industrial": 100.0}
    )
    depreciation_per_year: float = Field(0.012, ge=0)
    max_depreciation: float = Field(0.40, ge=0, le=1)

    land_share: float = Field(
        0.20, ge=0, le=1, description="Land value as a share of estimated value when lot size is unknown."
    )
    lot_land_share: float = Field(
        0.30, ge=0, le=1, description="Land share applied to value × lot/(lot + 1) when lot size is known."
    )
    default_building_age_years: int = Field(20, ge=0, description="Building age assumed when year built is unknown.")

    default_range_pct: float = Field(8.0, ge=0)
    range_tightening_pct: float = Field(5.0, ge=0, lt=100)
    recenter_pct: float = Field(5.0, ge=0)

    default_confidence: int = Field(45, ge=0, le=100)
    sale_history_boost: int = 15
    sale_history_cap: int = 80
    verified_boost: int = 20
    verified_cap: int = 92

    fallback_price_per_sqft: float = Field(200.0, gt=0)
    default_closing_cost_pct: float = Field(3.5, ge=0)

    @field_validator("build_cost_per_sqft")
    @classmethod
    def _build_cost_keys(cls, v: dict[str, float]) -> dict[str, float]:
        missing = {"residential", "commercial", "industrial"} - set(v)
        if missing:
            raise ValueError(f"build_cost_per_sqft missing keys: {sorted(missing)}")
        return v


# =========================
# Provider-side records
# =========================


class PublicRecord(BaseModel):
    """Normalized public-records payload for the subject property."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    lot_size_acres: float | None = None
    sale_history: list[SaleRecord] = Field(default_factory=list)
    details: dict[str, object] = Field(default_factory=dict)
    source: Literal["authoritative", "estimated"] = "estimated"

    def verified_sales(self) -> list[SaleRecord]:
        """Sale history that counts as real: authoritative source only."""
        return list(self.sale_history) if self.source == "authoritative" else []


class ComparablesResponse(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    comps: list[ComparableSale] = Field(default_factory=list)
    summary: MarketSummary | None = None


class ImprovementItem(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    area: str
    issue: str = ""
    recommendation: str = ""
    cost_low: float = 0.0
    cost_high: float = 0.0
    value_add: float = 0.0
    roi_pct: float = 0.0
    priority: Literal["high", "medium", "low"] = "medium"


class ConditionReport(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    condition_score: int = Field(50, ge=0, le=100)
    improvements: list[ImprovementItem] = Field(default_factory=list)

    def total_cost_range(self) -> ValueRange:
        return ValueRange(
            low=sum(i.cost_low for i in self.improvements),
            high=sum(i.cost_high for i in self.improvements),
        )


# =========================
# Analysis run context
# =========================


class AnalysisRequest(BaseModel):
    """What the coordinator sends to external providers for one run."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    address: str
    city: str = ""
    state: str = ""
    zip_code: str = ""
    subject: PropertySnapshot
    include_verified: bool = Field(False, description="Request verified comps (consumes provider quota).")

    @property
    def location(self) -> str:
        return ", ".join(p for p in (self.city, self.state) if p) or self.address


class AnalysisInput(BaseModel):
    """
    Immutable bundle threaded through one analysis run.

    Sources that were not fetched (or failed) are simply empty/None.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    subject: PropertySnapshot
    ai_comps: list[ComparableSale] = Field(default_factory=list)
    verified_comps: list[ComparableSale] = Field(default_factory=list)
    market_summary: MarketSummary | None = None
    sale_history: list[SaleRecord] = Field(default_factory=list)
    trend: MarketTrendSignal | None = None
    deal: UnderwritingInputs | None = None
    area_cap_rate_pct: float | None = Field(None, gt=0)
    as_of: date | None = Field(None, description="Reference date for ages and recency; defaults to today.")


class AnalysisOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    valuation: ValuationResult
    underwriting: UnderwritingResult | None = None
    scenarios: ScenarioResult | None = None
    rent_roll: RentRollTotals | None = None
    expenses: ExpenseTotals | None = None
    condition: ConditionReport | None = None
