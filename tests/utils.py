# tests/utils.py
"""
Single source of truth for test data, factories, and canonical payloads.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from dealscope.schemas.models import (
    AnalysisInput,
    AnalysisRequest,
    ComparableSale,
    MarketSummary,
    MarketTrendSignal,
    PropertySnapshot,
    RentRollUnit,
    SaleRecord,
    UnderwritingInputs,
    ValueRange,
)

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_AS_OF = date(2024, 6, 1)
DEFAULT_SQFT = 2_000.0
DEFAULT_ADDRESS = "123 Test St, Testville, TS"

# Canonical underwriting deal: $1M, 25% down, 6%, 30 yrs, $10k/mo gross, 5% vacancy, 35% opex ratio
DEFAULT_PRICE = 1_000_000.0
DEFAULT_DOWN_PCT = 25.0
DEFAULT_RATE_PCT = 6.0
DEFAULT_TERM_YEARS = 30
DEFAULT_GROSS_RENT_MONTHLY = 10_000.0
DEFAULT_VACANCY_PCT = 5.0
DEFAULT_OPEX_RATIO_PCT = 35.0

# Canonical provider payloads (camelCase, loosely typed on purpose)
COMPARABLES_PAYLOAD: dict[str, Any] = {
    "comps": [
        {
            "id": "c1",
            "address": "10 Oak St",
            "distance": "0.4",
            "salePrice": "$410,000",
            "saleDate": "2024-03-15",
            "sqft": 2050,
            "pricePerSqft": 200,
            "propertyType": "single-family",
            "yearBuilt": 1995,
        },
        {
            "id": "c2",
            "address": "22 Pine Ave",
            "distance": 0.9,
            "salePrice": 395000,
            "saleDate": "2023-11-02",
            "sqft": "1,950",
            "capRate": "5.5%",
        },
        {"id": "bad", "address": "", "salePrice": 100},
    ],
    "marketSummary": {
        "avgPricePerSqft": 201.5,
        "medianSalePrice": "$402,500",
        "suggestedValue": 400000,
        "valueRange": "380000-420000",
        "confidence": 55,
        "marketTrend": "stable",
        "keyInsights": ["Low inventory"],
    },
}

PUBLIC_RECORDS_PAYLOAD: dict[str, Any] = {
    "lotSize": 0.3,
    "saleHistory": [
        {"date": "2019-05-01", "price": "$310,000", "type": "warranty deed"},
        {"date": "2012-08-20", "price": 240000, "type": "warranty deed"},
    ],
    "source": "authoritative",
}

TREND_PAYLOAD: dict[str, Any] = {
    "temperature": "warm",
    "annualAppreciationPct": 4.2,
    "direction": "appreciating",
    "velocity": "moderate",
    "valueAdjustmentPct": 2.0,
}

# Provider payloads in the sectioned/enveloped shapes the live services return
MARKET_TRENDS_ENVELOPE: dict[str, Any] = {
    "marketTrends": {
        "marketTemperature": "hot",
        "temperatureScore": 82,
        "annualAppreciationRate": 5.5,
        "trendDirection": "appreciating",
        "trendVelocity": "rapid",
        "valueAdjustmentPercent": 3.0,
        "areaHighlights": ["New light-rail stop opening 2025"],
        "keyDrivers": ["Job growth"],
    }
}

RENTCAST_RECORDS_PAYLOAD: dict[str, Any] = {
    "source": "rentcast",
    "lotSizeAcres": None,
    "lotSizeSqft": 21_780,
    "saleHistory": [
        {"date": "2021-04-12", "price": 330_000, "buyer": "J. Doe", "seller": "A. Roe", "type": "Sale"},
        {"date": "2015-09-30", "price": 255_000, "type": "Sale"},
    ],
    "propertyDetails": {"bedrooms": 3, "bathrooms": 2},
}

ENRICHMENT_PAYLOAD: dict[str, Any] = {
    "propertyTax": {"effectiveTaxRate": 1.1, "annualTaxEstimate": 4_400},
    "insurance": {"annualPremiumEstimate": 1_800},
    "closingCosts": {"buyerClosingCostPercent": 2.0},
    "maintenanceReserves": {"annualMaintenanceTotal": 3_000},
    "operatingExpenseBenchmarks": {
        "propertyTaxAnnual": 9_999,
        "insuranceAnnual": 9_999,
        "repairsMaintenanceAnnual": 9_999,
        "reservesAnnual": 1_200,
    },
    "areaStatistics": {"medianHomePrice": 415_000, "averageCapRate": 5.5, "vacancyRate": 4.0},
    "currentMortgageRates": {"conventional30": 6.9, "conventional15": 6.1, "commercial": 7.4, "bridge": 10.5},
}


# -----------------------------
# Factories
# -----------------------------


def make_subject(**overrides: Any) -> PropertySnapshot:
    base: dict[str, Any] = {
        "property_type": "single-family",
        "square_feet": DEFAULT_SQFT,
        "year_built": 2004,
        "address": DEFAULT_ADDRESS,
    }
    base.update(overrides)
    return PropertySnapshot(**base)


def make_comp(
    address: str = "1 Comp Rd",
    *,
    sale_price: float = 400_000.0,
    square_feet: float = 2_000.0,
    price_per_sqft: float = 0.0,
    verified: bool = False,
    days_ago: int = 60,
    as_of: date = DEFAULT_AS_OF,
) -> ComparableSale:
    return ComparableSale(
        address=address,
        sale_price=sale_price,
        square_feet=square_feet,
        price_per_sqft=price_per_sqft,
        verified=verified,
        sale_date=as_of - timedelta(days=days_ago),
    )


def make_summary(**overrides: Any) -> MarketSummary:
    base: dict[str, Any] = {
        "avg_price_per_sqft": 210.0,
        "suggested_value": 500_000.0,
        "confidence": 50,
    }
    base.update(overrides)
    return MarketSummary(**base)


def make_range(low: float, high: float) -> ValueRange:
    return ValueRange(low=low, high=high)


def make_trend(value_adjustment_pct: float = 2.0, **overrides: Any) -> MarketTrendSignal:
    return MarketTrendSignal(value_adjustment_pct=value_adjustment_pct, **overrides)


def make_sale(price: float = 380_000.0, *, days_ago: int = 400, as_of: date = DEFAULT_AS_OF) -> SaleRecord:
    return SaleRecord(sale_date=as_of - timedelta(days=days_ago), price=price, sale_type="warranty deed")


def make_unit(unit_id: str, monthly_rent: float = 1_000.0, **overrides: Any) -> RentRollUnit:
    base: dict[str, Any] = {
        "unit_id": unit_id,
        "unit_type": "1BR",
        "square_feet": 700.0,
        "monthly_rent": monthly_rent,
        "market_rent": monthly_rent + 100.0,
    }
    base.update(overrides)
    return RentRollUnit(**base)


def make_deal(**overrides: Any) -> UnderwritingInputs:
    """The canonical $1M deal; closing costs zeroed so cash required == down payment."""
    base: dict[str, Any] = {
        "purchase_price": DEFAULT_PRICE,
        "down_payment_pct": DEFAULT_DOWN_PCT,
        "interest_rate_pct": DEFAULT_RATE_PCT,
        "loan_term_years": DEFAULT_TERM_YEARS,
        "gross_rent_monthly": DEFAULT_GROSS_RENT_MONTHLY,
        "vacancy_pct": DEFAULT_VACANCY_PCT,
        "opex_ratio_pct": DEFAULT_OPEX_RATIO_PCT,
        "closing_cost_pct": 0.0,
    }
    base.update(overrides)
    return UnderwritingInputs(**base)


def make_analysis(**overrides: Any) -> AnalysisInput:
    base: dict[str, Any] = {
        "subject": make_subject(),
        "ai_comps": [
            make_comp("10 Oak St", sale_price=410_000.0, square_feet=2_050.0),
            make_comp("22 Pine Ave", sale_price=395_000.0, square_feet=1_950.0, days_ago=200),
        ],
        "market_summary": make_summary(suggested_value=400_000.0, confidence=55),
        "as_of": DEFAULT_AS_OF,
    }
    base.update(overrides)
    return AnalysisInput(**base)


def make_request(**overrides: Any) -> AnalysisRequest:
    base: dict[str, Any] = {
        "address": "123 Test St",
        "city": "Testville",
        "state": "TS",
        "zip_code": "00001",
        "subject": make_subject(),
    }
    base.update(overrides)
    return AnalysisRequest(**base)
