# dealscope/core/errors.py
"""
Typed errors for the valuation & underwriting engine.

Exports
-------
- EngineError, InvalidPropertyDataError, EmptyInputError, AnalysisCancelledError
- ENGINE_ERRORS

Missing optional sources (verified comps, sale history, trend, enrichment) are
never errors; only invalid core input surfaces here.
"""

from __future__ import annotations

# =========================
# Exception types
# =========================


class EngineError(RuntimeError):
    """Base class for engine failures surfaced to callers."""


class InvalidPropertyDataError(EngineError, ValueError):
    """Subject property data cannot be valued (e.g. zero or negative square footage)."""


class EmptyInputError(EngineError, ValueError):
    """No comparable sales at all, even after the synthetic fallback."""


class AnalysisCancelledError(EngineError):
    """The analysis run's cancellation token was triggered."""


# Selector tuple for grouped exception handling
ENGINE_ERRORS = (
    InvalidPropertyDataError,
    EmptyInputError,
    AnalysisCancelledError,
)

__all__ = [
    "EngineError",
    "InvalidPropertyDataError",
    "EmptyInputError",
    "AnalysisCancelledError",
    "ENGINE_ERRORS",
]
