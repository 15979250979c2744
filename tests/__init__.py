# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_subject, make_analysis
"""

from .utils import (
    make_analysis,
    make_comp,
    make_deal,
    make_range,
    make_request,
    make_sale,
    make_subject,
    make_summary,
    make_trend,
    make_unit,
)

__all__ = [
    "make_analysis",
    "make_comp",
    "make_deal",
    "make_range",
    "make_request",
    "make_sale",
    "make_subject",
    "make_summary",
    "make_trend",
    "make_unit",
]
