# dealscope/__init__.py
"""
dealscope: property valuation blending and deal underwriting.

Entry points:
  - dealscope.core.valuation.appraise / blend_valuation
  - dealscope.core.finance.run_underwriting / analyze_scenarios
  - dealscope.orchestrator.run_engine / AnalysisCoordinator
"""

__version__ = "0.1.0"
