# dealscope/orchestrator/__init__.py
from .run import AnalysisCoordinator, CancellationToken, run_engine

__all__ = ["AnalysisCoordinator", "CancellationToken", "run_engine"]
