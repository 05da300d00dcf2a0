"""
Grouped analysis and result aggregation.
"""
from .runner import GroupedAnalysisRunner, AnalysisRun
from .aggregator import ResultAggregator

__all__ = [
    "GroupedAnalysisRunner",
    "AnalysisRun",
    "ResultAggregator",
]
