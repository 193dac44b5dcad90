"""Default implementations of the external analysis collaborators."""
from .gamma import gamma_index
from .static import AnalysisSummary, Finding, analyze_source, summarize_tree

__all__ = [
    "AnalysisSummary",
    "Finding",
    "analyze_source",
    "gamma_index",
    "summarize_tree",
]
