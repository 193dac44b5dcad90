"""Plan loader and executor."""

from .loader import load_plan, parse_plan
from .models import AdapterConfig, DataSetConfig, MatrixPlan, PlanOptions, VersionConfig
from .runner import run_plan

__all__ = [
    "AdapterConfig",
    "DataSetConfig",
    "MatrixPlan",
    "PlanOptions",
    "VersionConfig",
    "load_plan",
    "parse_plan",
    "run_plan",
]
