"""Core models and helpers exposed at the package level."""
from .models import (
    COMPARISON,
    MEASUREMENT,
    ResultRecord,
    SuiteRun,
    TestCase,
    TestDataSet,
    TestSuite,
    Verdict,
    VersionDescriptor,
)
from .results import GridColumn, MatrixReport, MatrixSection, ResultGrid
from .runner import SuiteRunner
from .snapshot import ReferenceSnapshot, SnapshotBuilder
from .versioning import format_version, resolve_version

__all__ = [
    "COMPARISON",
    "MEASUREMENT",
    "GridColumn",
    "MatrixReport",
    "MatrixSection",
    "ReferenceSnapshot",
    "ResultGrid",
    "ResultRecord",
    "SnapshotBuilder",
    "SuiteRun",
    "SuiteRunner",
    "TestCase",
    "TestDataSet",
    "TestSuite",
    "Verdict",
    "VersionDescriptor",
    "format_version",
    "resolve_version",
]
