"""Reporter interface definitions."""
from __future__ import annotations

from typing import TYPE_CHECKING, List, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from vermatrix.core import GridColumn, MatrixReport, TestDataSet, TestSuite, VersionDescriptor


class Reporter:
    """Interface for output renderers."""

    def on_start(
        self,
        suite: "TestSuite",
        data_sets: Sequence["TestDataSet"],
        versions: Sequence["VersionDescriptor"],
    ) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def on_column(self, data_set: "TestDataSet", column: "GridColumn") -> None:  # pragma: no cover
        raise NotImplementedError

    def on_complete(self, report: "MatrixReport") -> None:  # pragma: no cover
        raise NotImplementedError


class ReportManager:
    """Dispatches lifecycle callbacks to multiple reporters."""

    def __init__(self, reporters: Sequence[Reporter]) -> None:
        self._reporters = list(reporters)

    def start(
        self,
        suite: "TestSuite",
        data_sets: Sequence["TestDataSet"],
        versions: Sequence["VersionDescriptor"],
    ) -> None:
        for reporter in self._reporters:
            reporter.on_start(suite, data_sets, versions)

    def handle_column(self, data_set: "TestDataSet", column: "GridColumn") -> None:
        for reporter in self._reporters:
            reporter.on_column(data_set, column)

    def complete(self, report: "MatrixReport") -> None:
        for reporter in self._reporters:
            reporter.on_complete(report)

    def reporters(self) -> List[Reporter]:
        return list(self._reporters)
