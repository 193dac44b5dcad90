"""Result grid data structures produced by the matrix orchestrator."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from .models import Cell, ResultRecord, TestSuite, Verdict, VersionDescriptor


@dataclass
class GridColumn:
    """Result records of one version for one data set."""

    descriptor: VersionDescriptor
    records: List[ResultRecord]
    version: Optional[str] = None
    load_time: Optional[float] = None
    error: Optional[str] = None

    @property
    def label(self) -> str:
        return self.descriptor.label

    @property
    def launched(self) -> bool:
        return self.error is None

    @classmethod
    def failed(cls, descriptor: VersionDescriptor, suite: TestSuite, error: str) -> "GridColumn":
        records = [
            ResultRecord(test_id=case.id, test_name=suite.display_name(case), verdict=Verdict.ERROR)
            for case in suite
        ]
        return cls(descriptor=descriptor, records=records, error=error)

    def tally(self) -> Counter:
        return Counter(_bucket(record.verdict) for record in self.records)


class ResultGrid:
    """Test x version grid; every column shares the suite's row order."""

    def __init__(self, rows: Sequence[Tuple[int, str]]) -> None:
        self._rows: Tuple[Tuple[int, str], ...] = tuple(rows)
        self._columns: List[GridColumn] = []

    @classmethod
    def for_suite(cls, suite: TestSuite) -> "ResultGrid":
        return cls([(case.id, suite.display_name(case)) for case in suite])

    @property
    def rows(self) -> Tuple[Tuple[int, str], ...]:
        return self._rows

    @property
    def columns(self) -> Tuple[GridColumn, ...]:
        return tuple(self._columns)

    def add_column(self, column: GridColumn) -> None:
        ids = tuple(record.test_id for record in column.records)
        expected = tuple(test_id for test_id, _ in self._rows)
        if ids != expected:
            raise ValueError(
                f"Column '{column.label}' rows {ids} do not match suite rows {expected}"
            )
        self._columns.append(column)

    def headers(self) -> List[str]:
        return [column.label for column in self._columns]

    def iter_rows(self) -> Iterator[Tuple[int, str, List[Cell]]]:
        for index, (test_id, name) in enumerate(self._rows):
            yield test_id, name, [column.records[index].verdict for column in self._columns]

    def tally(self) -> Counter:
        total: Counter = Counter()
        for column in self._columns:
            total.update(column.tally())
        return total


@dataclass
class MatrixSection:
    """Report section for one test data set."""

    name: str
    data_file: Path
    preamble: List[Tuple[str, str]]
    grid: ResultGrid
    footnotes: List[str] = field(default_factory=list)


@dataclass
class MatrixReport:
    title: str
    sections: List[MatrixSection] = field(default_factory=list)
    duration_s: float = 0.0

    def tally(self) -> Dict[str, int]:
        total: Counter = Counter()
        for section in self.sections:
            total.update(section.grid.tally())
        return {key: total.get(key, 0) for key in ("passed", "failed", "not_applicable", "errors", "values")}

    @property
    def passed(self) -> bool:
        counts = self.tally()
        return counts["failed"] == 0 and counts["errors"] == 0


def _bucket(cell: Cell) -> str:
    if cell is Verdict.PASS:
        return "passed"
    if cell is Verdict.FAIL:
        return "failed"
    if cell is Verdict.NOT_APPLICABLE:
        return "not_applicable"
    if cell is Verdict.ERROR:
        return "errors"
    return "values"
