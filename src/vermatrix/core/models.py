"""Core dataclasses shared across vermatrix subsystems."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from .snapshot import ReferenceSnapshot
from .versioning import resolve_version

if TYPE_CHECKING:  # pragma: no cover
    from vermatrix.session import VersionSession


COMPARISON = "comparison"
MEASUREMENT = "measurement"
CASE_KINDS = (COMPARISON, MEASUREMENT)


class Verdict(str, Enum):
    """Outcome of one test case on one version."""

    PASS = "Pass"
    FAIL = "Fail"
    NOT_APPLICABLE = "N/A"
    ERROR = "Error"

    @classmethod
    def of(cls, ok: bool) -> "Verdict":
        return cls.PASS if ok else cls.FAIL

    def __str__(self) -> str:
        return self.value


# A cell is either a verdict or a measurement passed through unchanged.
Cell = Union[Verdict, str, int, float, Any]
Extractor = Callable[["VersionSession"], Any]
Comparator = Callable[[Any, Any], Cell]
PreambleHook = Callable[["VersionSession", Any], Optional[Tuple[str, str]]]


@dataclass(frozen=True)
class TestCase:
    """Static definition of one step of the regression suite.

    ``comparison`` cases are judged against the reference snapshot;
    ``measurement`` cases report their extracted value as-is (timings,
    counts, or a verdict the extractor decided on itself).
    """

    __test__ = False

    name: str
    extractor: Extractor
    comparator: Optional[Comparator] = None
    kind: str = COMPARISON
    min_version: Optional[Union[int, str]] = None
    footnote: Optional[str] = None
    preamble: Optional[PreambleHook] = None
    id: int = 0

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Test case name cannot be empty")
        if self.kind not in CASE_KINDS:
            raise ValueError(f"Test case '{self.name}' has unknown kind {self.kind!r}")
        if self.kind == COMPARISON and self.comparator is None:
            raise ValueError(f"Comparison case '{self.name}' requires a comparator")
        if isinstance(self.min_version, str):
            object.__setattr__(self, "min_version", resolve_version(self.min_version))

    @property
    def is_measurement(self) -> bool:
        return self.kind == MEASUREMENT

    def applies_to(self, resolved_version: int) -> bool:
        return self.min_version is None or resolved_version >= int(self.min_version)


class TestSuite:
    """Immutable, ordered collection of test cases.

    The order is the suite contract: every version column reports the same
    rows in the same order.
    """

    __test__ = False

    def __init__(self, name: str, cases: Iterable[TestCase], *, description: str = "") -> None:
        self.name = name
        self.description = description
        numbered: List[TestCase] = []
        seen: set[str] = set()
        for index, case in enumerate(cases, start=1):
            if case.name in seen:
                raise ValueError(f"Duplicate test case name '{case.name}' in suite '{name}'")
            seen.add(case.name)
            numbered.append(dataclasses.replace(case, id=index))
        if not numbered:
            raise ValueError(f"Suite '{name}' has no test cases")
        self._cases: Tuple[TestCase, ...] = tuple(numbered)
        self._markers = _number_footnotes(self._cases)

    def __iter__(self) -> Iterator[TestCase]:
        return iter(self._cases)

    def __len__(self) -> int:
        return len(self._cases)

    def __getitem__(self, case_id: int) -> TestCase:
        if case_id < 1 or case_id > len(self._cases):
            raise KeyError(f"Suite '{self.name}' has no case with id {case_id}")
        return self._cases[case_id - 1]

    def ids(self) -> Tuple[int, ...]:
        return tuple(case.id for case in self._cases)

    def display_name(self, case: TestCase) -> str:
        marker = self._markers.get(case.id)
        if marker is None:
            return case.name
        return f"{case.name}<sup>{marker}</sup>"

    def footnote_lines(self) -> List[str]:
        lines: List[str] = []
        emitted: set[int] = set()
        for case in self._cases:
            marker = self._markers.get(case.id)
            if marker is None or marker in emitted:
                continue
            emitted.add(marker)
            lines.append(f"<sup>{marker}</sup>{case.footnote}")
        return lines


def _number_footnotes(cases: Sequence[TestCase]) -> Dict[int, int]:
    numbers: Dict[str, int] = {}
    markers: Dict[int, int] = {}
    for case in cases:
        if not case.footnote:
            continue
        number = numbers.setdefault(case.footnote, len(numbers) + 1)
        markers[case.id] = number
    return markers


@dataclass(frozen=True)
class VersionDescriptor:
    """One installed release of the application under test."""

    label: str
    install_path: Path
    is_reference: bool = False


@dataclass(frozen=True)
class TestDataSet:
    """Named input file every version is exercised with."""

    __test__ = False

    label: str
    path: Path


@dataclass(frozen=True)
class ResultRecord:
    test_id: int
    test_name: str
    verdict: Cell


@dataclass
class SuiteRun:
    """Everything one suite execution produces for one version."""

    preamble: List[Tuple[str, str]]
    records: List[ResultRecord]
    footnotes: List[str]
    snapshot: Optional[ReferenceSnapshot] = None
    errors: Dict[int, str] = field(default_factory=dict)
