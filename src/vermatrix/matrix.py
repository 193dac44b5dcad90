"""Version matrix orchestration: data sets x versions -> result grids."""
from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from vermatrix.core import (
    GridColumn,
    MatrixReport,
    MatrixSection,
    ReferenceSnapshot,
    ResultGrid,
    SuiteRun,
    SuiteRunner,
    TestDataSet,
    TestSuite,
    VersionDescriptor,
)
from vermatrix.errors import LaunchError
from vermatrix.reporting.base import ReportManager
from vermatrix.session import ApplicationAdapter, EnvironmentState, open_session

logger = logging.getLogger(__name__)

VersionLike = Union[VersionDescriptor, Tuple[str, Union[str, Path]], str, Path]
DataSetLike = Union[TestDataSet, Tuple[str, Union[str, Path]]]


class MatrixOrchestrator:
    """Runs a suite over every (data set, version) pair, one session at a time.

    For each data set the first version is the reference: its snapshot is
    handed to every later version of that data set and to no other data set.
    A version that fails to launch yields a column of error markers; the
    remaining versions still run.
    """

    def __init__(
        self,
        suite: TestSuite,
        adapter: ApplicationAdapter,
        *,
        environment: Optional[EnvironmentState] = None,
        repeat_reference: bool = False,
        reporters: Optional[ReportManager] = None,
        title: str = "",
    ) -> None:
        self._suite = suite
        self._runner = SuiteRunner(suite)
        self._adapter = adapter
        self._environment = environment
        self._repeat_reference = repeat_reference
        self._reporters = reporters or ReportManager([])
        self._title = title or f"{suite.name} Unit Test Report"

    @property
    def suite(self) -> TestSuite:
        return self._suite

    def run_matrix(
        self,
        data_sets: Sequence[DataSetLike],
        versions: Sequence[VersionLike],
    ) -> MatrixReport:
        sets = normalize_data_sets(data_sets)
        descriptors = normalize_versions(versions)
        environment = self._environment or EnvironmentState()
        self._reporters.start(self._suite, sets, descriptors)
        start = time.perf_counter()
        sections = [self._run_data_set(data_set, descriptors, environment) for data_set in sets]
        environment.reset()
        report = MatrixReport(
            title=self._title,
            sections=sections,
            duration_s=time.perf_counter() - start,
        )
        self._reporters.complete(report)
        return report

    def _run_data_set(
        self,
        data_set: TestDataSet,
        descriptors: Sequence[VersionDescriptor],
        environment: EnvironmentState,
    ) -> MatrixSection:
        logger.info("data set '%s' (%s)", data_set.label, data_set.path)
        grid = ResultGrid.for_suite(self._suite)
        reference_descriptor, candidates = descriptors[0], descriptors[1:]
        reference_column, reference_run = self._run_column(data_set, reference_descriptor, None, environment)
        grid.add_column(reference_column)
        if reference_run is not None and reference_run.snapshot is not None:
            snapshot = reference_run.snapshot
        else:
            logger.error("no reference snapshot for '%s'; comparisons will be not applicable", data_set.label)
            snapshot = ReferenceSnapshot.empty()
        for descriptor in candidates:
            column, _ = self._run_column(data_set, descriptor, snapshot, environment)
            grid.add_column(column)
        if self._repeat_reference:
            grid.add_column(reference_column)
        if reference_run is not None:
            preamble = list(reference_run.preamble)
        else:
            preamble = [("Data File", data_set.path.name)]
        return MatrixSection(
            name=data_set.label,
            data_file=data_set.path,
            preamble=preamble,
            grid=grid,
            footnotes=self._suite.footnote_lines(),
        )

    def _run_column(
        self,
        data_set: TestDataSet,
        descriptor: VersionDescriptor,
        reference: Optional[ReferenceSnapshot],
        environment: EnvironmentState,
    ) -> Tuple[GridColumn, Optional[SuiteRun]]:
        try:
            session = open_session(descriptor, data_set.path, environment, self._adapter)
        except LaunchError as exc:
            logger.error("launch failed for %s: %s", descriptor.label, exc)
            column = GridColumn.failed(descriptor, self._suite, str(exc))
            self._reporters.handle_column(data_set, column)
            return column, None
        with session:
            run = self._runner.run(session, reference)
        column = GridColumn(
            descriptor=descriptor,
            records=run.records,
            version=session.version,
            load_time=session.load_time,
        )
        self._reporters.handle_column(data_set, column)
        return column, run


def normalize_versions(versions: Sequence[VersionLike]) -> List[VersionDescriptor]:
    """Coerce caller input to descriptors, flagging only the first as reference."""

    if not versions:
        raise ValueError("at least one version is required")
    descriptors: List[VersionDescriptor] = []
    for index, item in enumerate(versions):
        if isinstance(item, VersionDescriptor):
            label, path = item.label, item.install_path
        elif isinstance(item, tuple):
            label, path = item[0], item[1]
        else:
            path = item
            label = _label_for(Path(item))
        descriptors.append(VersionDescriptor(label=str(label), install_path=Path(path), is_reference=index == 0))
    return descriptors


def normalize_data_sets(data_sets: Iterable[DataSetLike]) -> List[TestDataSet]:
    """Coerce caller input to data sets with paths absolute against the caller's cwd.

    Sessions change directory into each install path, so relative paths must
    be fixed before the first launch.
    """

    sets: List[TestDataSet] = []
    for item in data_sets:
        if isinstance(item, TestDataSet):
            label, path = item.label, item.path
        else:
            label, path = item
        sets.append(TestDataSet(label=str(label), path=Path(path).expanduser().resolve()))
    if not sets:
        raise ValueError("at least one test data set is required")
    return sets


def build_versions(
    current: Union[str, Path], prior: Sequence[Union[str, Path]] = ()
) -> List[VersionDescriptor]:
    """Current build first (the reference), then prior releases in order."""

    return normalize_versions([current, *prior])


def _label_for(path: Path) -> str:
    return path.resolve().name or str(path)
