import sys

import pytest

from vermatrix.core import MEASUREMENT, TestCase, TestSuite, Verdict, VersionDescriptor
from vermatrix.core.comparator import absolute_tolerance, similarity_index
from vermatrix.matrix import MatrixOrchestrator, build_versions, normalize_versions
from vermatrix.reporting import ReportManager, Reporter, render_document
from vermatrix.errors import EnvironmentResetFailure
from vermatrix.session import EnvironmentState, ModuleAdapter

from conftest import FAKE_APP_MODULE


def _suite() -> TestSuite:
    def load(session):
        session.invoke_action("load_data", str(session.data_file))
        return Verdict.PASS

    return TestSuite(
        "uniformity",
        [
            TestCase(name="Version", extractor=lambda s: s.version, kind=MEASUREMENT),
            TestCase(name="Data Loads", extractor=load, kind=MEASUREMENT),
            TestCase(
                name="X Profile",
                extractor=lambda s: s.read_state("profiles.x"),
                comparator=similarity_index(1.0, 0.1),
            ),
            TestCase(
                name="Statistics",
                extractor=lambda s: s.read_state("statistics"),
                comparator=absolute_tolerance(0.1),
            ),
        ],
    )


class RecordingReporter(Reporter):
    def __init__(self) -> None:
        self.events = []

    def on_start(self, suite, data_sets, versions) -> None:
        self.events.append(("start", len(data_sets), len(versions)))

    def on_column(self, data_set, column) -> None:
        self.events.append(("column", data_set.label, column.label))

    def on_complete(self, report) -> None:
        self.events.append(("complete", len(report.sections)))


def _adapter() -> ModuleAdapter:
    return ModuleAdapter(f"{FAKE_APP_MODULE}:launch")


def test_launch_failure_only_affects_its_column(make_app, make_data) -> None:
    versions = [
        ("current", make_app("current")),
        ("A", make_app("A", "1.1.0")),
        ("B", make_app("B", "1.1.0", crash=True)),
        ("C", make_app("C", "1.0", offset=0.5)),
    ]
    report = MatrixOrchestrator(_suite(), _adapter()).run_matrix([("27.3cm", make_data())], versions)
    grid = report.sections[0].grid
    assert grid.headers() == ["current", "A", "B", "C"]
    current, a, b, c = grid.columns
    assert [r.verdict for r in current.records] == ["1.2.0", Verdict.PASS, Verdict.PASS, Verdict.PASS]
    assert [r.verdict for r in a.records] == ["1.1.0", Verdict.PASS, Verdict.PASS, Verdict.PASS]
    assert not b.launched
    assert "display could not be opened" in b.error
    assert all(r.verdict is Verdict.ERROR for r in b.records)
    assert [r.verdict for r in c.records] == ["1.0", Verdict.PASS, Verdict.FAIL, Verdict.FAIL]
    assert not report.passed


def test_every_column_has_one_result_per_case(make_app, make_data) -> None:
    suite = _suite()
    versions = build_versions(make_app("current"), [make_app("v1.1", "1.1.0"), make_app("v1.0", "1.0")])
    data_sets = [("27.3cm", make_data("Head1.prm")), ("10.5cm", make_data("Head3.prm", values=(1, 3, 5, 3, 1)))]
    reporter = RecordingReporter()
    report = MatrixOrchestrator(suite, _adapter(), reporters=ReportManager([reporter])).run_matrix(
        data_sets, versions
    )
    assert [section.name for section in report.sections] == ["27.3cm", "10.5cm"]
    for section in report.sections:
        assert len(section.grid.columns) == 3
        for column in section.grid.columns:
            assert [r.test_id for r in column.records] == list(suite.ids())
    assert report.passed
    assert reporter.events[0] == ("start", 2, 3)
    assert reporter.events[1:4] == [
        ("column", "27.3cm", "current"),
        ("column", "27.3cm", "v1.1"),
        ("column", "27.3cm", "v1.0"),
    ]
    assert reporter.events[-1] == ("complete", 2)
    assert FAKE_APP_MODULE not in sys.modules


def test_rendered_report_keeps_layout_across_data_sets(make_app, make_data) -> None:
    versions = [("a", make_app("a")), ("b", make_app("b", "1.1.0")), ("c", make_app("c", "1.0"))]
    data_sets = [("27.3cm", make_data("Head1.prm")), ("10.5cm", make_data("Head3.prm", values=(1, 3, 5, 3, 1)))]
    report = MatrixOrchestrator(_suite(), _adapter()).run_matrix(data_sets, versions)
    text = render_document(report)
    lines = text.splitlines()

    assert [line for line in lines if line.startswith("## ")] == [
        "## 27.3cm Unit Test Results",
        "## 10.5cm Unit Test Results",
    ]
    header = "| ID | Test Name | a | b | c |"
    starts = [index for index, line in enumerate(lines) if line == header]
    assert len(starts) == 2
    orders = []
    for start in starts:
        rows = []
        for line in lines[start + 2 :]:
            if not line.startswith("| "):
                break
            rows.append(line.split("|")[1].strip())
        orders.append(rows)
    assert orders[0] == orders[1] == ["1", "2", "3", "4"]


def test_relative_data_path_resolves_against_caller_cwd(make_app, make_data, tmp_path, monkeypatch) -> None:
    versions = [("current", make_app("current")), ("prior", make_app("prior", "1.1.0"))]
    make_data()
    monkeypatch.chdir(tmp_path)
    report = MatrixOrchestrator(_suite(), _adapter()).run_matrix(
        [("27.3cm", "test_data/Head1_G90_27p3.prm")], versions
    )
    section = report.sections[0]
    assert section.data_file == tmp_path / "test_data" / "Head1_G90_27p3.prm"
    assert [column.records[1].verdict for column in section.grid.columns] == [Verdict.PASS, Verdict.PASS]
    assert report.passed


def test_reference_is_scoped_to_its_data_set(make_app, make_data) -> None:
    versions = [("current", make_app("current")), ("prior", make_app("prior", "1.1.0"))]
    data_sets = [("wide", make_data("wide.prm")), ("narrow", make_data("narrow.prm", values=(1, 9, 1)))]
    report = MatrixOrchestrator(_suite(), _adapter()).run_matrix(data_sets, versions)
    for section in report.sections:
        prior = section.grid.columns[1]
        assert prior.records[2].verdict is Verdict.PASS
        assert prior.records[3].verdict is Verdict.PASS


def test_failed_reference_makes_comparisons_not_applicable(make_app, make_data) -> None:
    versions = [("current", make_app("current", crash=True)), ("prior", make_app("prior", "1.1.0"))]
    report = MatrixOrchestrator(_suite(), _adapter()).run_matrix([("27.3cm", make_data())], versions)
    section = report.sections[0]
    prior = section.grid.columns[1]
    assert [r.verdict for r in prior.records] == ["1.1.0", Verdict.PASS, Verdict.NOT_APPLICABLE, Verdict.NOT_APPLICABLE]
    assert section.preamble == [("Data File", "Head1_G90_27p3.prm")]


def test_repeat_reference_appends_reference_column(make_app, make_data) -> None:
    versions = [("current", make_app("current")), ("prior", make_app("prior", "1.1.0"))]
    orchestrator = MatrixOrchestrator(_suite(), _adapter(), repeat_reference=True)
    report = orchestrator.run_matrix([("27.3cm", make_data())], versions)
    grid = report.sections[0].grid
    assert grid.headers() == ["current", "prior", "current"]
    assert grid.columns[0] is grid.columns[2]
    assert report.sections[0].preamble[:2] == [("Data File", "Head1_G90_27p3.prm"), ("Version", "1.2.0")]


def test_normalize_versions_marks_only_first_as_reference(tmp_path) -> None:
    descriptors = normalize_versions(
        [tmp_path / "current", ("old", tmp_path / "old"), VersionDescriptor("older", tmp_path / "older", True)]
    )
    assert [d.label for d in descriptors] == ["current", "old", "older"]
    assert [d.is_reference for d in descriptors] == [True, False, False]
    with pytest.raises(ValueError):
        normalize_versions([])


class BrokenEnvironment(EnvironmentState):
    def reset(self) -> None:
        raise EnvironmentResetFailure("sys.path could not be restored")


def test_environment_reset_failure_aborts_matrix(make_app, make_data) -> None:
    versions = [("current", make_app("current")), ("prior", make_app("prior", "1.1.0"))]
    orchestrator = MatrixOrchestrator(_suite(), _adapter(), environment=BrokenEnvironment())
    with pytest.raises(EnvironmentResetFailure):
        orchestrator.run_matrix([("27.3cm", make_data())], versions)
