from __future__ import annotations

import json
import sys
from pathlib import Path

from jsonschema import validate

from vermatrix.core import (
    MEASUREMENT,
    GridColumn,
    MatrixReport,
    MatrixSection,
    ResultGrid,
    ResultRecord,
    TestCase,
    TestDataSet,
    TestSuite,
    Verdict,
    VersionDescriptor,
)
from vermatrix.core.comparator import exact
from vermatrix.reporting import JsonReporter, MarkdownReporter, TerminalReporter, render_document, render_section
from vermatrix.reporting.json_reporter import build_payload
from vermatrix.reporting.markdown import format_cell, report_filename
from vermatrix.reporting.schema import JSON_SCHEMA_V1


def _suite() -> TestSuite:
    return TestSuite(
        "demo",
        [
            TestCase(name="Version", extractor=lambda s: s.version, kind=MEASUREMENT),
            TestCase(name="Load Time", extractor=lambda s: "0.1 sec", kind=MEASUREMENT, footnote="wall clock"),
            TestCase(name="Profile", extractor=lambda s: [1], comparator=exact()),
        ],
    )


def _column(suite, label, cells, *, reference=False, version="1.2.0") -> GridColumn:
    records = [
        ResultRecord(test_id=case.id, test_name=suite.display_name(case), verdict=cell)
        for case, cell in zip(suite, cells)
    ]
    descriptor = VersionDescriptor(label=label, install_path=Path("/opt") / label, is_reference=reference)
    return GridColumn(descriptor=descriptor, records=records, version=version, load_time=0.25)


def _report() -> MatrixReport:
    suite = _suite()
    grid = ResultGrid.for_suite(suite)
    grid.add_column(_column(suite, "current", ["1.2.0", "0.150 sec", Verdict.PASS], reference=True))
    grid.add_column(_column(suite, "1.0", ["1.0", "0.300 sec", Verdict.FAIL], version="1.0"))
    grid.add_column(GridColumn.failed(VersionDescriptor("broken", Path("/opt/broken")), suite, "boom"))
    section = MatrixSection(
        name="27.3cm",
        data_file=Path("/data/Head1_G90_27p3.prm"),
        preamble=[("Data File", "Head1_G90_27p3.prm"), ("Version", "1.2.0")],
        grid=grid,
        footnotes=suite.footnote_lines(),
    )
    return MatrixReport(title="Field Uniformity Unit Test Report", sections=[section], duration_s=1.5)


def test_render_section_layout() -> None:
    section = _report().sections[0]
    text = render_section(section.name, section.preamble, section.grid, section.footnotes)
    lines = text.splitlines()
    assert lines[0] == "## 27.3cm Unit Test Results"
    assert lines[1] == ""
    assert lines[2] == "| Input Data | Value |"
    assert lines[3] == "|----|----|"
    assert lines[4] == "| Data File | Head1_G90_27p3.prm |"
    assert lines[5] == "| Version | 1.2.0 |"
    assert lines[6] == ""
    assert lines[7] == "| ID | Test Name | current | 1.0 | broken |"
    assert lines[8] == "|----|----|----|----|----|"
    assert lines[9] == "| 1 | Version | 1.2.0 | 1.0 | Error |"
    assert lines[10] == "| 2 | Load Time<sup>1</sup> | 0.150 sec | 0.300 sec | Error |"
    assert lines[11] == "| 3 | Profile | Pass | Fail | Error |"
    assert "<sup>1</sup>wall clock" in lines


def test_render_document_has_title_and_sections() -> None:
    text = render_document(_report())
    assert text.startswith("# Field Uniformity Unit Test Report\n")
    assert text.count("## ") == 1
    assert text.endswith("\n")


def test_format_cell_conventions() -> None:
    assert format_cell(Verdict.NOT_APPLICABLE) == "N/A"
    assert format_cell(True) == "Pass"
    assert format_cell(0.12345) == "0.123"
    assert format_cell([1, 2]) == "1, 2"
    assert format_cell(None) == ""


def test_pipes_are_escaped_in_cells() -> None:
    suite = _suite()
    grid = ResultGrid.for_suite(suite)
    grid.add_column(_column(suite, "current", ["a|b", "x", Verdict.PASS]))
    text = render_section("s", [], grid, [])
    assert "| a\\|b |" in text


def test_report_filename_tags_interpreter() -> None:
    expected = f"unit_test_report_py{sys.version_info.major}{sys.version_info.minor}.md"
    assert report_filename("unit_test_report") == expected
    assert report_filename("report", "py311") == "report_py311.md"


def test_markdown_reporter_writes_file(tmp_path) -> None:
    path = tmp_path / "out" / "report.md"
    reporter = MarkdownReporter(path, announce=False)
    reporter.on_complete(_report())
    assert path.read_text(encoding="utf-8").startswith("# Field Uniformity")


def test_json_payload_matches_schema(tmp_path) -> None:
    report = _report()
    payload = build_payload(report)
    validate(instance=payload, schema=JSON_SCHEMA_V1)
    assert payload["summary"]["passed"] == 1
    assert payload["summary"]["failed"] == 1
    assert payload["summary"]["errors"] == 3
    assert payload["generated_at"].endswith("Z")
    section = payload["sections"][0]
    assert section["columns"][2]["error"] == "boom"
    assert section["rows"][2]["cells"] == ["Pass", "Fail", "Error"]

    path = tmp_path / "report.json"
    JsonReporter(path).on_complete(report)
    written = json.loads(path.read_text(encoding="utf-8"))
    assert written["title"] == report.title


def test_terminal_reporter_outputs_progress_and_summary(capsys) -> None:
    report = _report()
    section = report.sections[0]
    suite = _suite()
    reporter = TerminalReporter(use_color=False)
    data_set = TestDataSet(label="27.3cm", path=section.data_file)
    reporter.on_start(suite, [data_set], [column.descriptor for column in section.grid.columns])
    for column in section.grid.columns:
        reporter.on_column(data_set, column)
    reporter.on_complete(report)
    out = capsys.readouterr().out
    assert "Starting matrix: suite=demo cases=3" in out
    assert "[1/3] 27.3cm @ current (version 1.2.0) -> PASSED" in out
    assert "[2/3] 27.3cm @ 1.0 (version 1.0) -> FAILED" in out
    assert "[3/3] 27.3cm @ broken -> ERROR (boom)" in out
    assert "Summary: sections=1 passed=1 failed=1" in out
    assert "27.3cm @ 1.0: [3] Profile" in out
    assert "27.3cm @ broken: launch error: boom" in out
