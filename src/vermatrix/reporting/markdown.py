"""Markdown rendering of result grids."""
from __future__ import annotations

import pathlib
import sys
from typing import Any, List, Optional, Sequence, Tuple

import click
import numpy as np

from vermatrix.core import GridColumn, MatrixReport, ResultGrid, Verdict

from .base import Reporter

ID_HEADER = "ID"
NAME_HEADER = "Test Name"
PREAMBLE_HEADER = ("Input Data", "Value")


def render_section(
    name: str,
    preamble: Sequence[Tuple[str, str]],
    grid: ResultGrid,
    footnotes: Sequence[str],
) -> str:
    """Render one data set: header, preamble table, result table, footnotes."""

    lines: List[str] = [f"## {name} Unit Test Results", ""]
    lines.extend(_table(PREAMBLE_HEADER, [(key, value) for key, value in preamble]))
    lines.append("")
    header = [ID_HEADER, NAME_HEADER, *grid.headers()]
    rows = [
        [str(test_id), test_name, *(format_cell(cell) for cell in cells)]
        for test_id, test_name, cells in grid.iter_rows()
    ]
    lines.extend(_table(header, rows))
    lines.append("")
    if footnotes:
        lines.extend(footnotes)
        lines.append("")
    return "\n".join(lines)


def render_document(report: MatrixReport) -> str:
    """Concatenate every section into one document."""

    parts = [f"# {report.title}", ""]
    for section in report.sections:
        parts.append(render_section(section.name, section.preamble, section.grid, section.footnotes))
    return "\n".join(parts).rstrip("\n") + "\n"


def format_cell(value: Any) -> str:
    if isinstance(value, Verdict):
        return value.value
    if value is None:
        return ""
    if isinstance(value, (bool, np.bool_)):
        return "Pass" if value else "Fail"
    if isinstance(value, (float, np.floating)):
        return f"{float(value):0.3f}"
    if isinstance(value, (list, tuple, np.ndarray)):
        return ", ".join(format_cell(item) for item in np.asarray(value, dtype=object).ravel())
    return str(value)


def environment_tag() -> str:
    """Tag identifying the interpreter the report was produced with."""

    return f"py{sys.version_info.major}{sys.version_info.minor}"


def report_filename(base: str, tag: Optional[str] = None) -> str:
    return f"{base}_{tag or environment_tag()}.md"


def _table(header: Sequence[str], rows: Sequence[Sequence[str]]) -> List[str]:
    lines = [_row(header), "|" + "----|" * len(header)]
    lines.extend(_row(row) for row in rows)
    return lines


def _row(cells: Sequence[str]) -> str:
    return "| " + " | ".join(_escape(str(cell)) for cell in cells) + " |"


def _escape(text: str) -> str:
    return text.replace("\r", " ").replace("\n", " ").replace("|", "\\|")


class MarkdownReporter(Reporter):
    """Writes the rendered document when the matrix completes."""

    def __init__(self, path: str | pathlib.Path, *, announce: bool = True) -> None:
        self._path = pathlib.Path(path)
        self._announce = announce

    @property
    def path(self) -> pathlib.Path:
        return self._path

    def on_start(self, suite, data_sets, versions) -> None:  # type: ignore[override]
        return None

    def on_column(self, data_set, column: GridColumn) -> None:  # type: ignore[override]
        return None

    def on_complete(self, report: MatrixReport) -> None:
        text = render_document(report)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(text, encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write Markdown report to {self._path}: {exc}") from exc
        if self._announce:
            click.echo(f"Markdown report written to {self._path}")
