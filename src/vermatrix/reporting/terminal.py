"""Terminal reporter rendering progress and summaries."""
from __future__ import annotations

import time
from typing import Sequence

import click

from vermatrix.core import GridColumn, MatrixReport, TestDataSet, TestSuite, Verdict, VersionDescriptor

from .base import Reporter


STATUS_COLORS = {
    "passed": "green",
    "failed": "red",
    "error": "yellow",
}


class TerminalReporter(Reporter):
    """Human-readable reporter that streams to stdout."""

    def __init__(self, *, use_color: bool = True) -> None:
        self._use_color = use_color
        self._start_time = 0.0
        self._total = 0
        self._index = 0
        self._failures: list[tuple[str, GridColumn]] = []

    def on_start(
        self,
        suite: TestSuite,
        data_sets: Sequence[TestDataSet],
        versions: Sequence[VersionDescriptor],
    ) -> None:
        self._start_time = time.perf_counter()
        self._total = len(data_sets) * len(versions)
        self._index = 0
        self._failures.clear()
        click.echo(
            self._styled(
                f"Starting matrix: suite={suite.name} cases={len(suite)} "
                f"data_sets={len(data_sets)} versions={len(versions)} "
                f"reference={versions[0].label}",
                force_color="cyan",
            )
        )

    def on_column(self, data_set: TestDataSet, column: GridColumn) -> None:
        self._index += 1
        prefix = f"[{self._index}/{self._total}] {data_set.label} @ {column.label}"
        if not column.launched:
            click.echo(f"{prefix} -> {self._styled('ERROR')} ({column.error})")
            self._failures.append((data_set.label, column))
            return
        counts = column.tally()
        status = "failed" if counts.get("failed") else "passed"
        load = f" load={column.load_time:.3f}s" if column.load_time is not None else ""
        click.echo(
            f"{prefix} (version {column.version}) -> {self._styled(status.upper())} "
            f"pass={counts.get('passed', 0)} fail={counts.get('failed', 0)} "
            f"n/a={counts.get('not_applicable', 0)}{load}"
        )
        if counts.get("failed"):
            self._failures.append((data_set.label, column))

    def on_complete(self, report: MatrixReport) -> None:
        duration = time.perf_counter() - self._start_time
        counts = report.tally()
        click.echo(
            self._styled(
                f"Summary: sections={len(report.sections)} passed={counts['passed']} "
                f"failed={counts['failed']} n/a={counts['not_applicable']} "
                f"errors={counts['errors']} duration={duration:.2f}s",
                force_color="cyan",
            )
        )
        if self._failures:
            click.echo(self._styled("Failure details:", force_color="red"))
            for label, column in self._failures:
                self._print_failure_details(label, column)

    def _styled(self, text: str, *, force_color: str | None = None) -> str:
        if not self._use_color:
            return text
        color = force_color or STATUS_COLORS.get(text.lower(), None)
        if color:
            return click.style(text, fg=color)
        return text

    def _print_failure_details(self, label: str, column: GridColumn, *, indent: str = "  ") -> None:
        if column.error:
            click.echo(f"{indent}{label} @ {column.label}: launch error: {column.error}")
            return
        for record in column.records:
            if record.verdict is Verdict.FAIL:
                click.echo(f"{indent}{label} @ {column.label}: [{record.test_id}] {record.test_name}")
