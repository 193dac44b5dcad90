"""JSON reporter emitting structured matrix results."""
from __future__ import annotations

import datetime as dt
import json
import pathlib
from typing import Any, Dict

import click
from jsonschema import validate

from vermatrix.core import GridColumn, MatrixReport, MatrixSection

from .base import Reporter
from .markdown import format_cell
from .schema import JSON_SCHEMA_V1, SCHEMA_VERSION


class JsonReporter(Reporter):
    """Writes results to a JSON file validated against the schema."""

    def __init__(self, path: str | pathlib.Path) -> None:
        self._path = pathlib.Path(path)

    def on_start(self, suite, data_sets, versions) -> None:  # type: ignore[override]
        return None

    def on_column(self, data_set, column: GridColumn) -> None:  # type: ignore[override]
        return None

    def on_complete(self, report: MatrixReport) -> None:
        payload = build_payload(report)
        validate(instance=payload, schema=JSON_SCHEMA_V1)
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:  # pragma: no cover - filesystem protection
            raise RuntimeError(f"Failed to write JSON report to {self._path}: {exc}") from exc
        click.echo(f"JSON report written to {self._path}")


def build_payload(report: MatrixReport) -> Dict[str, Any]:
    counts = report.tally()
    return {
        "schema_version": SCHEMA_VERSION,
        "generated_at": dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z"),
        "title": report.title,
        "summary": {
            "sections": len(report.sections),
            "passed": counts["passed"],
            "failed": counts["failed"],
            "not_applicable": counts["not_applicable"],
            "errors": counts["errors"],
            "values": counts["values"],
            "duration_s": report.duration_s,
        },
        "sections": [_section_to_dict(section) for section in report.sections],
    }


def _section_to_dict(section: MatrixSection) -> Dict[str, Any]:
    return {
        "name": section.name,
        "data_file": str(section.data_file),
        "preamble": [[key, value] for key, value in section.preamble],
        "columns": [_column_to_dict(column) for column in section.grid.columns],
        "rows": [
            {"id": test_id, "name": name, "cells": [format_cell(cell) for cell in cells]}
            for test_id, name, cells in section.grid.iter_rows()
        ],
        "footnotes": list(section.footnotes),
    }


def _column_to_dict(column: GridColumn) -> Dict[str, Any]:
    return {
        "label": column.label,
        "install_path": str(column.descriptor.install_path),
        "is_reference": column.descriptor.is_reference,
        "version": column.version,
        "load_time_s": column.load_time,
        "error": column.error,
    }
