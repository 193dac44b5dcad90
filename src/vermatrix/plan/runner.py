"""Executor for matrix plans."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Sequence

from colorama import Fore, Style, init as colorama_init

from vermatrix.core import TestDataSet, TestSuite, VersionDescriptor, format_version
from vermatrix.errors import PlanError
from vermatrix.matrix import MatrixOrchestrator
from vermatrix.reporting import JsonReporter, MarkdownReporter, ReportManager, Reporter, TerminalReporter
from vermatrix.reporting.markdown import report_filename
from vermatrix.session import build_adapter
from vermatrix.suites import resolve_suite

from .models import MatrixPlan, PlanOptions

logger = logging.getLogger(__name__)

REPORT_FORMATS = ("markdown", "json")


def run_plan(plan: MatrixPlan, options: PlanOptions) -> int:
    """Execute the plan; returns process exit code (0 success, 1 failures)."""

    colorama_init()
    suite = build_plan_suite(plan)
    data_sets = select_data_sets(plan, options)
    versions = plan_versions(plan)
    if options.list_only:
        _print_listing(suite, data_sets, versions, use_color=options.use_color)
        return 0
    reporters = ReportManager(_build_reporters(plan, options))
    repeat = plan.repeat_reference if options.repeat_reference is None else options.repeat_reference
    orchestrator = MatrixOrchestrator(
        suite,
        build_adapter(plan.adapter.as_spec()),
        repeat_reference=repeat,
        reporters=reporters,
        title=plan.title,
    )
    report = orchestrator.run_matrix(data_sets, versions)
    return 0 if report.passed else 1


def build_plan_suite(plan: MatrixPlan) -> TestSuite:
    options: Dict[str, Any] = dict(plan.suite_options)
    if plan.analyzer:
        options.setdefault("analyzer", plan.analyzer)
    if plan.similarity:
        options.setdefault("similarity", plan.similarity)
    try:
        return resolve_suite(plan.suite, **options)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        raise PlanError(f"Cannot build suite '{plan.suite}': {exc}") from exc


def select_data_sets(plan: MatrixPlan, options: PlanOptions) -> List[TestDataSet]:
    selected = [TestDataSet(label=item.label, path=item.path) for item in plan.test_data]
    if options.data_sets:
        wanted = set(options.data_sets)
        unknown = sorted(wanted - {item.label for item in selected})
        if unknown:
            raise PlanError(f"Unknown test data labels: {unknown}")
        selected = [item for item in selected if item.label in wanted]
    return selected


def plan_versions(plan: MatrixPlan) -> List[VersionDescriptor]:
    return [
        VersionDescriptor(label=item.label, install_path=item.path, is_reference=index == 0)
        for index, item in enumerate(plan.versions())
    ]


def _build_reporters(plan: MatrixPlan, options: PlanOptions) -> List[Reporter]:
    if options.report_format not in REPORT_FORMATS:
        raise PlanError(f"Unsupported report format '{options.report_format}'")
    reporters: List[Reporter] = [TerminalReporter(use_color=options.use_color)]
    if options.report_format == "json":
        path = options.report_path or plan.output_dir / f"{plan.report}.json"
        reporters.append(JsonReporter(path))
    else:
        path = options.report_path or plan.output_dir / report_filename(plan.report)
        reporters.append(MarkdownReporter(path))
    logger.debug("report will be written to %s", path)
    return reporters


def _print_listing(
    suite: TestSuite,
    data_sets: Sequence[TestDataSet],
    versions: Sequence[VersionDescriptor],
    *,
    use_color: bool,
) -> None:
    accent = Fore.CYAN if use_color else ""
    dim = Style.DIM if use_color else ""
    reset = Style.RESET_ALL if use_color else ""
    print(f"{accent}Suite{reset}: {suite.name} ({len(suite)} cases)")
    for case in suite:
        gate = f" {dim}[>= {format_version(case.min_version)}]{reset}" if case.min_version is not None else ""
        print(f"  {case.id:>3} {case.name}{gate}")
    print(f"{accent}Test data{reset}:")
    for data_set in data_sets:
        print(f"  {data_set.label}: {data_set.path}")
    print(f"{accent}Versions{reset}:")
    for descriptor in versions:
        marker = " (reference)" if descriptor.is_reference else ""
        print(f"  {descriptor.label}: {_display_path(descriptor.install_path)}{marker}")


def _display_path(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)
