"""Static analysis of an installed application's Python sources.

Produces the two figures the suite tracks across releases: the number of
code analyzer messages and the cumulative cyclomatic complexity.
"""
from __future__ import annotations

import ast
import logging
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Sequence

logger = logging.getLogger(__name__)

_BRANCH_NODES = (
    ast.If,
    ast.For,
    ast.AsyncFor,
    ast.While,
    ast.IfExp,
    ast.ExceptHandler,
    ast.Assert,
)
_TERMINAL_NODES = (ast.Return, ast.Raise, ast.Continue, ast.Break)


@dataclass(frozen=True)
class Finding:
    """One analyzer message; complexity metrics carry their value."""

    message: str
    is_complexity_metric: bool = False
    complexity: Optional[int] = None


@dataclass
class AnalysisSummary:
    messages: int = 0
    complexity: int = 0
    files: int = 0
    findings: List[Finding] = field(default_factory=list)


Analyzer = Callable[[Path], Sequence[Finding]]


def analyze_source(path: Path) -> List[Finding]:
    """Analyze one Python file."""

    path = Path(path)
    source = path.read_text(encoding="utf-8", errors="replace")
    findings: List[Finding] = []
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        try:
            tree = ast.parse(source, filename=str(path))
            compile(tree, str(path), "exec")
        except SyntaxError as exc:
            return [Finding(message=f"{path.name}:{exc.lineno}: syntax error: {exc.msg}")]
    for warning in caught:
        lineno = getattr(warning, "lineno", "?")
        findings.append(Finding(message=f"{path.name}:{lineno}: {warning.message}"))
    visitor = _ComplexityVisitor(path.name)
    visitor.visit(tree)
    findings.extend(visitor.findings)
    return findings


def summarize_tree(
    root: Path,
    analyzer: Optional[Analyzer] = None,
    *,
    log_findings: bool = True,
) -> AnalysisSummary:
    """Run ``analyzer`` over every Python file under ``root``."""

    analyze = analyzer or analyze_source
    summary = AnalysisSummary()
    for path in _python_files(Path(root)):
        summary.files += 1
        for finding in analyze(path):
            summary.findings.append(finding)
            if finding.is_complexity_metric:
                summary.complexity += int(finding.complexity or 0)
                continue
            summary.messages += 1
            if log_findings:
                logger.info("code analyzer: %s", finding.message)
    return summary


def _python_files(root: Path) -> Iterable[Path]:
    for path in sorted(root.rglob("*.py")):
        relative = path.relative_to(root)
        if any(part == "__pycache__" or part.startswith(".") for part in relative.parts):
            continue
        yield path


class _ComplexityVisitor(ast.NodeVisitor):
    def __init__(self, filename: str) -> None:
        self._filename = filename
        self._scope: List[str] = []
        self.findings: List[Finding] = []

    def visit_FunctionDef(self, node: ast.FunctionDef) -> None:
        self._visit_function(node)

    def visit_AsyncFunctionDef(self, node: ast.AsyncFunctionDef) -> None:
        self._visit_function(node)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._scope.append(node.name)
        self._check_body(node.body)
        self.generic_visit(node)
        self._scope.pop()

    def visit_Module(self, node: ast.Module) -> None:
        self._check_body(node.body)
        self.generic_visit(node)

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.type is None:
            self.findings.append(
                Finding(message=f"{self._filename}:{node.lineno}: bare 'except:' clause")
            )
        self._check_body(node.body)
        self.generic_visit(node)

    def _visit_function(self, node: ast.AST) -> None:
        name = ".".join(self._scope + [node.name])  # type: ignore[attr-defined]
        complexity = 1 + _count_branches(node)
        self.findings.append(
            Finding(
                message=f"The McCabe complexity of '{name}' is {complexity}.",
                is_complexity_metric=True,
                complexity=complexity,
            )
        )
        self._scope.append(node.name)  # type: ignore[attr-defined]
        self._check_body(node.body)  # type: ignore[attr-defined]
        self.generic_visit(node)
        self._scope.pop()

    def _check_body(self, body: Sequence[ast.stmt]) -> None:
        for index, statement in enumerate(body[:-1]):
            if isinstance(statement, _TERMINAL_NODES):
                unreachable = body[index + 1]
                self.findings.append(
                    Finding(
                        message=f"{self._filename}:{unreachable.lineno}: unreachable statement"
                    )
                )
                break
        for statement in body:
            for attr in ("body", "orelse", "finalbody"):
                nested = getattr(statement, attr, None)
                if nested and not isinstance(statement, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
                    self._check_body(nested)


def _count_branches(function: ast.AST) -> int:
    count = 0
    stack = list(ast.iter_child_nodes(function))
    while stack:
        node = stack.pop()
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef, ast.Lambda)):
            continue
        if isinstance(node, _BRANCH_NODES):
            count += 1
        elif isinstance(node, ast.BoolOp):
            count += len(node.values) - 1
        elif isinstance(node, ast.comprehension):
            count += 1 + len(node.ifs)
        elif isinstance(node, ast.match_case):
            count += 1
        stack.extend(ast.iter_child_nodes(node))
    return count
