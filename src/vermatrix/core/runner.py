"""Suite runner executing every test case against one version session."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Tuple

from .models import Cell, ResultRecord, SuiteRun, TestCase, TestSuite, Verdict
from .snapshot import ReferenceSnapshot, SnapshotBuilder

if TYPE_CHECKING:  # pragma: no cover
    from vermatrix.session import VersionSession

logger = logging.getLogger(__name__)


class SuiteRunner:
    """Executes a suite sequentially; each case has its own failure boundary.

    Without a reference snapshot the session is the reference run: extracted
    values are recorded and comparison cases pass by definition. With one,
    comparison cases are judged by their comparator against the recorded
    value.
    """

    def __init__(self, suite: TestSuite) -> None:
        self._suite = suite

    @property
    def suite(self) -> TestSuite:
        return self._suite

    def run(
        self,
        session: "VersionSession",
        reference: Optional[ReferenceSnapshot] = None,
        *,
        on_result: Optional[Callable[[ResultRecord, int, int], None]] = None,
    ) -> SuiteRun:
        builder = SnapshotBuilder() if reference is None else None
        preamble: List[Tuple[str, str]] = [
            ("Data File", session.data_file.name),
            ("Version", session.version),
        ]
        records: List[ResultRecord] = []
        errors = {}
        total = len(self._suite)
        for index, case in enumerate(self._suite, start=1):
            verdict, row, error = self._execute_case(case, session, reference, builder)
            record = ResultRecord(
                test_id=case.id,
                test_name=self._suite.display_name(case),
                verdict=verdict,
            )
            logger.debug("%s [%d/%d] %s -> %s", session.label, index, total, case.name, verdict)
            records.append(record)
            if row is not None:
                preamble.append(row)
            if error is not None:
                errors[case.id] = error
            if on_result:
                on_result(record, index, total)
        return SuiteRun(
            preamble=preamble,
            records=records,
            footnotes=self._suite.footnote_lines(),
            snapshot=builder.freeze() if builder is not None else None,
            errors=errors,
        )

    def _execute_case(
        self,
        case: TestCase,
        session: "VersionSession",
        reference: Optional[ReferenceSnapshot],
        builder: Optional[SnapshotBuilder],
    ) -> Tuple[Cell, Optional[Tuple[str, str]], Optional[str]]:
        if not case.applies_to(session.resolved_version):
            return Verdict.NOT_APPLICABLE, None, None
        try:
            value = case.extractor(session)
        except Exception as exc:
            logger.warning("%s: case %d '%s' failed: %s", session.label, case.id, case.name, exc)
            return Verdict.FAIL, None, f"extractor: {exc}"
        row = self._preamble_row(case, session, value)
        try:
            verdict = self._judge(case, value, reference, builder)
        except Exception as exc:
            logger.warning(
                "%s: case %d '%s' could not be compared: %s", session.label, case.id, case.name, exc
            )
            return Verdict.FAIL, row, f"comparator: {exc}"
        return verdict, row, None

    def _judge(
        self,
        case: TestCase,
        value: Any,
        reference: Optional[ReferenceSnapshot],
        builder: Optional[SnapshotBuilder],
    ) -> Cell:
        if case.is_measurement:
            return value
        if builder is not None:
            builder.record(case.id, value)
            return Verdict.PASS
        if reference is None:
            raise RuntimeError(f"case '{case.name}' needs a reference snapshot or a builder")
        if case.id not in reference:
            # the reference run produced nothing to compare against
            return Verdict.NOT_APPLICABLE
        if case.comparator is None:
            raise RuntimeError(f"case '{case.name}' has no comparator")
        return case.comparator(value, reference[case.id])

    def _preamble_row(
        self, case: TestCase, session: "VersionSession", value: Any
    ) -> Optional[Tuple[str, str]]:
        if case.preamble is None:
            return None
        try:
            row = case.preamble(session, value)
        except Exception as exc:
            logger.warning("%s: preamble for case '%s' failed: %s", session.label, case.name, exc)
            return None
        if row is None:
            return None
        key, text = row
        return str(key), str(text)
