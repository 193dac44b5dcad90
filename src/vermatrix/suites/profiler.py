"""Built-in regression suite for beam profile analysis applications.

The suite drives an application through a fixed sequence of user actions and
reads back the results it exposes by name:

actions
    ``load_reference(energy)``, ``load_data(path)``, ``print_report()``
state
    ``refdata``, ``references``, ``profiles.x``, ``profiles.y``,
    ``profiles.pdiag``, ``profiles.ndiag`` (``(positions, values)`` pairs),
    ``statistics`` (mapping of named figures), ``normalized`` (central
    profile normalised to its maximum)

Reference data handling and diagonal profiles arrived in 1.1.0 and printable
reports in 1.2.0; older versions report those rows as not applicable.
"""
from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Tuple

from vermatrix.analysis.static import Analyzer, AnalysisSummary, summarize_tree
from vermatrix.core import MEASUREMENT, TestCase, TestSuite, Verdict, resolve_version
from vermatrix.core.comparator import Similarity, absolute_tolerance, exact, similarity_index
from vermatrix.errors import ActionError
from vermatrix.session import VersionSession
from vermatrix.utils import import_string

MULTI_REFERENCE_VERSION = "1.1.0"
PRINT_REPORT_VERSION = "1.2.0"

TIMING_FOOTNOTE = "Times are wall-clock measurements on the machine running the suite"
REFERENCE_FOOTNOTE = "Prior to Version 1.1 only one reference profile existed"
GAMMA_FOOTNOTE = "Gamma evaluation uses {percent:g}%/{distance:g} (amplitude/distance) on normalized profiles"


def build_suite(
    *,
    analyzer: Optional[Analyzer | str] = None,
    similarity: Optional[Similarity | str] = None,
    gamma_percent: float = 1.0,
    gamma_distance: float = 0.1,
    gamma_window: Optional[float] = None,
    statistics_epsilon: float = 0.1,
    normalized_epsilon: float = 0.001,
    legacy_position_scale: float = 1.0,
    legacy_statistics_scale: float = 1.0,
    reference_energy: str = "90",
) -> TestSuite:
    """Create the profiler suite.

    ``legacy_position_scale`` multiplies profile positions reported by
    versions older than 1.1.0, for generations that stored positions in
    different units than the current one. ``legacy_statistics_scale`` does
    the same for the statistics and the normalized profile.
    """

    analyze = _resolve(analyzer)
    gamma = similarity_index(
        gamma_percent,
        gamma_distance,
        window=gamma_window,
        similarity=_resolve(similarity),
    )
    gamma_note = GAMMA_FOOTNOTE.format(percent=gamma_percent, distance=gamma_distance)

    def profile(field: str) -> Callable[[VersionSession], Any]:
        return _profile_extractor(field, legacy_position_scale)

    def scaled(path: str) -> Callable[[VersionSession], Any]:
        return _scaled_extractor(path, legacy_statistics_scale)

    cases = [
        TestCase(name="Version", extractor=lambda s: s.version, kind=MEASUREMENT),
        TestCase(
            name="Code Analyzer Warnings",
            extractor=lambda s: str(_analysis(s, analyze).messages),
            kind=MEASUREMENT,
        ),
        TestCase(
            name="Cumulative Cyclomatic Complexity",
            extractor=lambda s: str(_analysis(s, analyze).complexity),
            kind=MEASUREMENT,
        ),
        TestCase(
            name="Application Load Time",
            extractor=lambda s: _seconds(s.load_time),
            kind=MEASUREMENT,
            footnote=TIMING_FOOTNOTE,
        ),
        TestCase(
            name="Reference Data Loads Successfully",
            extractor=_action_succeeds("load_reference", lambda s: (reference_energy,)),
            kind=MEASUREMENT,
            min_version=MULTI_REFERENCE_VERSION,
        ),
        TestCase(
            name="Reference Data Load Time",
            extractor=_timing("load_reference"),
            kind=MEASUREMENT,
            min_version=MULTI_REFERENCE_VERSION,
            footnote=TIMING_FOOTNOTE,
        ),
        TestCase(
            name="Reference Data Identical",
            extractor=lambda s: s.read_state("refdata"),
            comparator=exact(),
            min_version=MULTI_REFERENCE_VERSION,
            footnote=REFERENCE_FOOTNOTE,
            preamble=_reference_names,
        ),
        TestCase(
            name="Invalid Data Rejected",
            extractor=_rejects_invalid_data,
            kind=MEASUREMENT,
        ),
        TestCase(
            name="Data Loads Successfully",
            extractor=_action_succeeds("load_data", lambda s: (str(s.data_file),)),
            kind=MEASUREMENT,
        ),
        TestCase(
            name="Data Load Time",
            extractor=_timing("load_data"),
            kind=MEASUREMENT,
            footnote=TIMING_FOOTNOTE,
        ),
        TestCase(name="X Profile Within Gamma", extractor=profile("x"), comparator=gamma, footnote=gamma_note),
        TestCase(name="Y Profile Within Gamma", extractor=profile("y"), comparator=gamma, footnote=gamma_note),
        TestCase(
            name="Positive Diagonal Profile Within Gamma",
            extractor=profile("pdiag"),
            comparator=gamma,
            min_version=MULTI_REFERENCE_VERSION,
            footnote=gamma_note,
        ),
        TestCase(
            name="Negative Diagonal Profile Within Gamma",
            extractor=profile("ndiag"),
            comparator=gamma,
            min_version=MULTI_REFERENCE_VERSION,
            footnote=gamma_note,
        ),
        TestCase(
            name="Statistics Within Tolerance",
            extractor=scaled("statistics"),
            comparator=absolute_tolerance(statistics_epsilon),
        ),
        TestCase(
            name="Normalized Profile Within Tolerance",
            extractor=scaled("normalized"),
            comparator=absolute_tolerance(normalized_epsilon),
        ),
        TestCase(
            name="Printable Report Generates",
            extractor=_action_succeeds("print_report", lambda s: ()),
            kind=MEASUREMENT,
            min_version=PRINT_REPORT_VERSION,
        ),
    ]
    return TestSuite("profiler", cases, description="Beam profile analysis regression suite")


def _resolve(value: Any) -> Any:
    if isinstance(value, str):
        return import_string(value)
    return value


def _analysis(session: VersionSession, analyzer: Optional[Analyzer]) -> AnalysisSummary:
    return session.memo("analysis", lambda: summarize_tree(session.install_path, analyzer))


def _seconds(value: float) -> str:
    return f"{value:0.3f} sec"


def _action_succeeds(
    action: str, arguments: Callable[[VersionSession], Tuple[Any, ...]]
) -> Callable[[VersionSession], Verdict]:
    def extract(session: VersionSession) -> Verdict:
        try:
            session.invoke_action(action, *arguments(session))
        except ActionError:
            return Verdict.FAIL
        return Verdict.PASS

    return extract


def _timing(action: str) -> Callable[[VersionSession], str]:
    def extract(session: VersionSession) -> str:
        if action not in session.timings:
            raise ActionError(f"{session.label}: '{action}' was never run")
        return _seconds(session.timings[action])

    return extract


def _rejects_invalid_data(session: VersionSession) -> Verdict:
    # the application is expected to refuse a file that is not profile data
    if not session.has_action("load_data"):
        return Verdict.FAIL
    with tempfile.TemporaryDirectory(prefix="vermatrix-") as tmp:
        bogus = Path(tmp) / "not_a_profile.prm"
        bogus.write_text("this is not profiler data\n", encoding="utf-8")
        try:
            session.invoke_action("load_data", str(bogus))
        except ActionError:
            return Verdict.PASS
    return Verdict.FAIL


def _reference_names(session: VersionSession, value: Any) -> Optional[Tuple[str, str]]:
    names = session.read_state("references")
    if not names:
        return None
    return "Reference Data", " ".join(str(name) for name in names)


def _profile_extractor(field: str, legacy_scale: float) -> Callable[[VersionSession], Any]:
    legacy_before = resolve_version(MULTI_REFERENCE_VERSION)

    def extract(session: VersionSession) -> Tuple[Any, Any]:
        positions, values = session.read_state(f"profiles.{field}")
        if session.resolved_version < legacy_before and legacy_scale != 1.0:
            positions = [float(p) * legacy_scale for p in positions]
        return positions, values

    return extract


def _scaled_extractor(path: str, legacy_scale: float) -> Callable[[VersionSession], Any]:
    legacy_before = resolve_version(MULTI_REFERENCE_VERSION)

    def extract(session: VersionSession) -> Any:
        value = session.read_state(path)
        if session.resolved_version >= legacy_before or legacy_scale == 1.0:
            return value
        if isinstance(value, Mapping):
            return {key: float(item) * legacy_scale for key, item in value.items()}
        return [float(item) * legacy_scale for item in value]

    return extract
