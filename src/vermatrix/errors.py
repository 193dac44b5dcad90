"""Exception hierarchy shared across vermatrix subsystems."""
from __future__ import annotations


class VermatrixError(Exception):
    """Base class for all vermatrix errors."""


class LaunchError(VermatrixError):
    """The target application could not be started for a version.

    Fatal to that version's column only; the matrix continues.
    """

    def __init__(self, label: str, message: str) -> None:
        super().__init__(f"{label}: {message}")
        self.label = label


class ActionError(VermatrixError):
    """A named action or state read failed inside a running session."""


class EnvironmentResetFailure(VermatrixError):
    """Process-wide state could not be restored to its baseline.

    Fatal to the whole matrix run, since every later result could be
    contaminated by the previous version.
    """


class ComparisonError(VermatrixError):
    """Comparator inputs could not be interpreted."""


class PlanError(VermatrixError, ValueError):
    """Plan file is missing, malformed, or fails schema validation."""
