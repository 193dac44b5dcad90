"""Exclusive owner of the process-wide state shared by sequential sessions."""
from __future__ import annotations

import importlib
import logging
import os
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from vermatrix.errors import EnvironmentResetFailure

logger = logging.getLogger(__name__)


class EnvironmentState:
    """Baseline of ``sys.path``, working directory and ``os.environ``.

    Every version of the application runs in the same interpreter, so
    anything one version leaves behind (search path entries, the working
    directory, environment variables, imported modules) would shadow the
    next. ``reset()`` restores the baseline captured at construction and
    drops every module imported from an install directory that a session
    has claimed.
    """

    def __init__(self, *, restore_environ: bool = True) -> None:
        self._baseline_path: List[str] = list(sys.path)
        self._baseline_cwd = os.getcwd()
        self._baseline_environ: Optional[Dict[str, str]] = dict(os.environ) if restore_environ else None
        self._claimed: List[Path] = []
        self._owner: Optional[str] = None

    @property
    def baseline_cwd(self) -> str:
        return self._baseline_cwd

    @property
    def owner(self) -> Optional[str]:
        return self._owner

    def reset(self) -> None:
        """Restore the baseline; raises ``EnvironmentResetFailure`` on any error."""

        try:
            sys.path[:] = self._baseline_path
            os.chdir(self._baseline_cwd)
            if self._baseline_environ is not None and dict(os.environ) != self._baseline_environ:
                os.environ.clear()
                os.environ.update(self._baseline_environ)
            purged = self._purge_modules()
            importlib.invalidate_caches()
        except Exception as exc:
            raise EnvironmentResetFailure(f"could not restore baseline environment: {exc}") from exc
        if purged:
            logger.debug("environment reset purged %d module(s)", purged)

    @contextmanager
    def claim(self, label: str, install_path: Path) -> Iterator["EnvironmentState"]:
        """Hold the environment for one session, resetting on entry and exit."""

        if self._owner is not None:
            raise EnvironmentResetFailure(
                f"'{label}' cannot claim the environment while '{self._owner}' holds it"
            )
        self.reset()
        root = Path(install_path).resolve()
        if root not in self._claimed:
            self._claimed.append(root)
        self._owner = label
        try:
            yield self
        finally:
            self._owner = None
            self.reset()

    def _purge_modules(self) -> int:
        if not self._claimed:
            return 0
        doomed = [
            name
            for name, module in list(sys.modules.items())
            if _module_within(module, self._claimed)
        ]
        for name in doomed:
            sys.modules.pop(name, None)
        return len(doomed)


def _module_within(module: object, roots: List[Path]) -> bool:
    origin = getattr(module, "__file__", None)
    if not origin:
        return False
    try:
        path = Path(origin).resolve()
    except OSError:
        return False
    return any(path.is_relative_to(root) for root in roots)
