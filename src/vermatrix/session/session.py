"""Lifecycle of one isolated application instance for one version."""
from __future__ import annotations

import logging
import os
import sys
import time
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from vermatrix.core.models import VersionDescriptor
from vermatrix.core.versioning import resolve_version
from vermatrix.errors import ActionError, EnvironmentResetFailure, LaunchError

from .adapters import ApplicationAdapter
from .environment import EnvironmentState

logger = logging.getLogger(__name__)


class VersionSession:
    """A running application for one (data set, version) pair.

    Created by :func:`open_session`, never reused. ``close()`` shuts the
    application down and hands the process environment back even when
    earlier steps raised.
    """

    def __init__(
        self,
        descriptor: VersionDescriptor,
        adapter: ApplicationAdapter,
        handle: Any,
        *,
        data_file: Path,
        version: str,
        load_time: float,
        resources: ExitStack,
    ) -> None:
        self.descriptor = descriptor
        self.data_file = Path(data_file)
        self.version = version
        self.resolved_version = resolve_version(version)
        self.load_time = load_time
        self.timings: Dict[str, float] = {}
        self._adapter = adapter
        self._handle = handle
        self._resources = resources
        self._memo: Dict[str, Any] = {}
        self._closed = False

    @property
    def label(self) -> str:
        return self.descriptor.label

    @property
    def install_path(self) -> Path:
        return Path(self.descriptor.install_path)

    @property
    def handle(self) -> Any:
        return self._handle

    @property
    def closed(self) -> bool:
        return self._closed

    def has_action(self, name: str) -> bool:
        return name in self._adapter.actions(self._handle)

    def invoke_action(self, name: str, *args: Any) -> Any:
        """Run a named action, timing it; failures surface as ``ActionError``."""

        self._ensure_open()
        if not self.has_action(name):
            raise ActionError(f"{self.label}: application has no action '{name}'")
        start = time.perf_counter()
        try:
            return self._adapter.invoke(self._handle, name, args)
        except Exception as exc:
            raise ActionError(f"{self.label}: action '{name}' failed: {exc}") from exc
        finally:
            self.timings[name] = time.perf_counter() - start

    def read_state(self, path: str) -> Any:
        self._ensure_open()
        try:
            return self._adapter.read_state(self._handle, path)
        except (KeyError, AttributeError, IndexError, TypeError) as exc:
            raise ActionError(f"{self.label}: state '{path}' is unavailable: {exc}") from exc

    def memo(self, key: str, factory: Callable[[], Any]) -> Any:
        """Compute a value once per session."""

        if key not in self._memo:
            self._memo[key] = factory()
        return self._memo[key]

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        logger.debug("closing session %s", self.label)
        self._resources.close()

    def _ensure_open(self) -> None:
        if self._closed:
            raise ActionError(f"{self.label}: session is closed")

    def __enter__(self) -> "VersionSession":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def open_session(
    descriptor: VersionDescriptor,
    data_file: Path,
    environment: EnvironmentState,
    adapter: ApplicationAdapter,
) -> VersionSession:
    """Reset the environment, then launch ``descriptor`` unattended.

    Raises ``LaunchError`` when the application cannot be started and
    ``EnvironmentResetFailure`` when the environment cannot be restored.
    """

    resources = ExitStack()
    resources.enter_context(environment.claim(descriptor.label, descriptor.install_path))
    try:
        install = Path(descriptor.install_path).resolve()
        if not install.is_dir():
            raise LaunchError(descriptor.label, f"install path {install} is not a directory")
        os.chdir(install)
        sys.path.insert(0, str(install))
        start = time.perf_counter()
        handle = adapter.launch(install, unattended=True)
        load_time = time.perf_counter() - start
        resources.callback(_close_handle, adapter, handle, descriptor.label)
        version = adapter.version(handle)
        session = VersionSession(
            descriptor,
            adapter,
            handle,
            data_file=data_file,
            version=version,
            load_time=load_time,
            resources=resources,
        )
    except (LaunchError, EnvironmentResetFailure):
        resources.close()
        raise
    except Exception as exc:
        resources.close()
        raise LaunchError(descriptor.label, f"{type(exc).__name__}: {exc}") from exc
    logger.info("opened %s (version %s) in %.3f s", descriptor.label, version, load_time)
    return session


def _close_handle(adapter: ApplicationAdapter, handle: Any, label: str) -> None:
    try:
        adapter.close(handle)
    except Exception as exc:
        # the environment reset that follows still has to run
        logger.warning("%s: application did not close cleanly: %s", label, exc)
