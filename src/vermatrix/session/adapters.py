"""Adapters exposing a target application's actions and state by name."""
from __future__ import annotations

import importlib
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Sequence

from vermatrix.utils import import_string


class ApplicationAdapter:
    """Capability interface between a session and one kind of application.

    The orchestrator never touches application internals directly; it goes
    through ``launch``, ``actions``, ``state`` and ``close``.
    """

    name: str = ""

    def launch(self, install_path: Path, *, unattended: bool) -> Any:
        raise NotImplementedError

    def version(self, handle: Any) -> str:
        return str(getattr(handle, "version"))

    def actions(self, handle: Any) -> Mapping[str, Callable[..., Any]]:
        return getattr(handle, "actions", None) or {}

    def state(self, handle: Any) -> Any:
        return getattr(handle, "state", handle)

    def invoke(self, handle: Any, name: str, args: Sequence[Any]) -> Any:
        return self.actions(handle)[name](*args)

    def read_state(self, handle: Any, path: str) -> Any:
        return resolve_path(self.state(handle), path)

    def close(self, handle: Any) -> None:
        closer = getattr(handle, "close", None)
        if callable(closer):
            closer()


class ModuleAdapter(ApplicationAdapter):
    """Application shipped as an importable module inside its install directory.

    ``entry_point`` is ``module:callable``; the callable returns a handle with
    ``version``, ``state`` and ``actions``. Actions receive the current state
    first and may return a replacement state.
    """

    name = "module"

    def __init__(self, entry_point: str, *, unattended_flag: Optional[str] = "unattended") -> None:
        module_name, sep, attr = entry_point.partition(":")
        if not sep or not module_name or not attr:
            raise ValueError(f"entry_point must look like 'module:callable', got {entry_point!r}")
        self.entry_point = entry_point
        self.module_name = module_name
        self.attr = attr
        self.unattended_flag = unattended_flag

    def launch(self, install_path: Path, *, unattended: bool) -> Any:
        module = importlib.import_module(self.module_name)
        origin = getattr(module, "__file__", None)
        root = Path(install_path).resolve()
        if origin is None or not Path(origin).resolve().is_relative_to(root):
            raise ImportError(
                f"module '{self.module_name}' resolved to {origin}, outside install path {root}"
            )
        entry = getattr(module, self.attr, None)
        if not callable(entry):
            raise AttributeError(f"'{self.entry_point}' is not callable")
        if unattended and self.unattended_flag:
            return entry(**{self.unattended_flag: True})
        return entry()

    def invoke(self, handle: Any, name: str, args: Sequence[Any]) -> Any:
        current = self.state(handle)
        result = self.actions(handle)[name](current, *args)
        if result is None:
            return current
        if hasattr(handle, "state"):
            handle.state = result
        return result


def resolve_path(root: Any, path: str) -> Any:
    """Walk a dotted path through mappings, sequences and attributes."""

    target = root
    for part in path.split("."):
        if isinstance(target, Mapping):
            target = target[part]
        elif part.isdigit() and isinstance(target, Sequence) and not isinstance(target, str):
            target = target[int(part)]
        else:
            target = getattr(target, part)
    return target


def build_adapter(spec: Any) -> ApplicationAdapter:
    """Build an adapter from a plan entry, an import path, or an instance."""

    if isinstance(spec, ApplicationAdapter):
        return spec
    if isinstance(spec, str):
        return ModuleAdapter(spec)
    if isinstance(spec, Mapping):
        factory = spec.get("factory")
        options = dict(spec.get("options") or {})
        if factory:
            obj = import_string(str(factory))
            adapter = obj(**options) if callable(obj) else obj
            if not isinstance(adapter, ApplicationAdapter):
                raise TypeError(f"Adapter factory '{factory}' did not produce an ApplicationAdapter")
            return adapter
        entry_point = spec.get("entry_point")
        if not entry_point:
            raise ValueError("adapter requires 'entry_point' or 'factory'")
        flag = spec.get("unattended_flag", "unattended")
        return ModuleAdapter(str(entry_point), unattended_flag=flag or None)
    raise TypeError(f"Unsupported adapter specification {spec!r}")
