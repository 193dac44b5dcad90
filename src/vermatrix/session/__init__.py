"""Version session lifecycle, environment isolation and application adapters."""
from .adapters import ApplicationAdapter, ModuleAdapter, build_adapter, resolve_path
from .environment import EnvironmentState
from .session import VersionSession, open_session

__all__ = [
    "ApplicationAdapter",
    "EnvironmentState",
    "ModuleAdapter",
    "VersionSession",
    "build_adapter",
    "open_session",
    "resolve_path",
]
