"""Suite registry exports."""
from .registry import SuiteRegistry, clear_registry, load_builtins, register_suite, registry, resolve_suite

__all__ = [
    "SuiteRegistry",
    "clear_registry",
    "load_builtins",
    "register_suite",
    "registry",
    "resolve_suite",
]
