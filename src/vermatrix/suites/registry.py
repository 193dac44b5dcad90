"""Suite registry implementation."""
from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Iterator

from vermatrix.core import TestSuite
from vermatrix.utils import import_string

SuiteFactory = Callable[..., TestSuite]


class SuiteRegistry:
    """Stores suite factories and exposes lookup utilities."""

    def __init__(self) -> None:
        self._factories: Dict[str, SuiteFactory] = {}

    def register(self, name: str, factory: SuiteFactory) -> SuiteFactory:
        if name in self._factories:
            raise ValueError(f"Suite '{name}' already registered")
        self._factories[name] = factory
        return factory

    def update_or_register(self, name: str, factory: SuiteFactory) -> SuiteFactory:
        self._factories[name] = factory
        return factory

    def get(self, name: str) -> SuiteFactory:
        try:
            return self._factories[name]
        except KeyError as exc:
            raise KeyError(f"Suite '{name}' is not registered") from exc

    def create(self, name: str, **options: Any) -> TestSuite:
        return self.get(name)(**options)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(self._factories)

    def names(self) -> Iterable[str]:
        return tuple(self._factories.keys())


registry = SuiteRegistry()


def register_suite(name: str) -> Callable[[SuiteFactory], SuiteFactory]:
    """Decorator registering a suite factory under ``name``."""

    def decorator(factory: SuiteFactory) -> SuiteFactory:
        return registry.register(name, factory)

    return decorator


def clear_registry() -> None:
    registry._factories.clear()


def resolve_suite(reference: str, **options: Any) -> TestSuite:
    """Build a suite from a registered name or a ``module:attr`` path."""

    if reference in registry:
        return registry.create(reference, **options)
    obj = import_string(reference)
    if isinstance(obj, TestSuite):
        return obj
    if callable(obj):
        suite = obj(**options)
        if isinstance(suite, TestSuite):
            return suite
    raise TypeError(f"'{reference}' is neither a registered suite nor a suite factory")


def load_builtins() -> None:
    from . import profiler  # noqa: WPS433

    registry.update_or_register("builtin.profiler", profiler.build_suite)
    registry.update_or_register("profiler", profiler.build_suite)
