"""Utility helpers for dynamic imports."""
from __future__ import annotations

import importlib
from typing import Any


def import_string(path: str) -> Any:
    """Return the attribute at the given dotted path.

    Supports ``module:attr`` or ``module.attr`` syntax. ``attr`` may itself be
    dotted (``module:Class.method``).
    """

    if not path:
        raise ValueError("Empty import path provided")
    module_name, sep, attr = path.partition(":")
    if not sep:
        module_name, sep, attr = path.rpartition(".")
    if not module_name or not attr:
        raise ValueError(f"Invalid import path '{path}'")
    module = importlib.import_module(module_name)
    target: Any = module
    for part in attr.split("."):
        try:
            target = getattr(target, part)
        except AttributeError as exc:
            raise AttributeError(f"Module '{module_name}' has no attribute '{attr}'") from exc
    return target
