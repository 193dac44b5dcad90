"""Numeric encoding of dotted application version strings."""
from __future__ import annotations

import re

VERSION_PATTERN = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?$")


def resolve_version(text: str) -> int:
    """Encode ``major.minor[.patch]`` as ``major*10000 + minor*100 + patch``.

    >>> resolve_version("1.2.3")
    10203
    >>> resolve_version("2.0")
    20000
    """

    match = VERSION_PATTERN.match(str(text).strip())
    if match is None:
        raise ValueError(f"Unrecognized version string {text!r} (expected major.minor[.patch])")
    major, minor, patch = match.groups()
    return int(major) * 10000 + int(minor) * 100 + int(patch or 0)


def format_version(resolved: int) -> str:
    major, rest = divmod(int(resolved), 10000)
    minor, patch = divmod(rest, 100)
    return f"{major}.{minor}.{patch}"
