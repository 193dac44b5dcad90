"""Reference snapshot produced by the first version run of a data set."""
from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, Mapping


class ReferenceSnapshot(Mapping[int, Any]):
    """Read-only mapping from test case id to the reference value.

    Values are copied on the way in and on every read, so a candidate run can
    never alter what the next candidate is compared against.
    """

    def __init__(self, values: Mapping[int, Any] | None = None) -> None:
        self._values: Dict[int, Any] = copy.deepcopy(dict(values or {}))

    @classmethod
    def empty(cls) -> "ReferenceSnapshot":
        return cls()

    def __getitem__(self, case_id: int) -> Any:
        return copy.deepcopy(self._values[case_id])

    def __iter__(self) -> Iterator[int]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __contains__(self, case_id: object) -> bool:
        return case_id in self._values

    def __repr__(self) -> str:
        return f"ReferenceSnapshot(ids={sorted(self._values)})"


class SnapshotBuilder:
    """Accumulates reference values while the reference run executes."""

    def __init__(self) -> None:
        self._values: Dict[int, Any] = {}
        self._frozen = False

    def record(self, case_id: int, value: Any) -> None:
        if self._frozen:
            raise RuntimeError("Reference snapshot is frozen; no further values may be recorded")
        if case_id in self._values:
            raise ValueError(f"Reference value for case {case_id} already recorded")
        self._values[case_id] = copy.deepcopy(value)

    def freeze(self) -> ReferenceSnapshot:
        self._frozen = True
        return ReferenceSnapshot(self._values)
