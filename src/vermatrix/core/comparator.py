"""Verdict rules for comparing a candidate value with the reference value."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

import numpy as np

from vermatrix.analysis.gamma import gamma_index
from vermatrix.errors import ComparisonError

from .models import Cell, Comparator, Verdict

Similarity = Callable[..., Any]


@dataclass(frozen=True)
class SignalDescriptor:
    """Uniformly sampled signal: sample ``k`` sits at ``start + k * width``."""

    start: float
    width: float
    data: np.ndarray

    def positions(self) -> np.ndarray:
        return self.start + self.width * np.arange(self.data.size, dtype=np.float64)


def exact() -> Comparator:
    """Pass iff candidate and reference are structurally equal."""

    def compare(candidate: Any, reference: Any) -> Cell:
        return Verdict.of(deep_equal(candidate, reference))

    return compare


def absolute_tolerance(epsilon: float, *, candidate_scale: float = 1.0) -> Comparator:
    """Pass iff ``max(|candidate * candidate_scale - reference|) < epsilon``.

    ``candidate_scale`` converts the candidate into the reference's units
    (for example 10.0 when the candidate reports centimetres and the
    reference millimetres).
    """

    if epsilon <= 0:
        raise ValueError("epsilon must be positive")

    def compare(candidate: Any, reference: Any) -> Cell:
        if isinstance(candidate, Mapping) or isinstance(reference, Mapping):
            if not (isinstance(candidate, Mapping) and isinstance(reference, Mapping)):
                return Verdict.FAIL
            if set(candidate) != set(reference):
                return Verdict.FAIL
            keys = sorted(reference, key=str)
            candidate = [candidate[key] for key in keys]
            reference = [reference[key] for key in keys]
        actual = as_float_array(candidate) * candidate_scale
        expected = as_float_array(reference)
        if actual.shape != expected.shape:
            return Verdict.FAIL
        if actual.size == 0:
            return Verdict.PASS
        diff = np.abs(actual - expected)
        if np.isnan(diff).any():
            return Verdict.FAIL
        return Verdict.of(float(diff.max()) < epsilon)

    return compare


def similarity_index(
    percent: float,
    distance: float,
    *,
    window: Optional[float] = None,
    global_: bool = True,
    candidate_position_scale: float = 1.0,
    reference_position_scale: float = 1.0,
    similarity: Optional[Similarity] = None,
) -> Comparator:
    """Pass iff every similarity ratio between the two signals is below 1.

    Values are ``(positions, signal)`` pairs. Each signal is normalised by its
    own maximum before comparison. With ``window`` set, only ratios at
    reference positions with ``|x| < window`` decide the verdict.
    """

    if percent <= 0 or distance <= 0:
        raise ValueError("similarity tolerances must be positive")
    function = similarity or gamma_index

    def compare(candidate: Any, reference: Any) -> Cell:
        ref = describe_signal(*_split_signal(reference), position_scale=reference_position_scale)
        cand = describe_signal(*_split_signal(candidate), position_scale=candidate_position_scale)
        ratios = np.asarray(function(ref, cand, percent, distance, global_), dtype=np.float64).ravel()
        if window is not None:
            positions = ref.positions()
            if ratios.size != positions.size:
                raise ComparisonError(
                    f"similarity returned {ratios.size} ratios for {positions.size} reference samples"
                )
            ratios = ratios[np.abs(positions) < window]
        return judge_ratios(ratios)

    return compare


def passthrough() -> Comparator:
    """Report the candidate value unchanged."""

    def compare(candidate: Any, reference: Any) -> Cell:
        return candidate

    return compare


def judge_ratios(ratios: np.ndarray) -> Verdict:
    values = np.asarray(ratios, dtype=np.float64)
    if values.size == 0:
        return Verdict.FAIL
    # NaN compares false, so undefined ratios fail
    return Verdict.of(bool(np.all(values < 1.0)))


def describe_signal(
    positions: Any,
    values: Any,
    *,
    position_scale: float = 1.0,
    normalize: bool = True,
) -> SignalDescriptor:
    pos = np.asarray(positions, dtype=np.float64).ravel() * position_scale
    data = np.asarray(values, dtype=np.float64).ravel()
    if pos.size != data.size:
        raise ComparisonError(f"signal has {pos.size} positions but {data.size} samples")
    if pos.size < 2:
        raise ComparisonError("signal needs at least two samples")
    steps = np.diff(pos)
    width = float(steps[0])
    if width == 0 or not np.all(np.isfinite(steps)):
        raise ComparisonError("signal positions must be strictly spaced")
    if not np.allclose(steps, width):
        pos, data = _resample(pos, data)
        width = float(pos[1] - pos[0])
    if normalize:
        peak = float(np.nanmax(data))
        if not np.isfinite(peak) or peak <= 0:
            raise ComparisonError("signal maximum must be positive to normalise")
        data = data / peak
    return SignalDescriptor(start=float(pos[0]), width=width, data=data)


def _resample(pos: np.ndarray, data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Interpolate a non-uniformly sampled signal onto its finest spacing."""

    steps = np.diff(pos)
    if np.any(steps <= 0):
        raise ComparisonError("non-uniform signal positions must be strictly increasing")
    width = float(steps.min())
    count = int(round((pos[-1] - pos[0]) / width)) + 1
    grid = pos[0] + width * np.arange(count, dtype=np.float64)
    return grid, np.interp(grid, pos, data)


def deep_equal(left: Any, right: Any) -> bool:
    """Structural equality over scalars, strings, arrays, sequences and mappings."""

    if isinstance(left, np.ndarray) or isinstance(right, np.ndarray):
        if isinstance(left, (str, bytes, Mapping)) or isinstance(right, (str, bytes, Mapping)):
            return False
        try:
            a = np.asarray(left)
            b = np.asarray(right)
        except (TypeError, ValueError):
            return False
        return a.shape == b.shape and bool(np.array_equal(a, b))
    if isinstance(left, Mapping) or isinstance(right, Mapping):
        if not (isinstance(left, Mapping) and isinstance(right, Mapping)):
            return False
        if set(left) != set(right):
            return False
        return all(deep_equal(left[key], right[key]) for key in left)
    if _is_sequence(left) or _is_sequence(right):
        if not (_is_sequence(left) and _is_sequence(right)):
            return False
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))
    if isinstance(left, (str, bytes)) != isinstance(right, (str, bytes)):
        return False
    result = left == right
    if isinstance(result, np.ndarray):
        return bool(result.all())
    return bool(result)


def as_float_array(value: Any) -> np.ndarray:
    try:
        return np.asarray(value, dtype=np.float64)
    except (TypeError, ValueError):
        if _is_sequence(value):
            parts = [as_float_array(item).ravel() for item in value]
            return np.concatenate(parts) if parts else np.empty(0, dtype=np.float64)
        raise ComparisonError(f"cannot interpret {type(value).__name__} as numeric data") from None


def _split_signal(value: Any) -> Tuple[Any, Any]:
    if isinstance(value, Mapping):
        try:
            return value["positions"], value["values"]
        except KeyError as exc:
            raise ComparisonError(f"signal mapping missing {exc}") from exc
    if isinstance(value, np.ndarray) and value.ndim == 2 and value.shape[0] == 2:
        return value[0], value[1]
    if _is_sequence(value) and len(value) == 2:
        return value[0], value[1]
    raise ComparisonError("signal must be a (positions, values) pair")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes))
