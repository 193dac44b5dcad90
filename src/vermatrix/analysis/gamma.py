"""One-dimensional gamma index between two sampled signals.

Signals are described by objects exposing ``start``, ``width`` and ``data``
(sample ``k`` sits at ``start + k * width``). Mappings with the same keys are
accepted too.
"""
from __future__ import annotations

from typing import Any, Tuple

import numpy as np


def gamma_index(
    reference: Any,
    candidate: Any,
    percent: float,
    distance: float,
    global_flag: bool = True,
    *,
    resolution: int = 10,
) -> np.ndarray:
    """Return one gamma ratio per reference sample.

    ``percent`` is the amplitude tolerance as a percentage (of the reference
    maximum when ``global_flag`` is set, otherwise of the local reference
    value) and ``distance`` the distance-to-agreement in position units. The
    candidate is linearly resampled at ``distance / resolution`` before the
    search so coarse grids do not inflate the ratios.
    """

    if percent <= 0 or distance <= 0:
        raise ValueError("gamma tolerances must be positive")
    ref_pos, ref_data = _unpack(reference)
    cand_pos, cand_data = _unpack(candidate)
    cand_pos, cand_data = _refine(cand_pos, cand_data, distance / max(int(resolution), 1))

    if global_flag:
        amplitude = np.full(ref_data.shape, percent / 100.0 * float(np.max(np.abs(ref_data))))
    else:
        amplitude = percent / 100.0 * np.abs(ref_data)
    amplitude = np.maximum(amplitude, np.finfo(np.float64).tiny)

    spatial = (ref_pos[:, None] - cand_pos[None, :]) / distance
    dose = (ref_data[:, None] - cand_data[None, :]) / amplitude[:, None]
    with np.errstate(over="ignore", invalid="ignore"):
        gamma = np.sqrt(np.min(spatial**2 + dose**2, axis=1))
    return gamma


def _unpack(signal: Any) -> Tuple[np.ndarray, np.ndarray]:
    if isinstance(signal, dict):
        start, width, data = signal["start"], signal["width"], signal["data"]
    else:
        start, width, data = signal.start, signal.width, signal.data
    values = np.asarray(data, dtype=np.float64).ravel()
    if values.size == 0:
        raise ValueError("signal has no samples")
    positions = float(start) + float(width) * np.arange(values.size, dtype=np.float64)
    return positions, values


def _refine(positions: np.ndarray, values: np.ndarray, step: float) -> Tuple[np.ndarray, np.ndarray]:
    if positions.size < 2:
        return positions, values
    lo, hi = float(positions.min()), float(positions.max())
    current = abs(float(positions[1] - positions[0]))
    if current <= step:
        return positions, values
    count = int(np.ceil((hi - lo) / step)) + 1
    fine = np.linspace(lo, hi, count)
    order = np.argsort(positions)
    return fine, np.interp(fine, positions[order], values[order])
