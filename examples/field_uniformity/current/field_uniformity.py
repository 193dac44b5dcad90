"""Beam profile uniformity analysis (release 1.2.0)."""
from __future__ import annotations

from pathlib import Path

import numpy as np

VERSION = "1.2.0"
REFERENCE_ENERGIES = ("90",)


def read_profiler_file(path):
    lines = [line.strip() for line in Path(path).read_text(encoding="utf-8").splitlines() if line.strip()]
    if len(lines) < 3 or lines[0] != "PRM":
        raise ValueError(f"{path} is not a profiler file")
    positions = np.array([float(item) for item in lines[1].split(",")])
    values = np.array([float(item) for item in lines[2].split(",")])
    if positions.shape != values.shape:
        raise ValueError(f"{path} has mismatched positions and values")
    return positions, values


def load_reference(state, energy):
    if energy not in REFERENCE_ENERGIES:
        raise KeyError(f"no reference data for energy {energy}")
    updated = dict(state)
    updated["references"] = [f"G{energy}_X", f"G{energy}_Y", f"G{energy}_DIAG"]
    updated["refdata"] = {"energy": energy, "field_size": 27.3, "depth": 1.5}
    return updated


def load_data(state, path):
    positions, values = read_profiler_file(path)
    centre = values.max()
    updated = dict(state)
    updated["profiles"] = {
        "x": (positions.tolist(), values.tolist()),
        "y": (positions.tolist(), values[::-1].tolist()),
        "pdiag": ((positions * np.sqrt(2)).tolist(), values.tolist()),
        "ndiag": ((positions * np.sqrt(2)).tolist(), values[::-1].tolist()),
    }
    core = values[values >= 0.8 * centre]
    updated["statistics"] = {
        "flatness": float(100.0 * (core.max() - core.min()) / (core.max() + core.min())),
        "symmetry": float(100.0 * abs(values[0] - values[-1]) / centre),
    }
    updated["normalized"] = (values / centre).tolist()
    return updated


def print_report(state):
    if "profiles" not in state:
        raise RuntimeError("load profiler data before printing")
    return state


class FieldUniformity:
    def __init__(self, unattended=False):
        self.version = VERSION
        self.unattended = unattended
        self.state = {"references": [], "refdata": None}
        self.actions = {
            "load_reference": load_reference,
            "load_data": load_data,
            "print_report": print_report,
        }

    def close(self):
        self.state = None


def launch(unattended=False):
    return FieldUniformity(unattended=unattended)
