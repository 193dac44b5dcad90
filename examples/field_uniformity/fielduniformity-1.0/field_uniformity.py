"""Beam profile uniformity analysis (release 1.0)."""
from pathlib import Path

import numpy as np

VERSION = "1.0"


def read_profiler_file(path):
    lines = [line.strip() for line in Path(path).read_text(encoding="utf-8").splitlines() if line.strip()]
    if len(lines) < 3 or lines[0] != "PRM":
        raise ValueError("%s is not a profiler file" % path)
    positions = np.array([float(item) for item in lines[1].split(",")])
    values = np.array([float(item) for item in lines[2].split(",")])
    return positions, values


def load_data(state, path):
    positions, values = read_profiler_file(path)
    centre = values.max()
    updated = dict(state)
    updated["profiles"] = {
        "x": (positions.tolist(), values.tolist()),
        "y": (positions.tolist(), values[::-1].tolist()),
    }
    core = values[values >= 0.8 * centre]
    updated["statistics"] = {
        "flatness": float(100.0 * (core.max() - core.min()) / (core.max() + core.min())),
        "symmetry": float(100.0 * abs(values[0] - values[-1]) / centre),
    }
    updated["normalized"] = (values / centre).tolist()
    return updated


class FieldUniformity:
    def __init__(self, unattended=False):
        self.version = VERSION
        self.unattended = unattended
        self.state = {"references": []}
        self.actions = {"load_data": load_data}

    def close(self):
        self.state = None


def launch(unattended=False):
    return FieldUniformity(unattended=unattended)
