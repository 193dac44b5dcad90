from __future__ import annotations

import os
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Callable, List, Optional

import pytest

from vermatrix import bootstrap
from vermatrix.session import ApplicationAdapter

FAKE_APP_MODULE = "field_uniformity"
PROFILE_VALUES = (1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 5.0, 4.0, 3.0, 2.0, 1.0)

FAKE_APP_SOURCE = '''"""Field uniformity profiler stand-in."""

VERSION = "@VERSION@"
OFFSET = @OFFSET@
CRASH = @CRASH@
MULTI_REFERENCE = @MULTI_REFERENCE@
PRINTABLE = @PRINTABLE@


def _parse(path):
    with open(path, encoding="utf-8") as handle:
        lines = [line.strip() for line in handle if line.strip()]
    if len(lines) < 2 or lines[0] != "PRM":
        raise ValueError("not a profiler file: %s" % path)
    return [float(item) for item in lines[1].split(",")]


def _profile(values):
    count = len(values)
    positions = [-5.0 + 10.0 * k / (count - 1) for k in range(count)]
    return positions, [value + OFFSET for value in values]


def load_reference(state, energy):
    updated = dict(state)
    updated["references"] = ["G%s_A" % energy, "G%s_B" % energy]
    updated["refdata"] = {"energy": energy, "depths": [0.5, 1.5, 10.0]}
    return updated


def load_data(state, path):
    values = _parse(path)
    shifted = [value + OFFSET for value in values]
    peak, low = max(shifted), min(shifted)
    profiles = {"x": _profile(values), "y": _profile(list(reversed(values)))}
    if MULTI_REFERENCE:
        profiles["pdiag"] = _profile(values)
        profiles["ndiag"] = _profile(list(reversed(values)))
    updated = dict(state)
    updated["profiles"] = profiles
    updated["statistics"] = {
        "flatness": 100.0 * (peak - low) / (peak + low),
        "symmetry": 100.0 * (shifted[0] - shifted[-1]) / peak,
    }
    updated["normalized"] = [value / peak for value in shifted]
    return updated


def print_report(state):
    if "profiles" not in state:
        raise RuntimeError("nothing to print")


class Application:
    def __init__(self, unattended):
        self.version = VERSION
        self.unattended = unattended
        self.state = {"references": [], "refdata": None}
        self.actions = {"load_data": load_data}
        if MULTI_REFERENCE:
            self.actions["load_reference"] = load_reference
        if PRINTABLE:
            self.actions["print_report"] = print_report

    def close(self):
        self.state = None


def launch(unattended=False):
    if CRASH:
        raise RuntimeError("display could not be opened")
    return Application(unattended)
'''


@pytest.fixture(scope="session", autouse=True)
def setup_vermatrix_registry() -> None:
    """Register built-in suites once for the entire test session."""

    bootstrap()


@pytest.fixture
def make_app(tmp_path: Path) -> Callable[..., Path]:
    """Write one installed version of the profiler stand-in and return its directory."""

    def factory(
        label: str,
        version: str = "1.2.0",
        *,
        offset: float = 0.0,
        crash: bool = False,
        multi_reference: Optional[bool] = None,
        printable: Optional[bool] = None,
    ) -> Path:
        numbers = [int(part) for part in version.split(".")]
        numbers += [0] * (3 - len(numbers))
        if multi_reference is None:
            multi_reference = numbers >= [1, 1, 0]
        if printable is None:
            printable = numbers >= [1, 2, 0]
        root = tmp_path / "versions" / label
        root.mkdir(parents=True)
        source = (
            FAKE_APP_SOURCE.replace("@VERSION@", version)
            .replace("@OFFSET@", repr(float(offset)))
            .replace("@CRASH@", repr(bool(crash)))
            .replace("@MULTI_REFERENCE@", repr(bool(multi_reference)))
            .replace("@PRINTABLE@", repr(bool(printable)))
        )
        (root / f"{FAKE_APP_MODULE}.py").write_text(source, encoding="utf-8")
        return root

    return factory


@pytest.fixture
def make_data(tmp_path: Path) -> Callable[..., Path]:
    """Write a profiler data file."""

    def factory(name: str = "Head1_G90_27p3.prm", values=PROFILE_VALUES) -> Path:
        folder = tmp_path / "test_data"
        folder.mkdir(exist_ok=True)
        path = folder / name
        path.write_text("PRM\n" + ",".join(str(value) for value in values) + "\n", encoding="utf-8")
        return path

    return factory


class StubAdapter(ApplicationAdapter):
    """In-memory application used where no install directory is needed."""

    name = "stub"

    def __init__(
        self,
        version: str = "1.2.0",
        *,
        fail_launch: bool = False,
        fail_close: bool = False,
    ) -> None:
        self._version = version
        self.fail_launch = fail_launch
        self.fail_close = fail_close
        self.launched: List[Any] = []
        self.closed: List[Any] = []

    def launch(self, install_path: Path, *, unattended: bool) -> Any:
        if self.fail_launch:
            raise RuntimeError("no display")
        handle = SimpleNamespace(
            version=self._version,
            unattended=unattended,
            cwd=os.getcwd(),
            state={"counter": 1, "nested": {"values": [1, 2, 3]}},
            actions={},
        )
        handle.actions["increment"] = lambda step=1: handle.state.__setitem__(
            "counter", handle.state["counter"] + step
        )
        handle.actions["explode"] = _explode
        self.launched.append(handle)
        return handle

    def close(self, handle: Any) -> None:
        self.closed.append(handle)
        if self.fail_close:
            raise RuntimeError("window refused to close")


def _explode(*_: Any) -> None:
    raise RuntimeError("kaboom")


@pytest.fixture
def stub_adapter() -> Callable[..., StubAdapter]:
    return StubAdapter
