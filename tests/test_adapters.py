import sys
from types import SimpleNamespace

import pytest

from vermatrix.session import ApplicationAdapter, ModuleAdapter, build_adapter, resolve_path

from conftest import FAKE_APP_MODULE


class CustomAdapter(ApplicationAdapter):
    name = "custom"

    def __init__(self, greeting: str = "hi") -> None:
        self.greeting = greeting


def test_resolve_path_walks_mappings_sequences_and_attributes() -> None:
    state = {"profiles": {"x": ([0, 1], [5, 6])}, "meta": SimpleNamespace(owner="qa")}
    assert resolve_path(state, "profiles.x.1.0") == 5
    assert resolve_path(state, "meta.owner") == "qa"
    with pytest.raises(KeyError):
        resolve_path(state, "profiles.z")


def test_build_adapter_forms() -> None:
    adapter = build_adapter("app:launch")
    assert isinstance(adapter, ModuleAdapter)
    assert adapter.unattended_flag == "unattended"
    flagged = build_adapter({"entry_point": "app:launch", "unattended_flag": "unitflag"})
    assert flagged.unattended_flag == "unitflag"
    bare = build_adapter({"entry_point": "app:launch", "unattended_flag": None})
    assert bare.unattended_flag is None
    custom = build_adapter({"factory": f"{__name__}:CustomAdapter", "options": {"greeting": "hello"}})
    assert isinstance(custom, CustomAdapter) and custom.greeting == "hello"
    assert build_adapter(custom) is custom
    with pytest.raises(ValueError):
        build_adapter({"options": {}})
    with pytest.raises(ValueError):
        ModuleAdapter("no_callable")


def test_module_adapter_launches_and_threads_state(make_app, make_data, monkeypatch) -> None:
    root = make_app("current")
    monkeypatch.syspath_prepend(str(root))
    adapter = ModuleAdapter(f"{FAKE_APP_MODULE}:launch")
    try:
        handle = adapter.launch(root, unattended=True)
        assert handle.unattended is True
        assert adapter.version(handle) == "1.2.0"
        updated = adapter.invoke(handle, "load_data", [str(make_data())])
        assert handle.state is updated
        assert adapter.read_state(handle, "statistics.symmetry") == 0.0
        adapter.close(handle)
        assert handle.state is None
    finally:
        sys.modules.pop(FAKE_APP_MODULE, None)


def test_module_adapter_refuses_module_outside_install_path(tmp_path) -> None:
    adapter = ModuleAdapter("json:loads")
    with pytest.raises(ImportError):
        adapter.launch(tmp_path, unattended=True)
