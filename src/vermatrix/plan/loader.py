"""YAML loader and validation for matrix plan files."""
from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

import yaml
from jsonschema import Draft7Validator

from vermatrix.errors import PlanError

from .models import AdapterConfig, DataSetConfig, MatrixPlan, VersionConfig

DEFAULT_REPORT = "unit_test_report"
DEFAULT_SUITE = "builtin.profiler"


def load_plan(path: str | Path) -> MatrixPlan:
    """Load and validate a plan file."""
    plan_path = Path(path).expanduser().resolve()
    try:
        raw = yaml.safe_load(plan_path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise PlanError(f"Cannot read plan file {plan_path}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise PlanError("Plan file must contain a mapping at the top level")
    return parse_plan(raw, plan_path.parent)


def parse_plan(raw: Mapping[str, Any], base: Path) -> MatrixPlan:
    errors = sorted(_validator.iter_errors(dict(raw)), key=lambda e: list(e.path))
    if errors:
        messages = "; ".join(f"{'/'.join(map(str, err.path)) or 'root'}: {err.message}" for err in errors)
        raise PlanError(f"Plan schema validation failed: {messages}")
    test_data = tuple(_parse_data_set(entry, base) for entry in raw["test_data"])
    labels = [item.label for item in test_data]
    duplicates = sorted({label for label in labels if labels.count(label) > 1})
    if duplicates:
        raise PlanError(f"Duplicate test data labels: {duplicates}")
    current = _parse_version(raw["current"], base)
    prior = tuple(_parse_version(entry, base) for entry in raw.get("prior", []) or [])
    return MatrixPlan(
        report=str(raw.get("report", DEFAULT_REPORT)),
        title=str(raw.get("title", "")),
        output_dir=_resolve(base, raw.get("output_dir", ".")),
        suite=str(raw.get("suite", DEFAULT_SUITE)),
        suite_options=dict(raw.get("suite_options") or {}),
        adapter=_parse_adapter(raw["adapter"]),
        similarity=raw.get("similarity"),
        analyzer=raw.get("analyzer"),
        repeat_reference=bool(raw.get("repeat_reference", False)),
        test_data=test_data,
        current=current,
        prior=prior,
        plan_dir=base,
    )


def _resolve(base: Path, value: Any) -> Path:
    path = Path(str(value)).expanduser()
    if not path.is_absolute():
        path = base / path
    return path.resolve()


def _parse_data_set(entry: Any, base: Path) -> DataSetConfig:
    if isinstance(entry, str):
        path = _resolve(base, entry)
        return DataSetConfig(label=path.stem, path=path)
    return DataSetConfig(label=str(entry["label"]), path=_resolve(base, entry["path"]))


def _parse_version(entry: Any, base: Path) -> VersionConfig:
    if isinstance(entry, str):
        path = _resolve(base, entry)
        return VersionConfig(label=path.name, path=path)
    path = _resolve(base, entry["path"])
    return VersionConfig(label=str(entry.get("label") or path.name), path=path)


def _parse_adapter(raw: Any) -> AdapterConfig:
    if isinstance(raw, str):
        return AdapterConfig(entry_point=raw)
    return AdapterConfig(
        entry_point=raw.get("entry_point"),
        unattended_flag=raw.get("unattended_flag", "unattended"),
        factory=raw.get("factory"),
        options=dict(raw.get("options") or {}),
    )


_LABELLED_PATH = {
    "oneOf": [
        {"type": "string", "minLength": 1},
        {
            "type": "object",
            "required": ["path"],
            "properties": {
                "label": {"type": "string", "minLength": 1},
                "path": {"type": "string", "minLength": 1},
            },
            "additionalProperties": False,
        },
    ]
}

PLAN_SCHEMA = {
    "type": "object",
    "required": ["adapter", "test_data", "current"],
    "properties": {
        "report": {"type": "string", "minLength": 1},
        "title": {"type": "string"},
        "output_dir": {"type": "string"},
        "suite": {"type": "string", "minLength": 1},
        "suite_options": {"type": "object"},
        "adapter": {
            "oneOf": [
                {"type": "string", "pattern": "^[^:]+:[^:]+$"},
                {
                    "type": "object",
                    "properties": {
                        "entry_point": {"type": "string", "pattern": "^[^:]+:[^:]+$"},
                        "unattended_flag": {"type": ["string", "null"]},
                        "factory": {"type": "string"},
                        "options": {"type": "object"},
                    },
                    "anyOf": [{"required": ["entry_point"]}, {"required": ["factory"]}],
                    "additionalProperties": False,
                },
            ]
        },
        "similarity": {"type": "string"},
        "analyzer": {"type": "string"},
        "repeat_reference": {"type": "boolean"},
        "test_data": {
            "type": "array",
            "minItems": 1,
            "items": {
                "oneOf": [
                    {"type": "string", "minLength": 1},
                    {
                        "type": "object",
                        "required": ["label", "path"],
                        "properties": {
                            "label": {"type": "string", "minLength": 1},
                            "path": {"type": "string", "minLength": 1},
                        },
                        "additionalProperties": False,
                    },
                ]
            },
        },
        "current": _LABELLED_PATH,
        "prior": {"type": "array", "items": _LABELLED_PATH},
    },
    "additionalProperties": False,
}
_validator = Draft7Validator(PLAN_SCHEMA)
