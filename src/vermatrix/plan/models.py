"""Data models for matrix plan files."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence


@dataclass(frozen=True)
class DataSetConfig:
    label: str
    path: Path


@dataclass(frozen=True)
class VersionConfig:
    label: str
    path: Path


@dataclass(frozen=True)
class AdapterConfig:
    entry_point: Optional[str] = None
    unattended_flag: Optional[str] = "unattended"
    factory: Optional[str] = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def as_spec(self) -> Mapping[str, Any]:
        return {
            "entry_point": self.entry_point,
            "unattended_flag": self.unattended_flag,
            "factory": self.factory,
            "options": dict(self.options),
        }


@dataclass(frozen=True)
class MatrixPlan:
    report: str
    title: str
    output_dir: Path
    suite: str
    suite_options: Mapping[str, Any]
    adapter: AdapterConfig
    similarity: Optional[str]
    analyzer: Optional[str]
    repeat_reference: bool
    test_data: Sequence[DataSetConfig]
    current: VersionConfig
    prior: Sequence[VersionConfig]
    plan_dir: Path

    def versions(self) -> Sequence[VersionConfig]:
        return (self.current, *self.prior)


@dataclass(frozen=True)
class PlanOptions:
    report_format: str = "markdown"
    report_path: Optional[str] = None
    repeat_reference: Optional[bool] = None
    data_sets: Sequence[str] = field(default_factory=tuple)
    list_only: bool = False
    use_color: bool = True
