"""Pack model and package.yml manifest loading."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packs.package_todo import (
    PACKAGE_TODO_FILENAME,
    PackageTodo,
    PackageTodoError,
    ViolationIdentifier,
)

PACKAGE_YML_FILENAME = "package.yml"
ROOT_PACK_NAME = "."


class CheckerSetting(str, Enum):
    """Enforcement level of a pack's dependency checker."""

    OFF = "false"
    ON = "true"
    STRICT = "strict"


class ManifestError(ValueError):
    """Raised when a package.yml manifest is malformed."""


class PackManifest(BaseModel):
    """Fields read from a pack's package.yml."""

    model_config = ConfigDict(extra="ignore")

    dependencies: frozenset[str] = Field(default_factory=frozenset)
    ignored_dependencies: frozenset[str] = Field(default_factory=frozenset)
    enforce_dependencies: CheckerSetting = Field(default=CheckerSetting.OFF)

    @field_validator("dependencies", "ignored_dependencies", mode="before")
    @classmethod
    def validate_pack_names(cls, v: Any) -> Any:
        if v is None:
            return frozenset()
        if not isinstance(v, list) or not all(isinstance(name, str) for name in v):
            msg = "must be a list of pack names"
            raise ValueError(msg)
        return frozenset(v)

    @field_validator("enforce_dependencies", mode="before")
    @classmethod
    def validate_enforce_dependencies(cls, v: Any) -> Any:
        """Accept YAML booleans as well as the strings false/true/strict."""
        if v is None:
            return CheckerSetting.OFF
        if isinstance(v, bool):
            return CheckerSetting.ON if v else CheckerSetting.OFF
        if isinstance(v, str) and v in {setting.value for setting in CheckerSetting}:
            return CheckerSetting(v)
        msg = f"enforce_dependencies must be one of false, true, strict (got {v!r})"
        raise ValueError(msg)


@dataclass(frozen=True)
class Pack:
    """A named, directory-scoped module.

    Identity is the pack name: two packs with the same name compare and hash
    equal whatever their other fields hold.
    """

    name: str
    yml: Path = field(compare=False)
    relative_path: Path = field(compare=False)
    dependencies: frozenset[str] = field(default_factory=frozenset, compare=False)
    ignored_dependencies: frozenset[str] = field(
        default_factory=frozenset, compare=False
    )
    package_todo: PackageTodo = field(default_factory=PackageTodo, compare=False)
    enforce_dependencies: CheckerSetting = field(
        default=CheckerSetting.OFF, compare=False
    )

    @property
    def root(self) -> Path:
        """Absolute directory owning this pack's files."""
        return self.yml.parent

    def all_violations(self) -> list[ViolationIdentifier]:
        """Flatten the ledger into one identifier per (violation type, file)."""
        violations: list[ViolationIdentifier] = []
        by_defining_pack = self.package_todo.violations_by_defining_pack
        for defining_pack_name, groups in by_defining_pack.items():
            for constant_name, group in groups.items():
                for violation_type in group.violation_types:
                    for file in group.files:
                        violations.append(
                            ViolationIdentifier(
                                violation_type=violation_type,
                                file=file,
                                constant_name=constant_name,
                                referencing_pack_name=self.name,
                                defining_pack_name=defining_pack_name,
                            )
                        )
        return violations

    def default_autoload_roots(self) -> list[Path]:
        """Directories matching app/* and app/*/concerns under the pack root."""
        app_dir = self.root / "app"
        if not app_dir.is_dir():
            return []
        roots = sorted(path for path in app_dir.glob("*") if path.is_dir())
        roots.extend(
            sorted(path for path in app_dir.glob("*/concerns") if path.is_dir())
        )
        return roots


def _pack_name(relative_path: Path) -> str:
    posix = relative_path.as_posix()
    return ROOT_PACK_NAME if posix in {"", "."} else posix


def load_pack(absolute_root: Path, yml: Path) -> Pack:
    """Build a Pack from its package.yml and sibling package_todo.yml."""
    try:
        data = yaml.safe_load(yml.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {yml}: {exc}"
        raise ManifestError(msg) from exc

    if data is None:
        data = {}
    if not isinstance(data, dict):
        msg = f"Invalid manifest in {yml}: expected a mapping"
        raise ManifestError(msg)

    try:
        manifest = PackManifest.model_validate(data)
    except ValidationError as exc:
        msg = f"Invalid manifest in {yml}: {exc}"
        raise ManifestError(msg) from exc

    try:
        package_todo = PackageTodo.load(yml.parent / PACKAGE_TODO_FILENAME)
    except PackageTodoError as exc:
        raise ManifestError(str(exc)) from exc

    relative_path = yml.parent.relative_to(absolute_root)
    return Pack(
        name=_pack_name(relative_path),
        yml=yml,
        relative_path=relative_path,
        dependencies=manifest.dependencies,
        ignored_dependencies=manifest.ignored_dependencies,
        package_todo=package_todo,
        enforce_dependencies=manifest.enforce_dependencies,
    )


__all__ = [
    "PACKAGE_YML_FILENAME",
    "ROOT_PACK_NAME",
    "CheckerSetting",
    "ManifestError",
    "Pack",
    "PackManifest",
    "load_pack",
]
