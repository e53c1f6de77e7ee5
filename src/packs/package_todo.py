"""Violation ledger (package_todo.yml) for a referencing pack.

A ledger records the violations a pack has reviewed and accepted. It is keyed
by defining pack, then by fully-qualified constant name::

    packs/bar:
      "::Bar":
        violations:
        - dependency
        files:
        - packs/foo/app/services/foo.rb
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

if TYPE_CHECKING:
    from pathlib import Path

PACKAGE_TODO_FILENAME = "package_todo.yml"

_HEADER = """\
# This file contains a list of dependencies that are not part of the long term plan for the
# '{pack_name}' package.
# We should generally work to reduce this list over time.
"""


class PackageTodoError(ValueError):
    """Raised when a package_todo.yml file cannot be parsed."""


class ViolationGroup(BaseModel):
    """Accepted violation kinds and the files they occur in, for one constant."""

    model_config = ConfigDict(populate_by_name=True)

    violation_types: list[str] = Field(default_factory=list, alias="violations")
    files: list[str] = Field(default_factory=list)


class PackageTodo(BaseModel):
    """Ledger of previously acknowledged violations."""

    violations_by_defining_pack: dict[str, dict[str, ViolationGroup]] = Field(
        default_factory=dict
    )

    @classmethod
    def from_mapping(cls, data: Any) -> PackageTodo:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            msg = "package_todo must be a mapping of defining pack -> constants"
            raise PackageTodoError(msg)
        try:
            return cls.model_validate({"violations_by_defining_pack": data})
        except ValidationError as exc:
            raise PackageTodoError(str(exc)) from exc

    @classmethod
    def from_yaml(cls, text: str) -> PackageTodo:
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            msg = f"Invalid YAML: {exc}"
            raise PackageTodoError(msg) from exc
        return cls.from_mapping(data)

    @classmethod
    def load(cls, path: Path) -> PackageTodo:
        """Load a ledger file; a missing file is an empty ledger."""
        if not path.is_file():
            return cls()
        try:
            return cls.from_yaml(path.read_text(encoding="utf-8"))
        except PackageTodoError as exc:
            msg = f"Invalid package todo in {path}: {exc}"
            raise PackageTodoError(msg) from exc

    def to_mapping(self) -> dict[str, dict[str, dict[str, list[str]]]]:
        return {
            defining_pack: {
                constant_name: {
                    "violations": list(group.violation_types),
                    "files": list(group.files),
                }
                for constant_name, group in sorted(groups.items())
            }
            for defining_pack, groups in sorted(
                self.violations_by_defining_pack.items()
            )
        }

    def to_yaml(self, pack_name: str | None = None) -> str:
        body = yaml.safe_dump(
            self.to_mapping(), sort_keys=True, default_flow_style=False
        )
        if pack_name is None:
            return body
        return _HEADER.format(pack_name=pack_name) + body

    def is_empty(self) -> bool:
        return not any(self.violations_by_defining_pack.values())


@dataclass(frozen=True, order=True)
class ViolationIdentifier:
    """One flattened (violation type, file, constant) entry of a ledger."""

    violation_type: str
    file: str
    constant_name: str
    referencing_pack_name: str
    defining_pack_name: str


__all__ = [
    "PACKAGE_TODO_FILENAME",
    "PackageTodo",
    "PackageTodoError",
    "ViolationGroup",
    "ViolationIdentifier",
]
