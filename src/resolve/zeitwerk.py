"""Convention-based constant resolution over autoload roots.

Every Ruby file below an autoload root is expected to define the constant
named after its path: ``app/models/user_profile.rb`` defines
``::UserProfile`` and ``app/services/api/client.rb`` defines
``::API::Client`` when ``API`` is a registered acronym. File contents are
never read.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from parse.inflections import camelize
from resolve.base import ConstantResolution, resolve_lexically

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

GLOBAL_NAMESPACES = frozenset({"", "::Object", "Object"})


def _namespace_parts(namespace: str) -> list[str]:
    if namespace in GLOBAL_NAMESPACES:
        return []
    return [part for part in namespace.split("::") if part]


def _owning_root(path: Path, roots: Sequence[Path]) -> Path | None:
    """Most specific autoload root containing path."""
    owner: Path | None = None
    for root in roots:
        if path.is_relative_to(root) and (
            owner is None or len(root.parts) > len(owner.parts)
        ):
            owner = root
    return owner


def build_file_map(
    autoload_paths: Mapping[Path, str],
    acronyms: Mapping[str, str] | None = None,
) -> dict[str, Path]:
    """Map the expected fully-qualified constant of each file to its path."""
    roots = sorted(autoload_paths)
    file_map: dict[str, Path] = {}

    for root in roots:
        if not root.is_dir():
            continue
        for path in sorted(root.rglob("*.rb")):
            if not path.is_file() or _owning_root(path, roots) != root:
                continue

            segments = path.relative_to(root).with_suffix("").parts
            parts = _namespace_parts(autoload_paths[root])
            parts.extend(camelize(segment, acronyms) for segment in segments)
            constant_name = "::" + "::".join(parts)

            existing = file_map.get(constant_name)
            if existing is not None and existing <= path:
                logger.debug(
                    f"{constant_name} expected in both {existing} and {path}; "
                    f"keeping {existing}"
                )
                continue
            file_map[constant_name] = path

    return file_map


class ZeitwerkConstantResolver:
    """Resolves constants by the autoloader's file naming convention."""

    def __init__(
        self,
        autoload_paths: Mapping[Path, str],
        acronyms: Mapping[str, str] | None = None,
    ) -> None:
        self._file_map = build_file_map(autoload_paths, acronyms)
        logger.debug(
            f"Convention resolver indexed {len(self._file_map)} constants "
            f"from {len(autoload_paths)} autoload roots"
        )

    @property
    def file_map(self) -> Mapping[str, Path]:
        return self._file_map

    def _lookup(self, fully_qualified_name: str) -> list[ConstantResolution] | None:
        path = self._file_map.get(fully_qualified_name)
        if path is None:
            return None
        return [ConstantResolution(fully_qualified_name, path)]

    def resolve(
        self, name: str, namespace_path: Sequence[str]
    ) -> list[ConstantResolution] | None:
        return resolve_lexically(name, namespace_path, self._lookup)


__all__ = ["GLOBAL_NAMESPACES", "ZeitwerkConstantResolver", "build_file_map"]
