"""Definition-based constant resolution.

Indexes the constants each file explicitly defines (``class``, ``module``
and constant assignments). This handles constants whose location does not
follow the autoload naming convention, at the price of extracting every
included file before any reference can be resolved.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import TYPE_CHECKING

from resolve.base import ConstantResolution, resolve_lexically

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Sequence
    from pathlib import Path

    from references.models import ProcessedFile

logger = logging.getLogger(__name__)


class DefinitionConstantResolver:
    """Resolves constants against definitions observed in source."""

    def __init__(
        self,
        absolute_root: Path,
        processed_files: Iterable[ProcessedFile],
        ignored_definitions: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        ignored = {
            constant: frozenset(files)
            for constant, files in (ignored_definitions or {}).items()
        }
        definitions: defaultdict[str, set[Path]] = defaultdict(set)

        for processed_file in processed_files:
            path = processed_file.absolute_path
            relative_path = path.relative_to(absolute_root).as_posix()
            for definition in processed_file.definitions:
                name = definition.fully_qualified_name
                if relative_path in ignored.get(name, ()):
                    continue
                definitions[name].add(path)

        self._definitions = {
            name: tuple(sorted(paths)) for name, paths in definitions.items()
        }
        logger.debug(
            f"Definition resolver indexed {len(self._definitions)} constants"
        )

    def _lookup(self, fully_qualified_name: str) -> list[ConstantResolution] | None:
        paths = self._definitions.get(fully_qualified_name)
        if not paths:
            return None
        return [ConstantResolution(fully_qualified_name, path) for path in paths]

    def resolve(
        self, name: str, namespace_path: Sequence[str]
    ) -> list[ConstantResolution] | None:
        return resolve_lexically(name, namespace_path, self._lookup)


__all__ = ["DefinitionConstantResolver"]
