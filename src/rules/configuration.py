"""Run configuration: packs, file universe and resolver settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from cache.per_file import NoopCache, PerFileCache
from packs.pack import PACKAGE_YML_FILENAME, ManifestError, load_pack
from packs.pack_set import PackSet
from parse.inflections import load_acronyms
from rules.config import ConfigError, load_config, resolve_cache_dir
from scan.files import expand_braces, find_included_files, matches_any

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

    from cache.per_file import Cache
    from packs.pack import Pack
    from rules.config import PacksConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Configuration:
    """Everything a run needs, built once and read-only afterwards."""

    absolute_root: Path
    pack_set: PackSet
    included_files: frozenset[Path] = frozenset()
    cache_enabled: bool = True
    cache_directory: Path | None = None
    experimental_parser: bool = False
    autoload_roots: Mapping[str, str] = field(default_factory=dict)
    ignored_definitions: Mapping[str, frozenset[str]] = field(default_factory=dict)
    acronyms: Mapping[str, str] = field(default_factory=dict)
    max_workers: int | None = None

    def get_cache(self) -> Cache:
        if self.cache_enabled and self.cache_directory is not None:
            return PerFileCache(self.cache_directory)
        return NoopCache()

    def relative_path(self, absolute_path: Path) -> str:
        return absolute_path.relative_to(self.absolute_root).as_posix()

    def autoload_paths(self) -> dict[Path, str]:
        """Autoload directory -> namespace prefix ("" is the top level)."""
        paths: dict[Path, str] = {
            path: "" for pack in self.pack_set.packs
            for path in pack.default_autoload_roots()
        }
        for rel_glob, namespace in self.autoload_roots.items():
            prefix = "" if namespace == "::Object" else namespace
            for pattern in expand_braces(rel_glob):
                for path in sorted(self.absolute_root.glob(pattern)):
                    if path.is_dir():
                        paths[path] = prefix
        return paths


def discover_packs(root: Path, config: PacksConfig) -> list[Pack]:
    """Load every package.yml under the configured package paths."""
    manifests: set[Path] = set()
    root_manifest = root / PACKAGE_YML_FILENAME
    if root_manifest.is_file():
        manifests.add(root_manifest)

    for package_path in config.package_paths:
        for pattern in expand_braces(package_path):
            glob = f"{pattern.rstrip('/')}/{PACKAGE_YML_FILENAME}".lstrip("/")
            for yml in root.glob(glob):
                rel = yml.relative_to(root).as_posix()
                if yml.is_file() and not matches_any(rel, config.exclude):
                    manifests.add(yml)

    packs: list[Pack] = []
    for yml in sorted(manifests):
        try:
            packs.append(load_pack(root, yml))
        except ManifestError as exc:
            raise ConfigError(str(exc)) from exc
    return packs


def load_configuration(root: Path) -> Configuration:
    """Build the run configuration for the repository at root."""
    absolute_root = root.resolve()
    config = load_config(absolute_root)

    pack_set = PackSet.build(discover_packs(absolute_root, config))
    logger.debug(f"Loaded {len(pack_set)} packs from {absolute_root}")

    included_files = frozenset(
        find_included_files(
            absolute_root,
            include_patterns=config.include,
            exclude_patterns=config.exclude,
        )
    )
    logger.debug(f"Found {len(included_files)} included files")

    return Configuration(
        absolute_root=absolute_root,
        pack_set=pack_set,
        included_files=included_files,
        cache_enabled=config.cache,
        cache_directory=resolve_cache_dir(absolute_root, config.cache_directory),
        experimental_parser=config.experimental_parser,
        autoload_roots=dict(config.autoload_roots),
        ignored_definitions={
            constant: frozenset(files)
            for constant, files in config.ignored_definitions.items()
        },
        acronyms=load_acronyms(absolute_root / config.inflections_file),
        max_workers=config.max_workers,
    )


__all__ = ["Configuration", "discover_packs", "load_configuration"]
