"""Single-pass reference extraction with injected per-reference fields.

``all_references`` knows nothing about packs: it extracts and resolves the
included files against an autoload map and asks an ``ExtraReferenceFields``
strategy for additional string fields per reference. ``PackNames`` is the
strategy that attaches referencing and defining pack names.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from parse.treesitter_ruby import extract_file
from references.models import Reference, SourceLocation
from resolve.zeitwerk import ZeitwerkConstantResolver
from utils import parallel_map

if TYPE_CHECKING:
    from collections.abc import Mapping, Set
    from pathlib import Path

    from packs.pack_set import PackSet
    from references.models import ProcessedFile
    from rules.configuration import Configuration

logger = logging.getLogger(__name__)

REFERENCING_PACK_NAME = "referencing_pack_name"
DEFINING_PACK_NAME = "defining_pack_name"


class ExtraReferenceFields(Protocol):
    def extra_reference_fields(
        self,
        relative_referencing_file: str,
        relative_defining_file: str | None,
    ) -> dict[str, str]: ...


@dataclass(frozen=True)
class RawReference:
    """A resolved reference as produced by the single-pass extractor."""

    constant_name: str
    relative_referencing_file: str
    relative_defining_file: str | None
    source_location: SourceLocation
    extra_fields: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ReferenceExtractionConfig:
    absolute_root: Path
    autoload_paths: Mapping[Path, str]
    acronyms: Mapping[str, str]
    included_files: Set[Path]
    extra_reference_fields_fn: ExtraReferenceFields | None = None
    max_workers: int | None = None


class PackNames:
    """Attaches pack names by directory-prefix ownership of relative paths."""

    def __init__(self, absolute_root: Path, pack_set: PackSet) -> None:
        self._absolute_root = absolute_root
        self._pack_set = pack_set

    def find_pack_name(self, relative_path: str) -> str | None:
        return self._pack_set.for_file(self._absolute_root / relative_path)

    def extra_reference_fields(
        self,
        relative_referencing_file: str,
        relative_defining_file: str | None,
    ) -> dict[str, str]:
        extra_fields: dict[str, str] = {}
        referencing_pack = self.find_pack_name(relative_referencing_file)
        if referencing_pack is not None:
            extra_fields[REFERENCING_PACK_NAME] = referencing_pack
        if relative_defining_file is not None:
            defining_pack = self.find_pack_name(relative_defining_file)
            if defining_pack is not None:
                extra_fields[DEFINING_PACK_NAME] = defining_pack
        return extra_fields


def _raw_references_for_file(
    config: ReferenceExtractionConfig,
    resolver: ZeitwerkConstantResolver,
    processed_file: ProcessedFile,
) -> list[RawReference]:
    relative_referencing_file = processed_file.absolute_path.relative_to(
        config.absolute_root
    ).as_posix()

    records: list[RawReference] = []
    for unresolved in processed_file.unresolved_references:
        resolutions = resolver.resolve(unresolved.name, unresolved.namespace_path)
        candidates: list[tuple[str, str | None]]
        if resolutions:
            candidates = [
                (
                    resolution.fully_qualified_name,
                    resolution.absolute_path_of_definition.relative_to(
                        config.absolute_root
                    ).as_posix(),
                )
                for resolution in resolutions
            ]
        else:
            name = unresolved.name
            candidates = [(name if name.startswith("::") else f"::{name}", None)]

        for constant_name, relative_defining_file in candidates:
            extra_fields: dict[str, str] = {}
            if config.extra_reference_fields_fn is not None:
                extra_fields = config.extra_reference_fields_fn.extra_reference_fields(
                    relative_referencing_file, relative_defining_file
                )
            records.append(
                RawReference(
                    constant_name=constant_name,
                    relative_referencing_file=relative_referencing_file,
                    relative_defining_file=relative_defining_file,
                    source_location=unresolved.location,
                    extra_fields=extra_fields,
                )
            )
    return records


def all_references(config: ReferenceExtractionConfig) -> list[RawReference]:
    """Extract and resolve every included file in one pass, without caching."""
    resolver = ZeitwerkConstantResolver(config.autoload_paths, config.acronyms)
    processed_files = parallel_map(
        extract_file, sorted(config.included_files), max_workers=config.max_workers
    )
    per_file = parallel_map(
        lambda processed_file: _raw_references_for_file(
            config, resolver, processed_file
        ),
        processed_files,
        max_workers=config.max_workers,
    )
    return list(itertools.chain.from_iterable(per_file))


def get_all_references_standalone(
    configuration: Configuration,
    absolute_paths: Set[Path],
) -> list[Reference]:
    """Resolve references through the single-pass extractor.

    References from files that belong to no pack are dropped.
    """
    extraction_config = ReferenceExtractionConfig(
        absolute_root=configuration.absolute_root,
        autoload_paths=configuration.autoload_paths(),
        acronyms=configuration.acronyms,
        included_files=absolute_paths,
        extra_reference_fields_fn=PackNames(
            configuration.absolute_root, configuration.pack_set
        ),
        max_workers=configuration.max_workers,
    )

    references = [
        Reference(
            constant_name=raw.constant_name,
            defining_pack_name=raw.extra_fields.get(DEFINING_PACK_NAME),
            relative_defining_file=raw.relative_defining_file,
            referencing_pack_name=raw.extra_fields[REFERENCING_PACK_NAME],
            relative_referencing_file=raw.relative_referencing_file,
            source_location=raw.source_location,
        )
        for raw in all_references(extraction_config)
        if REFERENCING_PACK_NAME in raw.extra_fields
    ]
    logger.debug(f"Standalone extractor resolved {len(references)} references")
    return references


__all__ = [
    "ExtraReferenceFields",
    "PackNames",
    "RawReference",
    "ReferenceExtractionConfig",
    "all_references",
    "get_all_references_standalone",
]
