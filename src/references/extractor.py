"""Turns files into fully resolved references.

Pipeline: cached extraction per file (in parallel), constant resolution per
unresolved reference (in parallel per file), pack lookup for both ends of
each reference, then concatenation. Output order across files is not
stable; callers that need determinism sort with ``reference_sort_key``.
"""

from __future__ import annotations

import itertools
import logging
from typing import TYPE_CHECKING

from references.models import Reference, SourceLocation
from resolve.definitions import DefinitionConstantResolver
from resolve.zeitwerk import ZeitwerkConstantResolver
from utils import parallel_map

if TYPE_CHECKING:
    from collections.abc import Iterable, Set
    from pathlib import Path

    from cache.per_file import Cache
    from references.models import ProcessedFile, UnresolvedReference
    from resolve.base import ConstantResolver
    from rules.configuration import Configuration

logger = logging.getLogger(__name__)


def process_files_with_cache(
    absolute_paths: Iterable[Path],
    cache: Cache,
    *,
    max_workers: int | None = None,
) -> list[ProcessedFile]:
    """Extract every file through the cache, one work unit per file."""
    return parallel_map(
        cache.get_or_extract, sorted(absolute_paths), max_workers=max_workers
    )


def get_zeitwerk_constant_resolver(
    configuration: Configuration,
) -> ZeitwerkConstantResolver:
    return ZeitwerkConstantResolver(
        configuration.autoload_paths(), configuration.acronyms
    )


def get_definition_constant_resolver(
    configuration: Configuration,
    all_processed_files: Iterable[ProcessedFile],
) -> DefinitionConstantResolver:
    return DefinitionConstantResolver(
        configuration.absolute_root,
        all_processed_files,
        configuration.ignored_definitions,
    )


def _absolute_name(name: str) -> str:
    return name if name.startswith("::") else f"::{name}"


def references_from_unresolved_reference(
    configuration: Configuration,
    constant_resolver: ConstantResolver,
    unresolved_reference: UnresolvedReference,
    referencing_file: Path,
    referencing_pack_name: str,
) -> list[Reference]:
    """Expand one constant use into a Reference per candidate definition.

    An unresolvable constant yields a single Reference with no defining
    pack or file.
    """
    relative_referencing_file = configuration.relative_path(referencing_file)
    source_location = SourceLocation(
        line=unresolved_reference.location.line,
        column=unresolved_reference.location.column,
    )

    resolutions = constant_resolver.resolve(
        unresolved_reference.name, unresolved_reference.namespace_path
    )
    if not resolutions:
        return [
            Reference(
                constant_name=_absolute_name(unresolved_reference.name),
                defining_pack_name=None,
                relative_defining_file=None,
                referencing_pack_name=referencing_pack_name,
                relative_referencing_file=relative_referencing_file,
                source_location=source_location,
            )
        ]

    pack_set = configuration.pack_set
    return [
        Reference(
            constant_name=resolution.fully_qualified_name,
            defining_pack_name=pack_set.for_file(
                resolution.absolute_path_of_definition
            ),
            relative_defining_file=configuration.relative_path(
                resolution.absolute_path_of_definition
            ),
            referencing_pack_name=referencing_pack_name,
            relative_referencing_file=relative_referencing_file,
            source_location=source_location,
        )
        for resolution in resolutions
    ]


def references_for_processed_file(
    configuration: Configuration,
    constant_resolver: ConstantResolver,
    processed_file: ProcessedFile,
) -> list[Reference]:
    referencing_pack_name = configuration.pack_set.for_file(
        processed_file.absolute_path
    )
    if referencing_pack_name is None:
        logger.debug(f"{processed_file.absolute_path} belongs to no pack; skipping")
        return []

    references: list[Reference] = []
    for unresolved_reference in processed_file.unresolved_references:
        references.extend(
            references_from_unresolved_reference(
                configuration,
                constant_resolver,
                unresolved_reference,
                processed_file.absolute_path,
                referencing_pack_name,
            )
        )
    return references


def get_all_references(
    configuration: Configuration,
    absolute_paths: Set[Path],
    *,
    cache: Cache | None = None,
) -> list[Reference]:
    """Resolve every constant reference in the given files.

    The definition-based resolver (``experimental_parser``) first extracts the
    whole included file universe; the convention resolver only extracts the
    files being checked.
    """
    if cache is None:
        cache = configuration.get_cache()
    max_workers = configuration.max_workers

    logger.debug("Getting unresolved references (using cache if possible)")
    constant_resolver: ConstantResolver
    if configuration.experimental_parser:
        logger.debug("Using definition-based constant resolution")
        all_processed_files = process_files_with_cache(
            configuration.included_files | absolute_paths,
            cache,
            max_workers=max_workers,
        )
        constant_resolver = get_definition_constant_resolver(
            configuration, all_processed_files
        )
        processed_files = [
            processed_file
            for processed_file in all_processed_files
            if processed_file.absolute_path in absolute_paths
        ]
    else:
        logger.debug("Using convention-based constant resolution")
        processed_files = process_files_with_cache(
            absolute_paths, cache, max_workers=max_workers
        )
        constant_resolver = get_zeitwerk_constant_resolver(configuration)

    logger.debug("Turning unresolved references into fully qualified references")
    per_file = parallel_map(
        lambda processed_file: references_for_processed_file(
            configuration, constant_resolver, processed_file
        ),
        processed_files,
        max_workers=max_workers,
    )
    references = list(itertools.chain.from_iterable(per_file))
    logger.debug(f"Resolved {len(references)} references")
    return references


__all__ = [
    "get_all_references",
    "get_definition_constant_resolver",
    "get_zeitwerk_constant_resolver",
    "process_files_with_cache",
    "references_for_processed_file",
    "references_from_unresolved_reference",
]
