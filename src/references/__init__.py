"""Reference models and resolution entry points."""

from __future__ import annotations

from typing import TYPE_CHECKING

from references.models import (
    ConstantDefinition,
    ProcessedFile,
    Reference,
    SourceLocation,
    UnresolvedReference,
    reference_sort_key,
)

if TYPE_CHECKING:
    from collections.abc import Set
    from pathlib import Path

    from rules.configuration import Configuration


def get_all_references(
    configuration: Configuration,
    absolute_paths: Set[Path],
) -> list[Reference]:
    """Resolve references via lazy import to avoid package import cycles."""
    from references.extractor import get_all_references as _get_all_references

    return _get_all_references(configuration, absolute_paths)


__all__ = [
    "ConstantDefinition",
    "ProcessedFile",
    "Reference",
    "SourceLocation",
    "UnresolvedReference",
    "get_all_references",
    "reference_sort_key",
]
