"""Reference models for unresolved and resolved constant uses."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class SourceLocation(BaseModel):
    """Location of a constant reference (1-based line, 0-based column)."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int


class UnresolvedReference(BaseModel):
    """A constant as written at its use site, with its lexical nesting."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace_path: tuple[str, ...] = Field(default_factory=tuple)
    location: SourceLocation


class ConstantDefinition(BaseModel):
    """A constant explicitly defined by a class, module or assignment."""

    model_config = ConfigDict(frozen=True)

    fully_qualified_name: str
    location: SourceLocation


class ProcessedFile(BaseModel):
    """Everything extraction learned about one source file."""

    model_config = ConfigDict(frozen=True)

    absolute_path: Path
    unresolved_references: tuple[UnresolvedReference, ...] = Field(
        default_factory=tuple
    )
    definitions: tuple[ConstantDefinition, ...] = Field(default_factory=tuple)


class Reference(BaseModel):
    """A fully resolved reference from one pack to a constant."""

    model_config = ConfigDict(frozen=True)

    constant_name: str
    defining_pack_name: str | None
    relative_defining_file: str | None
    referencing_pack_name: str
    relative_referencing_file: str
    source_location: SourceLocation


def reference_sort_key(reference: Reference) -> tuple[str, int, int, str]:
    """Deterministic ordering for references: file, line, column, constant."""
    return (
        reference.relative_referencing_file,
        reference.source_location.line,
        reference.source_location.column,
        reference.constant_name,
    )


__all__ = [
    "ConstantDefinition",
    "ProcessedFile",
    "Reference",
    "SourceLocation",
    "UnresolvedReference",
    "reference_sort_key",
]
