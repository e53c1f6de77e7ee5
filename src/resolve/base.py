"""Shared constant-resolution contract and lexical lookup."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from parse.treesitter_ruby import qualify

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path


@dataclass(frozen=True, order=True)
class ConstantResolution:
    """A candidate definition for a referenced constant."""

    fully_qualified_name: str
    absolute_path_of_definition: Path


class ConstantResolver(Protocol):
    """Maps a constant use to its candidate definitions.

    Returns None when the constant cannot be resolved.
    """

    def resolve(
        self, name: str, namespace_path: Sequence[str]
    ) -> list[ConstantResolution] | None: ...


def resolve_lexically(
    name: str,
    namespace_path: Sequence[str],
    lookup: Callable[[str], list[ConstantResolution] | None],
) -> list[ConstantResolution] | None:
    """Search from the innermost namespace outward to the top level.

    ``lookup`` receives ``::``-rooted candidate names. A name written with a
    leading ``::`` is only looked up at the top level. When no level matches a
    compound name, its parent constant is tried (``Foo::Bar::Baz`` falls back
    to ``Foo::Bar``), since it may be defined in the parent's file. A parent
    match keeps the referenced name: ``Foo::Error`` found through ``::Foo``
    resolves to ``::Foo::Error`` in the file defining ``::Foo``.
    """
    if name.startswith("::"):
        namespace_path = ()
        name = name[2:]
    namespace = list(namespace_path)

    candidate = name
    while True:
        for depth in range(len(namespace), -1, -1):
            found = lookup(qualify(namespace[:depth], candidate))
            if found:
                suffix = name[len(candidate) :]
                if not suffix:
                    return found
                return [
                    ConstantResolution(
                        resolution.fully_qualified_name + suffix,
                        resolution.absolute_path_of_definition,
                    )
                    for resolution in found
                ]
        if "::" not in candidate:
            return None
        candidate = candidate.rsplit("::", 1)[0]


__all__ = ["ConstantResolution", "ConstantResolver", "resolve_lexically"]
