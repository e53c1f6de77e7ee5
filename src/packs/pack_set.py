"""Immutable, indexed registry of packs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

    from packs.pack import Pack


def _pack_order(pack: Pack) -> tuple[int, str]:
    # Longer names first so nested packs shadow their ancestors.
    return (-len(pack.name), pack.name)


@dataclass(frozen=True)
class PackSet:
    """Packs sorted by descending name length then name, plus a name index."""

    packs: tuple[Pack, ...] = ()
    indexed_packs: Mapping[str, Pack] = field(default_factory=dict, repr=False)

    @classmethod
    def build(cls, packs: Iterable[Pack]) -> PackSet:
        """Deduplicate by name (the last occurrence wins) and sort.

        The resulting order depends only on pack names, never on the order
        of ``packs``.
        """
        by_name: dict[str, Pack] = {}
        for pack in packs:
            by_name[pack.name] = pack

        ordered = tuple(sorted(by_name.values(), key=_pack_order))
        return cls(
            packs=ordered,
            indexed_packs={pack.name: pack for pack in ordered},
        )

    def for_file(self, absolute_file_path: Path) -> str | None:
        """Name of the most specific pack whose root contains the file.

        Matching is by whole path components, so ``packs/foo_extra/x.rb`` is
        not owned by ``packs/foo``.
        """
        for pack in self.packs:
            if absolute_file_path.is_relative_to(pack.root):
                return pack.name
        return None

    def for_pack(self, pack_name: str) -> Pack:
        """Look up a pack by name; unknown names are a programming error."""
        try:
            return self.indexed_packs[pack_name]
        except KeyError:
            msg = f"No pack named {pack_name!r} in the pack set"
            raise KeyError(msg) from None

    def names(self) -> list[str]:
        return [pack.name for pack in self.packs]

    def __len__(self) -> int:
        return len(self.packs)


__all__ = ["PackSet"]
