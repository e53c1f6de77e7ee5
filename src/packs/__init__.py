"""Pack registry, manifests and violation ledgers."""

from packs.pack import (
    CheckerSetting,
    ManifestError,
    Pack,
    PackManifest,
    load_pack,
)
from packs.pack_set import PackSet
from packs.package_todo import (
    PackageTodo,
    PackageTodoError,
    ViolationGroup,
    ViolationIdentifier,
)

__all__ = [
    "CheckerSetting",
    "ManifestError",
    "Pack",
    "PackManifest",
    "PackSet",
    "PackageTodo",
    "PackageTodoError",
    "ViolationGroup",
    "ViolationIdentifier",
    "load_pack",
]
