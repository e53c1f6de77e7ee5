"""File scanning utilities for pack-aware reference checking."""

from __future__ import annotations

import re
from fnmatch import fnmatch
from typing import TYPE_CHECKING, cast

from gitignore_parser import parse_gitignore  # type: ignore[import-untyped]

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from pathlib import Path

_BRACE_PATTERN = re.compile(r"\{([^{}]*)\}")


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations, which fnmatch and Path.glob lack.

    Examples:
        >>> expand_braces("{bin,tmp}/**/*")
        ['bin/**/*', 'tmp/**/*']
    """
    match = _BRACE_PATTERN.search(pattern)
    if match is None:
        return [pattern]

    expanded: list[str] = []
    for option in match.group(1).split(","):
        replaced = pattern[: match.start()] + option + pattern[match.end() :]
        expanded.extend(expand_braces(replaced))
    return expanded


def _zero_depth_variants(pattern: str) -> set[str]:
    # `**/` may also match zero directories.
    variants = {pattern, pattern.replace("/**/", "/")}
    variants.update(
        variant[3:] for variant in list(variants) if variant.startswith("**/")
    )
    return variants


def matches_any(rel_path: str, patterns: Iterable[str]) -> bool:
    """Check rel_path against glob patterns using fnmatch semantics."""
    for pattern in patterns:
        for expanded in expand_braces(pattern):
            if any(
                fnmatch(rel_path, variant)
                for variant in _zero_depth_variants(expanded)
            ):
                return True
    return False


def _is_within_root(path: Path, root: Path) -> bool:
    """Return True when the resolved path stays within the resolved root."""
    try:
        root_resolved = root.resolve()
        path_resolved = path.resolve()
    except OSError:
        return False

    try:
        path_resolved.relative_to(root_resolved)
    except ValueError:
        return False

    return True


def _build_gitignore_matcher(root: Path) -> Callable[[str], bool] | None:
    gitignore_path = root / ".gitignore"
    if gitignore_path.is_file():
        return cast("Callable[[str], bool]", parse_gitignore(gitignore_path))
    return None


def _should_include_file(
    path: Path,
    directory: Path,
    gitignore_matches: Callable[[str], bool] | None,
    exclude_patterns: list[str],
) -> bool:
    """Check if a file should be included based on all filtering rules."""
    if not path.is_file() or path.is_symlink():
        return False

    if not _is_within_root(path, directory):
        return False

    rel_path_str = path.relative_to(directory).as_posix()

    if gitignore_matches is not None and gitignore_matches(str(path)):
        return False

    return not matches_any(rel_path_str, exclude_patterns)


def find_included_files(
    directory: Path,
    *,
    include_patterns: list[str],
    exclude_patterns: list[str] | None = None,
) -> list[Path]:
    """Find all files under directory matching the include globs.

    Args:
        directory: Absolute root directory to search
        include_patterns: Glob patterns relative to directory (``{a,b}``
            alternation supported)
        exclude_patterns: Optional fnmatch patterns; files matching any
            pattern are excluded

    Returns:
        Paths sorted lexicographically by relative path for deterministic
        ordering. Symlinks, files escaping the root and files ignored by the
        root .gitignore are skipped.
    """
    gitignore_matches = _build_gitignore_matcher(directory)
    excludes = list(exclude_patterns or [])

    matched: set[Path] = set()
    for pattern in include_patterns:
        for expanded in expand_braces(pattern):
            for path in directory.glob(expanded):
                if path in matched:
                    continue
                if _should_include_file(path, directory, gitignore_matches, excludes):
                    matched.add(path)

    return sorted(matched, key=lambda p: p.relative_to(directory).as_posix())


__all__ = ["expand_braces", "find_included_files", "matches_any"]
