"""File scanning for included source files."""

from scan.files import expand_braces, find_included_files, matches_any

__all__ = ["expand_braces", "find_included_files", "matches_any"]
