"""Path-segment camelization with Rails-style acronyms."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

_ACRONYM_PATTERN = re.compile(r"""\.acronym\(?\s*["']([^"']+)["']""")


def load_acronyms(inflections_path: Path) -> dict[str, str]:
    """Read ``inflect.acronym "API"`` declarations from an inflections file.

    Returns a mapping of lowercase word -> acronym spelling. A missing file
    yields no acronyms.
    """
    if not inflections_path.is_file():
        return {}

    text = inflections_path.read_text(encoding="utf-8")
    return {
        acronym.lower(): acronym for acronym in _ACRONYM_PATTERN.findall(text)
    }


def camelize(segment: str, acronyms: Mapping[str, str] | None = None) -> str:
    """Camelize one underscored path segment.

    Examples:
        >>> camelize("user_profile")
        'UserProfile'
        >>> camelize("api_client", {"api": "API"})
        'APIClient'
    """
    acronyms = acronyms or {}
    return "".join(
        acronyms.get(word) or word[:1].upper() + word[1:]
        for word in segment.split("_")
        if word
    )


__all__ = ["camelize", "load_acronyms"]
