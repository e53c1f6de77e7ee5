"""Parsing utilities for Ruby sources."""

from parse.inflections import camelize, load_acronyms
from parse.treesitter_ruby import (
    ExtractionError,
    extract_file,
    extract_source,
    qualify,
)

__all__ = [
    "ExtractionError",
    "camelize",
    "extract_file",
    "extract_source",
    "load_acronyms",
    "qualify",
]
