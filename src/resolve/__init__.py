"""Constant resolution strategies."""

from resolve.base import ConstantResolution, ConstantResolver, resolve_lexically
from resolve.definitions import DefinitionConstantResolver
from resolve.zeitwerk import ZeitwerkConstantResolver

__all__ = [
    "ConstantResolution",
    "ConstantResolver",
    "DefinitionConstantResolver",
    "ZeitwerkConstantResolver",
    "resolve_lexically",
]
