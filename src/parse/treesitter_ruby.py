"""Tree-sitter based constant extraction for Ruby files."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from tree_sitter import Language, Node, Parser
from tree_sitter_ruby import language as get_ruby_language

from references.models import (
    ConstantDefinition,
    ProcessedFile,
    SourceLocation,
    UnresolvedReference,
)

if TYPE_CHECKING:
    from pathlib import Path

_LOCAL = threading.local()

_NAMESPACE_NODES = frozenset({"class", "module"})


class ExtractionError(Exception):
    """Raised when a file cannot be read or decoded for extraction."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


def _get_parser() -> Parser:
    """Return this thread's Tree-sitter parser for Ruby."""
    parser: Parser | None = getattr(_LOCAL, "parser", None)
    if parser is None:
        parser = Parser(Language(get_ruby_language()))
        _LOCAL.parser = parser
    return parser


def _decode_node_text(source_bytes: bytes, node: Node) -> str:
    return source_bytes[node.start_byte : node.end_byte].decode("utf8")


def _location(node: Node) -> SourceLocation:
    return SourceLocation(line=node.start_point[0] + 1, column=node.start_point[1])


def _constant_path(source_bytes: bytes, node: Node | None) -> str | None:
    """Render a static constant path, or None when any part is dynamic.

    ``Foo`` -> "Foo", ``Foo::Bar`` -> "Foo::Bar", ``::Foo`` -> "::Foo".
    """
    if node is None:
        return None

    if node.type == "constant":
        return _decode_node_text(source_bytes, node)

    if node.type != "scope_resolution":
        return None

    name_node = node.child_by_field_name("name")
    if name_node is None or name_node.type != "constant":
        return None
    name = _decode_node_text(source_bytes, name_node)

    scope_node = node.child_by_field_name("scope")
    if scope_node is None:
        return f"::{name}"

    scope = _constant_path(source_bytes, scope_node)
    if scope is None:
        return None
    return f"{scope}::{name}"


def qualify(namespace_path: tuple[str, ...] | list[str], name: str) -> str:
    """Join a lexical namespace path and a name into a ``::``-rooted name.

    An entry written with a leading ``::`` restarts from the top level.
    """
    parts: list[str] = []
    for part in [*namespace_path, name]:
        if part.startswith("::"):
            parts = [part[2:]]
        else:
            parts.append(part)
    return "::" + "::".join(part for part in parts if part)


class _Collector:
    def __init__(self, source_bytes: bytes) -> None:
        self.source_bytes = source_bytes
        self.references: list[UnresolvedReference] = []
        self.definitions: list[ConstantDefinition] = []

    def add_reference(self, name: str, namespace: list[str], node: Node) -> None:
        self.references.append(
            UnresolvedReference(
                name=name,
                namespace_path=tuple(namespace),
                location=_location(node),
            )
        )

    def add_definition(self, name: str, namespace: list[str], node: Node) -> None:
        self.definitions.append(
            ConstantDefinition(
                fully_qualified_name=qualify(namespace, name),
                location=_location(node),
            )
        )

    def visit(self, node: Node, namespace: list[str]) -> None:
        if node.type in _NAMESPACE_NODES and self._visit_namespace(node, namespace):
            return

        if node.type == "assignment" and self._visit_assignment(node, namespace):
            return

        if node.type in {"constant", "scope_resolution"}:
            name = _constant_path(self.source_bytes, node)
            if name is not None:
                self.add_reference(name, namespace, node)
                return
            if node.type == "scope_resolution":
                # Dynamic scope (`foo::Bar`): only the scope expression is visited.
                scope_node = node.child_by_field_name("scope")
                if scope_node is not None:
                    self.visit(scope_node, namespace)
                return

        for child in node.children:
            self.visit(child, namespace)

    def _visit_namespace(self, node: Node, namespace: list[str]) -> bool:
        name_node = node.child_by_field_name("name")
        name = _constant_path(self.source_bytes, name_node)
        if name_node is None or name is None:
            return False

        self.add_definition(name, namespace, node)

        superclass_node = node.child_by_field_name("superclass")
        if superclass_node is not None:
            # `class Child < Parent`: Parent is looked up outside Child.
            self.visit(superclass_node, namespace)

        inner = [*namespace, name]
        for child in node.children:
            if child == name_node or child == superclass_node:
                continue
            self.visit(child, inner)
        return True

    def _visit_assignment(self, node: Node, namespace: list[str]) -> bool:
        left = node.child_by_field_name("left")
        name = _constant_path(self.source_bytes, left)
        if left is None or name is None:
            return False

        self.add_definition(name, namespace, left)
        right = node.child_by_field_name("right")
        if right is not None:
            self.visit(right, namespace)
        return True


def extract_source(absolute_path: Path, source_bytes: bytes) -> ProcessedFile:
    """Extract constant references and definitions from Ruby source bytes."""
    try:
        source_bytes.decode("utf8")
    except UnicodeDecodeError as exc:
        raise ExtractionError(absolute_path, f"not valid UTF-8: {exc}") from exc

    tree = _get_parser().parse(source_bytes)
    collector = _Collector(source_bytes)
    collector.visit(tree.root_node, [])

    return ProcessedFile(
        absolute_path=absolute_path,
        unresolved_references=tuple(collector.references),
        definitions=tuple(collector.definitions),
    )


def extract_file(absolute_path: Path) -> ProcessedFile:
    """Read and extract a Ruby file. Read failures raise ExtractionError."""
    try:
        source_bytes = absolute_path.read_bytes()
    except OSError as exc:
        raise ExtractionError(absolute_path, f"cannot be read: {exc}") from exc
    return extract_source(absolute_path, source_bytes)


__all__ = ["ExtractionError", "extract_file", "extract_source", "qualify"]
