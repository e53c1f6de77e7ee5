from __future__ import annotations

from pathlib import Path

from references.models import ConstantDefinition, ProcessedFile, SourceLocation
from resolve.base import ConstantResolution
from resolve.definitions import DefinitionConstantResolver
from resolve.zeitwerk import ZeitwerkConstantResolver, build_file_map


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    return path


def _processed(path: Path, *names: str) -> ProcessedFile:
    return ProcessedFile(
        absolute_path=path,
        definitions=tuple(
            ConstantDefinition(
                fully_qualified_name=name,
                location=SourceLocation(line=1, column=0),
            )
            for name in names
        ),
    )


def test_file_map_follows_path_convention(tmp_path: Path) -> None:
    models = tmp_path / "app/models"
    _touch(models / "user_profile.rb")
    _touch(models / "api/client.rb")

    file_map = build_file_map({models: ""}, {"api": "API"})

    assert file_map == {
        "::UserProfile": models / "user_profile.rb",
        "::API::Client": models / "api/client.rb",
    }


def test_file_map_applies_root_namespace(tmp_path: Path) -> None:
    lib = tmp_path / "lib"
    _touch(lib / "tools/hammer.rb")

    file_map = build_file_map({lib: "::Toolbox"})

    assert file_map == {"::Toolbox::Tools::Hammer": lib / "tools/hammer.rb"}


def test_nested_autoload_root_owns_its_subtree(tmp_path: Path) -> None:
    models = tmp_path / "app/models"
    concerns = models / "concerns"
    _touch(concerns / "trackable.rb")

    file_map = build_file_map({models: "", concerns: ""})

    assert file_map == {"::Trackable": concerns / "trackable.rb"}


def test_zeitwerk_resolves_innermost_namespace_first(tmp_path: Path) -> None:
    services = tmp_path / "app/services"
    _touch(services / "bar.rb")
    _touch(services / "foo/bar.rb")
    resolver = ZeitwerkConstantResolver({services: ""})

    assert resolver.resolve("Bar", ["Foo"]) == [
        ConstantResolution("::Foo::Bar", services / "foo/bar.rb")
    ]
    assert resolver.resolve("Bar", ["Other"]) == [
        ConstantResolution("::Bar", services / "bar.rb")
    ]


def test_zeitwerk_absolute_name_skips_enclosing_namespaces(tmp_path: Path) -> None:
    services = tmp_path / "app/services"
    _touch(services / "bar.rb")
    _touch(services / "foo/bar.rb")
    resolver = ZeitwerkConstantResolver({services: ""})

    assert resolver.resolve("::Bar", ["Foo"]) == [
        ConstantResolution("::Bar", services / "bar.rb")
    ]


def test_zeitwerk_falls_back_to_parent_constant(tmp_path: Path) -> None:
    services = tmp_path / "app/services"
    _touch(services / "foo.rb")
    resolver = ZeitwerkConstantResolver({services: ""})

    assert resolver.resolve("Foo::Error", []) == [
        ConstantResolution("::Foo::Error", services / "foo.rb")
    ]
    assert resolver.resolve("Foo::Other", []) == [
        ConstantResolution("::Foo::Other", services / "foo.rb")
    ]


def test_parent_fallback_keeps_resolved_namespace(tmp_path: Path) -> None:
    services = tmp_path / "app/services"
    _touch(services / "a/bar.rb")
    resolver = ZeitwerkConstantResolver({services: ""})

    assert resolver.resolve("Bar::Baz", ["A"]) == [
        ConstantResolution("::A::Bar::Baz", services / "a/bar.rb")
    ]
    assert resolver.resolve("Bar::Baz::Qux", ["A"]) == [
        ConstantResolution("::A::Bar::Baz::Qux", services / "a/bar.rb")
    ]


def test_zeitwerk_unresolvable_returns_none(tmp_path: Path) -> None:
    services = tmp_path / "app/services"
    _touch(services / "foo.rb")
    resolver = ZeitwerkConstantResolver({services: ""})

    assert resolver.resolve("Missing", ["Foo"]) is None
    assert resolver.resolve("Missing::Thing", []) is None


def test_definition_resolver_returns_every_defining_file(tmp_path: Path) -> None:
    a = tmp_path / "a.rb"
    b = tmp_path / "b.rb"
    resolver = DefinitionConstantResolver(
        tmp_path,
        [_processed(b, "::Widget"), _processed(a, "::Widget", "::Widget::Part")],
    )

    assert resolver.resolve("Widget", []) == [
        ConstantResolution("::Widget", a),
        ConstantResolution("::Widget", b),
    ]
    assert resolver.resolve("Part", ["Widget"]) == [
        ConstantResolution("::Widget::Part", a)
    ]


def test_definition_resolver_finds_unconventional_definitions(
    tmp_path: Path,
) -> None:
    legacy = tmp_path / "app/models/legacy.rb"
    resolver = DefinitionConstantResolver(tmp_path, [_processed(legacy, "::Alias")])

    assert resolver.resolve("Alias", ["Some", "Place"]) == [
        ConstantResolution("::Alias", legacy)
    ]


def test_definition_resolver_skips_ignored_definitions(tmp_path: Path) -> None:
    a = tmp_path / "packs/a/a.rb"
    b = tmp_path / "packs/b/b.rb"
    resolver = DefinitionConstantResolver(
        tmp_path,
        [_processed(a, "::Widget"), _processed(b, "::Widget")],
        ignored_definitions={"::Widget": ["packs/b/b.rb"]},
    )

    assert resolver.resolve("Widget", []) == [ConstantResolution("::Widget", a)]


def test_definition_resolver_unresolvable_returns_none(tmp_path: Path) -> None:
    resolver = DefinitionConstantResolver(tmp_path, [])

    assert resolver.resolve("Anything", ["Foo"]) is None


def test_definition_resolver_parent_fallback_keeps_referenced_name(
    tmp_path: Path,
) -> None:
    widget = tmp_path / "packs/a/widget.rb"
    resolver = DefinitionConstantResolver(tmp_path, [_processed(widget, "::Widget")])

    assert resolver.resolve("Widget::Error", []) == [
        ConstantResolution("::Widget::Error", widget)
    ]
