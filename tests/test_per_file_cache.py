from __future__ import annotations

import threading
from pathlib import Path

import pytest

from cache.per_file import NoopCache, PerFileCache
from parse.treesitter_ruby import ExtractionError, extract_source
from references.models import ProcessedFile


class _CountingExtractor:
    def __init__(self) -> None:
        self.calls: list[Path] = []
        self._lock = threading.Lock()

    def __call__(self, absolute_path: Path, source_bytes: bytes) -> ProcessedFile:
        with self._lock:
            self.calls.append(absolute_path)
        return extract_source(absolute_path, source_bytes)


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def test_cache_hit_skips_extraction(tmp_path: Path) -> None:
    source = _write(tmp_path / "app/foo.rb", "class Foo\n  Bar\nend\n")
    extractor = _CountingExtractor()
    cache = PerFileCache(tmp_path / "cache", extractor=extractor)

    cold = cache.get_or_extract(source)
    warm = cache.get_or_extract(source)

    assert extractor.calls == [source]
    assert warm == cold
    assert [ref.name for ref in warm.unresolved_references] == ["Bar"]


def test_cache_survives_new_instance(tmp_path: Path) -> None:
    source = _write(tmp_path / "app/foo.rb", "class Foo\n  Bar\nend\n")
    PerFileCache(tmp_path / "cache").get_or_extract(source)

    extractor = _CountingExtractor()
    PerFileCache(tmp_path / "cache", extractor=extractor).get_or_extract(source)

    assert extractor.calls == []


def test_changed_contents_are_re_extracted(tmp_path: Path) -> None:
    source = _write(tmp_path / "app/foo.rb", "class Foo\n  Bar\nend\n")
    extractor = _CountingExtractor()
    cache = PerFileCache(tmp_path / "cache", extractor=extractor)

    cache.get_or_extract(source)
    source.write_text("class Foo\n  Baz\nend\n", encoding="utf-8")
    updated = cache.get_or_extract(source)

    assert len(extractor.calls) == 2
    assert [ref.name for ref in updated.unresolved_references] == ["Baz"]


def test_corrupt_entry_is_a_miss(tmp_path: Path) -> None:
    source = _write(tmp_path / "app/foo.rb", "class Foo\nend\n")
    extractor = _CountingExtractor()
    cache = PerFileCache(tmp_path / "cache", extractor=extractor)
    cache.get_or_extract(source)

    cache.entry_path(source).write_bytes(b"{not json")
    processed = cache.get_or_extract(source)

    assert len(extractor.calls) == 2
    assert [d.fully_qualified_name for d in processed.definitions] == ["::Foo"]


def test_entries_are_keyed_per_file(tmp_path: Path) -> None:
    cache = PerFileCache(tmp_path / "cache")
    first = _write(tmp_path / "a.rb", "A\n")
    second = _write(tmp_path / "b.rb", "A\n")

    cache.get_or_extract(first)
    cache.get_or_extract(second)

    assert cache.entry_path(first) != cache.entry_path(second)
    assert sorted(p.name for p in (tmp_path / "cache").iterdir()) == sorted(
        [cache.entry_path(first).name, cache.entry_path(second).name]
    )


def test_extraction_failure_is_raised(tmp_path: Path) -> None:
    cache = PerFileCache(tmp_path / "cache")

    with pytest.raises(ExtractionError):
        cache.get_or_extract(tmp_path / "missing.rb")


def test_noop_cache_always_extracts(tmp_path: Path) -> None:
    source = _write(tmp_path / "foo.rb", "Foo\n")
    extractor = _CountingExtractor()
    cache = NoopCache(extractor=extractor)

    cache.get_or_extract(source)
    cache.get_or_extract(source)

    assert extractor.calls == [source, source]
