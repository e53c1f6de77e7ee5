"""Content-addressed, per-file cache of extraction results.

Each source file owns one entry file, named by the SHA-256 of its absolute
path and holding the SHA-256 of the contents it was extracted from. Entries
are written to a temporary file and atomically renamed into place, so
populating one file's entry never blocks or corrupts another's.
"""

from __future__ import annotations

import contextlib
import hashlib
import logging
import os
import tempfile
from typing import TYPE_CHECKING, Any, Protocol

import orjson
from pydantic import BaseModel, Field, ValidationError

from parse.treesitter_ruby import ExtractionError, extract_source
from references.models import (
    ConstantDefinition,
    ProcessedFile,
    UnresolvedReference,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)

# Bump when the extractor's output for unchanged source changes.
CACHE_VERSION = 1


class Cache(Protocol):
    """Returns a file's extraction result, extracting only when needed."""

    def get_or_extract(self, absolute_path: Path) -> ProcessedFile: ...


class CacheEntry(BaseModel):
    """On-disk cache record for one source file."""

    cache_version: int = Field(default=CACHE_VERSION)
    file_contents_digest: str
    unresolved_references: list[UnresolvedReference] = Field(default_factory=list)
    definitions: list[ConstantDefinition] = Field(default_factory=list)


def _read_source(absolute_path: Path) -> bytes:
    try:
        return absolute_path.read_bytes()
    except OSError as exc:
        raise ExtractionError(absolute_path, f"cannot be read: {exc}") from exc


def content_digest(source_bytes: bytes) -> str:
    return hashlib.sha256(source_bytes).hexdigest()


class NoopCache:
    """Cache that never stores anything; every call extracts."""

    def __init__(
        self,
        extractor: Callable[[Path, bytes], ProcessedFile] = extract_source,
    ) -> None:
        self._extractor = extractor

    def get_or_extract(self, absolute_path: Path) -> ProcessedFile:
        return self._extractor(absolute_path, _read_source(absolute_path))


class PerFileCache:
    """Cache storing one JSON entry per source file under cache_dir."""

    def __init__(
        self,
        cache_dir: Path,
        extractor: Callable[[Path, bytes], ProcessedFile] = extract_source,
    ) -> None:
        self.cache_dir = cache_dir
        self._extractor = extractor

    def entry_path(self, absolute_path: Path) -> Path:
        key = hashlib.sha256(str(absolute_path).encode("utf-8")).hexdigest()
        return self.cache_dir / f"{key}.json"

    def get_or_extract(self, absolute_path: Path) -> ProcessedFile:
        source_bytes = _read_source(absolute_path)
        digest = content_digest(source_bytes)
        entry_path = self.entry_path(absolute_path)

        entry = self._read_entry(entry_path)
        if (
            entry is not None
            and entry.cache_version == CACHE_VERSION
            and entry.file_contents_digest == digest
        ):
            logger.debug(f"Cache hit for {absolute_path}")
            return ProcessedFile(
                absolute_path=absolute_path,
                unresolved_references=tuple(entry.unresolved_references),
                definitions=tuple(entry.definitions),
            )

        logger.debug(f"Cache miss for {absolute_path}")
        processed_file = self._extractor(absolute_path, source_bytes)
        self._write_entry(
            entry_path,
            CacheEntry(
                file_contents_digest=digest,
                unresolved_references=list(processed_file.unresolved_references),
                definitions=list(processed_file.definitions),
            ),
        )
        return processed_file

    def _read_entry(self, entry_path: Path) -> CacheEntry | None:
        try:
            raw = entry_path.read_bytes()
        except FileNotFoundError:
            return None
        try:
            payload: Any = orjson.loads(raw)
            return CacheEntry.model_validate(payload)
        except (orjson.JSONDecodeError, ValidationError):
            logger.debug(f"Ignoring unreadable cache entry {entry_path}")
            return None

    def _write_entry(self, entry_path: Path, entry: CacheEntry) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        payload = orjson.dumps(entry.model_dump(mode="json"))
        fd, temp_name = tempfile.mkstemp(
            dir=self.cache_dir, prefix=".", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(payload)
            os.replace(temp_name, entry_path)
        except BaseException:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(temp_name)
            raise


__all__ = ["CACHE_VERSION", "Cache", "CacheEntry", "NoopCache", "PerFileCache"]
