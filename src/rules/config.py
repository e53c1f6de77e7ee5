from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

CONFIG_FILENAME = "packwerk.yml"

DEFAULT_INCLUDE = ["**/*.rb", "**/*.rake"]
DEFAULT_EXCLUDE = ["{bin,node_modules,script,tmp,vendor}/**/*"]


class PacksConfig(BaseModel):
    """Configuration read from packwerk.yml at the repository root."""

    model_config = ConfigDict(extra="ignore")

    include: list[str] = Field(
        default_factory=lambda: list(DEFAULT_INCLUDE),
        description="Glob patterns for files to check",
    )
    exclude: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDE),
        description="Glob patterns for files to skip",
    )
    package_paths: list[str] = Field(
        default_factory=lambda: ["**/"],
        description="Glob patterns for directories that may hold a package.yml",
    )
    cache: bool = Field(default=True, description="Enable the per-file cache")
    cache_directory: str = Field(
        default="tmp/cache/packwerk",
        description="Cache directory, relative to the root",
    )
    experimental_parser: bool = Field(
        default=False,
        description="Resolve constants from parsed definitions instead of file names",
    )
    autoload_roots: dict[str, str] = Field(
        default_factory=dict,
        description="Extra autoload directories (globs) -> namespace",
    )
    ignored_definitions: dict[str, list[str]] = Field(
        default_factory=dict,
        description="Constant -> files whose definition of it is ignored",
    )
    inflections_file: str = Field(
        default="config/initializers/inflections.rb",
        description="Ruby inflections file declaring acronyms",
    )
    max_workers: int | None = Field(
        default=None,
        gt=0,
        description="Thread pool size (default: Python's choice)",
    )

    @field_validator("include", "exclude", "package_paths", mode="before")
    @classmethod
    def validate_globs(cls, v: Any) -> Any:
        """Accept a single glob string as well as a list of globs."""
        if v is None:
            return []
        if isinstance(v, str):
            return [v]
        return v

    @field_validator("autoload_roots", mode="before")
    @classmethod
    def validate_autoload_roots(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, dict):
            msg = "autoload_roots must be a mapping of directory -> namespace"
            raise ValueError(msg)
        return {path: namespace or "" for path, namespace in v.items()}


class ConfigError(Exception):
    """Raised when configuration or a pack manifest cannot be loaded."""


def resolve_cache_dir(root: Path, cache_directory: str) -> Path:
    """Resolve the configured cache directory, which must stay within root."""
    cache_path = Path(cache_directory)
    if not cache_directory or cache_path.is_absolute():
        msg = "cache_directory must be a non-empty relative path"
        raise ConfigError(msg)

    resolved_root = root.resolve()
    resolved = (resolved_root / cache_path).resolve()
    try:
        resolved.relative_to(resolved_root)
    except ValueError as exc:
        msg = f"cache_directory '{cache_directory}' escapes the repository root"
        raise ConfigError(msg) from exc
    return resolved


def load_config(root: Path) -> PacksConfig:
    """Load configuration from packwerk.yml if it exists."""
    config_path = root / CONFIG_FILENAME

    if not config_path.is_file():
        return PacksConfig()

    try:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        msg = f"Invalid YAML in {config_path}: {e}"
        raise ConfigError(msg) from e

    if data is None:
        data = {}

    try:
        return PacksConfig.model_validate(data)
    except Exception as e:
        msg = f"Invalid config in {config_path}: {e}"
        raise ConfigError(msg) from e
