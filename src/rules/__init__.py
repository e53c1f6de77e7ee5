"""Configuration loading for packwerk.yml and pack manifests."""

from rules.config import ConfigError, PacksConfig, load_config
from rules.configuration import Configuration, load_configuration

__all__ = [
    "ConfigError",
    "Configuration",
    "PacksConfig",
    "load_config",
    "load_configuration",
]
