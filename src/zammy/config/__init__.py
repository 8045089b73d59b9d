"""Configuration loading for zammy."""

from zammy.config.loader import ConfigError, load_config, resolve_config_path, save_config
from zammy.config.schema import InstallerConfig, LoggingConfig, PluginsConfig, ZammyConfig

__all__ = [
    "ConfigError",
    "InstallerConfig",
    "LoggingConfig",
    "PluginsConfig",
    "ZammyConfig",
    "load_config",
    "resolve_config_path",
    "save_config",
]
