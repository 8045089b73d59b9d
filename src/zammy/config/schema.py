"""Pydantic models for zammy.yaml configuration."""

from typing import Literal

from pydantic import BaseModel, Field


class PluginsConfig(BaseModel):
    """Plugin system configuration."""

    enabled: bool = Field(default=True, description="Enable the plugin system")
    plugin_dir: str = Field(
        default="~/.zammy/plugins",
        description="Directory holding one subdirectory per installed plugin",
    )
    data_dir: str | None = Field(
        default=None,
        description="Root for per-plugin storage; defaults to each plugin's own directory",
    )
    blocked: list[str] = Field(
        default_factory=list,
        description="Plugin names to skip during discovery",
    )
    load_mode: Literal["lazy", "eager"] = Field(
        default="lazy",
        description="'lazy' activates a plugin on first use of one of its commands, "
        "'eager' activates every plugin at startup",
    )


class InstallerConfig(BaseModel):
    """Plugin installation configuration."""

    registry_url: str = Field(
        default="https://pypi.org/pypi",
        description="PyPI-compatible JSON API used for package installs",
    )
    timeout: int = Field(default=60, description="Download timeout in seconds", ge=1)
    git_timeout: int = Field(default=120, description="git clone timeout in seconds", ge=1)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="WARNING",
        description="Log level for zammy and plugin loggers",
    )
    debug: bool = Field(
        default=False,
        description="Shortcut for level DEBUG (also enabled by ZAMMY_DEBUG=1)",
    )


class ZammyConfig(BaseModel):
    """Root configuration model."""

    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    installer: InstallerConfig = Field(default_factory=InstallerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
