"""Shared fixtures for CLI tests."""

from pathlib import Path

import pytest
import yaml

from zammy.config.schema import PluginsConfig, ZammyConfig
from zammy.host import ZammyHost, create_host


@pytest.fixture
def tmp_config_path(tmp_path: Path, plugins_dir: Path) -> Path:
    """Provide a config file pointing at a temporary plugins directory."""
    path = tmp_path / "zammy.yaml"
    path.write_text(yaml.safe_dump({"plugins": {"plugin_dir": str(plugins_dir)}}))
    return path


@pytest.fixture
def host(plugins_dir: Path, console) -> ZammyHost:
    """Provide a host rooted at a temporary plugins directory."""
    config = ZammyConfig(plugins=PluginsConfig(plugin_dir=str(plugins_dir)))
    return create_host(config, console)
