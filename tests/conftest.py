"""Pytest configuration and shared fixtures."""

import json
import logging
import sys
import textwrap
from pathlib import Path
from typing import Any

import pytest
from rich.console import Console

from zammy.commands.registry import CommandRegistry
from zammy.config.schema import ZammyConfig
from zammy.plugins.loader import PluginLoader
from zammy.plugins.manifest import MANIFEST_FILENAME

HOST_VERSION = "1.4.0"

# Registers one echo command per declared name and records every call
ECHO_PLUGIN = """
from zammy.commands.registry import Command

calls = []


def activate(api):
    async def echo(args):
        calls.append(list(args))

    for name in api.manifest.commands:
        api.register_command(Command(name=name, description="Echo", usage="/" + name, execute=echo))
"""


def write_plugin(
    plugins_dir: Path,
    name: str,
    commands: list[str] | None = None,
    code: str = ECHO_PLUGIN,
    dirname: str | None = None,
    **manifest: Any,
) -> Path:
    """Write a plugin directory with a manifest and a ``plugin.py`` entry."""
    plugin_dir = plugins_dir / (dirname or name)
    plugin_dir.mkdir(parents=True, exist_ok=True)
    data = {
        "name": name,
        "version": "1.0.0",
        "main": "plugin.py",
        "commands": commands or [name],
        "zammy": {"minVersion": "1.0.0"},
    }
    data.update(manifest)
    (plugin_dir / MANIFEST_FILENAME).write_text(json.dumps(data), encoding="utf-8")
    (plugin_dir / "plugin.py").write_text(textwrap.dedent(code), encoding="utf-8")
    return plugin_dir


@pytest.fixture(autouse=True)
def _clean_plugin_modules():
    """Drop plugin modules imported by a test."""
    before = set(sys.modules)
    yield
    for module_name in set(sys.modules) - before:
        if module_name.startswith("zammy_plugin_"):
            del sys.modules[module_name]


@pytest.fixture(autouse=True)
def _reset_zammy_logger():
    """Undo CLI logging setup so caplog keeps seeing zammy records."""
    root = logging.getLogger("zammy")
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


@pytest.fixture
def make_plugin():
    """Provide the plugin directory writer."""
    return write_plugin


@pytest.fixture
def default_config() -> ZammyConfig:
    """Provide a default configuration for tests."""
    return ZammyConfig()


@pytest.fixture
def plugins_dir(tmp_path: Path) -> Path:
    path = tmp_path / "plugins"
    path.mkdir()
    return path


@pytest.fixture
def registry() -> CommandRegistry:
    return CommandRegistry()


@pytest.fixture
def loader(plugins_dir: Path, registry: CommandRegistry) -> PluginLoader:
    return PluginLoader(plugins_dir, registry, host_version=HOST_VERSION)


@pytest.fixture
def console() -> Console:
    """Console that records output instead of writing to the terminal."""
    return Console(record=True, width=120, force_terminal=False)
