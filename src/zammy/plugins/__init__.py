"""Plugin system for zammy.

Plugins are directories holding a ``zammy-plugin.json`` manifest and a Python
entry module whose ``activate(api)`` registers commands through the
capability-scoped API.
"""

from zammy.plugins.api import PluginAPI, PluginContext, create_plugin_api
from zammy.plugins.installer import InstallResult, PluginInstaller, RemoveResult
from zammy.plugins.loader import PluginLoader
from zammy.plugins.manifest import (
    DiscoveredPlugin,
    LoadedPlugin,
    PluginError,
    PluginManifest,
    PluginPermissions,
    PluginPhase,
    PluginState,
)
from zammy.plugins.storage import PluginStorage

__all__ = [
    "DiscoveredPlugin",
    "InstallResult",
    "LoadedPlugin",
    "PluginAPI",
    "PluginContext",
    "PluginError",
    "PluginInstaller",
    "PluginLoader",
    "PluginManifest",
    "PluginPermissions",
    "PluginPhase",
    "PluginState",
    "PluginStorage",
    "RemoveResult",
    "create_plugin_api",
]
