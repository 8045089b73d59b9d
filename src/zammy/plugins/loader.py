"""Plugin discovery and loading system.

Discovery reads ``zammy-plugin.json`` from each subdirectory of the plugins
directory without executing any plugin code. Loading imports the entry module
named by the manifest's ``main`` and calls its ``activate(api)`` hook.

Lifecycle per plugin name: discovered -> loaded -> active, with error
reachable from loaded or active. Unload removes the plugin entirely; a new
discovery pass is needed to see it again.
"""

from __future__ import annotations

import asyncio
import importlib.util
import inspect
import logging
import re
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from zammy.commands.registry import Command, CommandRegistry, RegisteredCommand
from zammy.plugins.api import PluginContext, create_plugin_api
from zammy.plugins.manifest import (
    DiscoveredPlugin,
    LoadedPlugin,
    ManifestError,
    PluginError,
    PluginManifest,
    PluginPhase,
    PluginState,
    read_manifest,
)
from zammy.plugins.version import check_version_compatibility, get_host_version

logger = logging.getLogger(__name__)

DEFAULT_PLUGINS_DIR = "~/.zammy/plugins"

_MODULE_PREFIX = "zammy_plugin_"


def _module_name(plugin_name: str) -> str:
    return _MODULE_PREFIX + re.sub(r"\W", "_", plugin_name)


def _drop_modules(module_name: str) -> None:
    """Remove a plugin module and any submodules of a package entry."""
    for key in [k for k in sys.modules if k == module_name or k.startswith(module_name + ".")]:
        del sys.modules[key]


# Left to propagate after the failed load has been recorded
_HOST_INTERRUPTS = (KeyboardInterrupt, asyncio.CancelledError)


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class PluginLoader:
    """Discovers, activates and deactivates plugins from one directory."""

    def __init__(
        self,
        plugins_dir: str | Path,
        registry: CommandRegistry,
        *,
        host_version: str | None = None,
        data_dir: str | Path | None = None,
        blocked: list[str] | None = None,
    ) -> None:
        self.plugins_dir = Path(plugins_dir).expanduser()
        self.registry = registry
        self.host_version = host_version or get_host_version()
        self.data_root = Path(data_dir).expanduser() if data_dir else None
        self.blocked = set(blocked or [])
        self._discovered: dict[str, DiscoveredPlugin] = {}
        self._loaded: dict[str, LoadedPlugin] = {}
        self.discovery_errors: list[PluginError] = []

    def ensure_plugins_dir(self) -> Path:
        self.plugins_dir.mkdir(parents=True, exist_ok=True)
        return self.plugins_dir

    async def discover_plugins(self) -> list[DiscoveredPlugin]:
        """Scan the plugins directory for valid, compatible manifests.

        Invalid or incompatible plugins are skipped and recorded in
        ``discovery_errors``. The previous discovery snapshot is replaced.

        Returns:
            List of discovered plugins
        """
        discovered: dict[str, DiscoveredPlugin] = {}
        errors: list[PluginError] = []
        module_names: dict[str, str] = {}

        if self.plugins_dir.is_dir():
            for subdir in sorted(self.plugins_dir.iterdir()):
                if not subdir.is_dir() or subdir.name.startswith((".", "_")):
                    continue

                plugin = self._read_plugin(subdir, errors)
                if plugin is None:
                    continue

                if plugin.name in self.blocked:
                    logger.info("Plugin '%s' is blocked, skipping", plugin.name)
                    continue

                if plugin.name in discovered:
                    logger.warning(
                        "Plugin '%s' found in both %s and %s, keeping the first",
                        plugin.name,
                        discovered[plugin.name].path,
                        subdir,
                    )
                    continue

                module_name = _module_name(plugin.name)
                other = module_names.get(module_name)
                if other is not None:
                    reason = f"module name '{module_name}' collides with plugin '{other}'"
                    logger.warning("Plugin '%s' skipped: %s", plugin.name, reason)
                    errors.append(PluginError(plugin.name, reason, PluginPhase.DISCOVERY))
                    continue

                module_names[module_name] = plugin.name
                discovered[plugin.name] = plugin

        self._discovered = discovered
        self.discovery_errors = errors
        logger.debug("Discovered %d plugins in %s", len(discovered), self.plugins_dir)
        return list(discovered.values())

    def _read_plugin(self, subdir: Path, errors: list[PluginError]) -> DiscoveredPlugin | None:
        try:
            manifest = read_manifest(subdir)
        except ManifestError as e:
            logger.warning("Skipping plugin in %s: %s", subdir.name, e)
            errors.append(PluginError(subdir.name, e, PluginPhase.DISCOVERY))
            return None

        compatible, reason = check_version_compatibility(manifest, self.host_version)
        if not compatible:
            logger.warning("Plugin '%s' skipped: %s", manifest.name, reason)
            errors.append(PluginError(manifest.name, reason or "incompatible", PluginPhase.DISCOVERY))
            return None

        return DiscoveredPlugin(manifest=manifest, path=subdir.resolve())

    def get_data_dir(self, name: str) -> Path:
        """Directory holding a plugin's storage."""
        if self.data_root is not None:
            return self.data_root / name
        discovered = self._discovered.get(name)
        if discovered is not None:
            return discovered.path
        return self.plugins_dir / name

    async def load_plugin(self, name: str) -> LoadedPlugin:
        """Import and activate a discovered plugin.

        Loading an active plugin returns it unchanged. A plugin whose last
        load failed keeps failing with the same error until it is unloaded.

        Raises:
            PluginError: If the plugin is unknown, cannot be imported, or its
                activate hook fails. Commands registered before the failure
                are rolled back.
        """
        existing = self._loaded.get(name)
        if existing is not None:
            if existing.state is PluginState.ERROR and existing.error is not None:
                raise existing.error
            return existing

        discovered = self._discovered.get(name)
        if discovered is None:
            raise PluginError(name, "plugin not discovered", PluginPhase.LOAD)

        manifest = discovered.manifest
        plugin = LoadedPlugin(manifest=manifest, instance=None, path=discovered.path)

        try:
            plugin.instance = self._import_entry(manifest, discovered.path)
        except BaseException as e:
            failure = self._record_failure(plugin, e, PluginPhase.LOAD)
            if isinstance(e, _HOST_INTERRUPTS):
                raise
            raise failure from e
        plugin.state = PluginState.LOADED

        context = PluginContext.for_manifest(manifest, self.get_data_dir(name), self.host_version)
        api = create_plugin_api(manifest, context, self.registry)
        before = {entry.name: entry for entry in self.registry.get_all_commands()}

        try:
            await _maybe_await(plugin.instance.activate(api))
        except BaseException as e:
            self._rollback(api.registered_commands, before)
            failure = self._record_failure(plugin, e, PluginPhase.ACTIVATE)
            if isinstance(e, _HOST_INTERRUPTS):
                raise
            raise failure from e

        plugin.state = PluginState.ACTIVE
        plugin.commands = list(dict.fromkeys(api.registered_commands))
        self._loaded[name] = plugin
        logger.info("Activated plugin '%s' with %d commands", name, len(plugin.commands))
        return plugin

    def _import_entry(self, manifest: PluginManifest, path: Path) -> Any:
        entry = (path / manifest.main).resolve()
        if not entry.is_file():
            raise FileNotFoundError(f"Plugin entry point not found: {entry}")

        module_name = _module_name(manifest.name)
        if entry.name == "__init__.py":
            spec = importlib.util.spec_from_file_location(
                module_name, entry, submodule_search_locations=[str(entry.parent)]
            )
        else:
            spec = importlib.util.spec_from_file_location(module_name, entry)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create module spec for {entry}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            _drop_modules(module_name)
            raise

        instance = _resolve_instance(module)
        if not callable(getattr(instance, "activate", None)):
            _drop_modules(module_name)
            raise TypeError("Plugin must define an activate(api) function or a 'plugin' object with one")
        return instance

    def _rollback(self, registered: list[str], before: dict[str, RegisteredCommand]) -> None:
        for command_name in dict.fromkeys(registered):
            previous = before.get(command_name)
            if previous is not None:
                self.registry.restore(previous)
            else:
                self.registry.unregister_command(command_name)
        if registered:
            logger.debug("Rolled back %d partial command registrations", len(registered))

    def _record_failure(
        self, plugin: LoadedPlugin, error: BaseException, phase: PluginPhase
    ) -> PluginError:
        plugin.state = PluginState.ERROR
        plugin.error = PluginError(plugin.name, error, phase)
        self._loaded[plugin.name] = plugin
        _drop_modules(_module_name(plugin.name))
        logger.error("Failed to load plugin '%s': %s", plugin.name, error)
        return plugin.error

    async def unload_plugin(self, name: str) -> bool:
        """Deactivate a plugin and remove its commands.

        Unknown or already unloaded names are a no-op.

        Returns:
            True if a plugin was unloaded
        """
        plugin = self._loaded.get(name)
        if plugin is None:
            return False

        if plugin.state is PluginState.ACTIVE:
            deactivate = getattr(plugin.instance, "deactivate", None)
            if callable(deactivate):
                try:
                    await _maybe_await(deactivate())
                except Exception as e:
                    logger.warning("Plugin '%s' failed to deactivate: %s", name, e)

        self.registry.unregister_plugin_commands(name)
        del self._loaded[name]
        _drop_modules(_module_name(name))
        logger.info("Unloaded plugin '%s'", name)
        return True

    async def load_all(self) -> list[PluginError]:
        """Load every discovered plugin, collecting failures instead of raising."""
        failures: list[PluginError] = []
        for name in list(self._discovered):
            try:
                await self.load_plugin(name)
            except PluginError as e:
                failures.append(e)
        return failures

    async def init_plugins(self) -> list[DiscoveredPlugin]:
        """Discover plugins and register lazy commands for them.

        Each declared command that is not already registered gets a stub that
        loads the plugin on first use and then runs the plugin's real command.
        """
        plugins = await self.discover_plugins()
        for plugin in plugins:
            self.register_lazy_commands(plugin.manifest)
        return plugins

    def register_lazy_commands(self, manifest: PluginManifest) -> list[str]:
        """Register on-demand loading stubs for a manifest's declared commands."""
        registered = []
        for command_name in manifest.commands:
            conflict = self.registry.check_command_conflict(command_name)
            if conflict.exists:
                if conflict.plugin_name != manifest.name:
                    logger.warning(
                        "Command '%s' of plugin '%s' is already provided by %s",
                        command_name,
                        manifest.name,
                        conflict.plugin_name or "zammy",
                    )
                continue
            self.registry.register_plugin_command(
                self._lazy_command(manifest, command_name), manifest.name
            )
            registered.append(command_name)
        return registered

    def _lazy_command(self, manifest: PluginManifest, command_name: str) -> Command:
        async def execute(args: list[str]) -> None:
            await self.load_plugin(manifest.name)
            entry = self.registry.get_command(command_name)
            if entry is None or entry.command is stub:
                raise PluginError(
                    manifest.name,
                    f"plugin did not register command '{command_name}'",
                    PluginPhase.EXECUTE,
                )
            await entry.execute(args)

        stub = Command(
            name=command_name,
            description=f"[{manifest.label}] {manifest.description or 'Plugin command'}",
            usage=f"/{command_name}",
            execute=execute,
        )
        return stub

    def is_plugin_loaded(self, name: str) -> bool:
        plugin = self._loaded.get(name)
        return plugin is not None and plugin.state is PluginState.ACTIVE

    def get_plugin_state(self, name: str) -> PluginState | None:
        plugin = self._loaded.get(name)
        if plugin is not None:
            return plugin.state
        if name in self._discovered:
            return PluginState.DISCOVERED
        return None

    def get_loaded_plugins(self) -> list[LoadedPlugin]:
        return list(self._loaded.values())

    def get_discovered_plugins(self) -> list[DiscoveredPlugin]:
        return list(self._discovered.values())

    def get_discovered_plugin(self, name: str) -> DiscoveredPlugin | None:
        return self._discovered.get(name)

    def get_plugin_path(self, name: str) -> Path | None:
        discovered = self._discovered.get(name)
        return discovered.path if discovered else None


def _resolve_instance(module: ModuleType) -> Any:
    """Find the object implementing activate/deactivate in an entry module."""
    instance = getattr(module, "plugin", None)
    if instance is not None:
        return instance() if inspect.isclass(instance) else instance
    return module
