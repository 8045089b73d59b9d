"""Wiring of the registry, plugin subsystem and dispatcher into one host."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from rich.console import Console

from zammy.commands.dispatcher import CommandDispatcher
from zammy.commands.registry import CommandRegistry
from zammy.config.schema import ZammyConfig
from zammy.plugins.fetcher import DefaultPackageFetcher
from zammy.plugins.installer import PluginInstaller
from zammy.plugins.loader import PluginLoader
from zammy.plugins.manifest import PluginError

logger = logging.getLogger(__name__)


@dataclass
class ZammyHost:
    """Everything a running zammy session shares.

    Built once at startup and passed to the shell and CLI commands.
    """

    config: ZammyConfig
    registry: CommandRegistry
    loader: PluginLoader
    installer: PluginInstaller
    dispatcher: CommandDispatcher
    console: Console
    running: bool = field(default=True)

    async def start(self) -> list[PluginError]:
        """Register core commands and bring up plugins according to config.

        Returns:
            Plugins that failed to activate (eager mode only)
        """
        from zammy.commands.core import register_core_commands

        register_core_commands(self)

        if not self.config.plugins.enabled:
            return []

        if self.config.plugins.load_mode == "eager":
            await self.loader.discover_plugins()
            failures = await self.loader.load_all()
            for failure in failures:
                logger.warning("%s", failure)
            return failures

        await self.loader.init_plugins()
        return []

    async def shutdown(self) -> None:
        """Unload every plugin, running deactivate hooks."""
        for plugin in self.loader.get_loaded_plugins():
            await self.loader.unload_plugin(plugin.name)


def create_host(config: ZammyConfig | None = None, console: Console | None = None) -> ZammyHost:
    """Build a host from configuration."""
    config = config or ZammyConfig()
    console = console or Console()
    registry = CommandRegistry()

    loader = PluginLoader(
        config.plugins.plugin_dir,
        registry,
        data_dir=config.plugins.data_dir,
        blocked=config.plugins.blocked,
    )
    installer = PluginInstaller(
        config.plugins.plugin_dir,
        registry,
        fetcher=DefaultPackageFetcher(
            registry_url=config.installer.registry_url,
            timeout=config.installer.timeout,
            git_timeout=config.installer.git_timeout,
        ),
    )

    return ZammyHost(
        config=config,
        registry=registry,
        loader=loader,
        installer=installer,
        dispatcher=CommandDispatcher(registry, console),
        console=console,
    )
