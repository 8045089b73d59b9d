"""Plugin management commands shared by the shell and the Typer CLI."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.prompt import Confirm, Prompt
from rich.table import Table

from zammy.plugins.fetcher import SourceType
from zammy.plugins.installer import ConflictReport, detect_source_type
from zammy.plugins.manifest import PluginError, PluginState, format_permissions
from zammy.plugins.scaffold import (
    create_plugin_scaffold,
    normalize_plugin_name,
    suggest_command_name,
    suggest_display_name,
)
from zammy.ui.colors import accent, dim, error, gradient, primary, success, symbols, warning

if TYPE_CHECKING:
    from zammy.host import ZammyHost

PLUGIN_HELP = [
    ("list", "Show installed plugins"),
    ("info <name>", "Show details about a plugin"),
    ("install <source>", "Install a plugin"),
    ("remove <name>", "Remove a plugin"),
    ("load <name>", "Activate a plugin now"),
    ("unload <name>", "Deactivate a plugin"),
    ("create [name]", "Create a new plugin"),
]

SOURCE_HELP = [
    ("./path/to/plugin", "Local directory"),
    ("package-name", "Package index"),
    ("github:user/repo", "GitHub repository"),
    ("https://...git", "Git URL"),
]


def print_plugin_help(host: ZammyHost) -> None:
    console = host.console
    console.print()
    console.print(f"  {symbols.gear} {gradient('PLUGIN MANAGER')}")
    console.print()
    console.print(f"  {primary('Usage:')} {escape('/plugin <command> [args]')}")
    console.print()
    console.print(f"  {primary('Commands:')}")
    for usage, text in PLUGIN_HELP:
        console.print(f"    {accent(usage.ljust(18))}{dim(text)}")
    console.print()
    console.print(f"  {primary('Install sources:')}")
    for source, text in SOURCE_HELP:
        console.print(f"    {dim(source.ljust(20))}{dim(text)}")
    console.print()


def _status(host: ZammyHost, name: str) -> str:
    state = host.loader.get_plugin_state(name)
    if state is PluginState.ACTIVE:
        return success("active")
    if state is PluginState.ERROR:
        return error("error")
    return dim("idle")


async def list_plugins(host: ZammyHost) -> None:
    """Show every installed plugin with its state."""
    console = host.console
    plugins = await host.loader.discover_plugins()

    if not plugins:
        console.print(f"  {symbols.info} {dim('No plugins installed')}")
        console.print(f"  {dim('Install a plugin with:')} {primary('zammy plugin install <source>')}")
    else:
        table = Table(title=f"Installed Plugins ({len(plugins)})")
        table.add_column("Name", style="cyan")
        table.add_column("Version")
        table.add_column("Status")
        table.add_column("Commands", style="green")
        table.add_column("Permissions")

        for plugin in plugins:
            m = plugin.manifest
            perms = [
                label
                for label, granted in (
                    ("shell", m.permissions.shell),
                    ("fs", m.permissions.filesystem),
                    ("net", m.permissions.network),
                    ("env", m.permissions.env),
                )
                if granted
            ]
            table.add_row(
                escape(m.label),
                escape(m.version),
                _status(host, m.name),
                escape(", ".join(f"/{c}" for c in m.commands)),
                warning(", ".join(perms)) if perms else "-",
            )

        console.print(table)

    for failure in host.loader.discovery_errors:
        console.print(warning(f"  {symbols.warning} {failure.plugin_name}: {failure.error}"))


async def info_plugin(host: ZammyHost, name: str) -> None:
    """Show detailed info about a plugin."""
    console = host.console
    await host.loader.discover_plugins()

    plugin = host.loader.get_discovered_plugin(name)
    if plugin is None:
        console.print(error(f"  {symbols.cross} Plugin '{name}' not found"))
        return

    m = plugin.manifest
    console.print(f"\n  {primary(m.label)} {dim('v' + m.version)}")
    if m.description:
        console.print(f"  {escape(m.description)}")
    if m.author:
        console.print(f"  Author: {escape(m.author)}")
    console.print(f"  Path: {escape(str(plugin.path))}")
    console.print(f"  Status: {_status(host, m.name)}")
    console.print(f"  Commands: {escape(', '.join('/' + c for c in m.commands))}")

    permissions = format_permissions(m)
    console.print(f"  Permissions: {escape(', '.join(permissions)) if permissions else 'none'}")

    state = host.loader.get_plugin_state(name)
    if state is PluginState.ERROR:
        loaded = next(p for p in host.loader.get_loaded_plugins() if p.name == name)
        console.print(error(f"  Error: {loaded.error}"))


def _confirm_conflicts(host: ZammyHost, conflicts: list[ConflictReport]) -> bool:
    host.console.print()
    host.console.print(warning(f"  {symbols.warning} Command conflicts detected:"))
    for conflict in conflicts:
        host.console.print(f"    {dim('-')} {escape(conflict.message)}")
    host.console.print()
    return Confirm.ask("  Continue anyway?", default=False, console=host.console)


async def install_plugin(host: ZammyHost, source: str, yes: bool = False) -> bool:
    """Install a plugin and make its commands available.

    Returns:
        True on success
    """
    console = host.console
    source_type = detect_source_type(source)
    if source_type is SourceType.UNKNOWN:
        console.print(error(f"  {symbols.cross} Could not determine source type for: {source}"))
        return False

    console.print(f"  {symbols.rocket} {primary('Installing plugin...')}")
    console.print(dim(f"  Source type: {source_type.value}"))

    result = host.installer.install(
        source,
        force=yes,
        confirm=lambda conflicts: _confirm_conflicts(host, conflicts),
    )
    if not result.success or result.manifest is None:
        console.print(error(f"  {symbols.cross} Installation failed: {result.error}"))
        return False

    manifest = result.manifest
    permissions = format_permissions(manifest)
    if permissions:
        console.print(warning(f"  {symbols.warning} Plugin requests permissions:"))
        for line in permissions:
            console.print(f"    {escape(line)}")

    # Replaced code only takes effect after a fresh load
    await host.loader.unload_plugin(manifest.name)
    await host.loader.discover_plugins()
    host.loader.register_lazy_commands(manifest)

    console.print(f"  {symbols.check} {success('Plugin installed successfully!')}")
    console.print(f"  {primary(manifest.label)} {dim('v' + manifest.version)}")
    if manifest.description:
        console.print(f"  {dim(manifest.description)}")
    console.print(f"  {dim('Commands added:')} {', '.join(accent('/' + c) for c in manifest.commands)}")
    return True


async def remove_plugin(host: ZammyHost, name: str, yes: bool = False) -> bool:
    """Unload and delete a plugin.

    ``name`` may also be the plugin's display name.
    """
    console = host.console
    plugins = await host.loader.discover_plugins()
    plugin = next(
        (
            p
            for p in plugins
            if p.name == name or (p.manifest.display_name or "").lower() == name.lower()
        ),
        None,
    )

    if plugin is None:
        console.print(error(f"  {symbols.cross} Plugin '{name}' not found"))
        similar = [
            p.name
            for p in plugins
            if name in p.name or p.name in name or name.lower() in p.manifest.label.lower()
        ]
        if similar:
            console.print(f"  {dim('Did you mean:')} {', '.join(accent(s) for s in similar)}")
        return False

    m = plugin.manifest
    console.print(f"  {warning('About to remove:')} {primary(m.label)} {dim('v' + m.version)}")
    console.print(f"    {dim('Commands:')} {escape(', '.join('/' + c for c in m.commands))}")

    if not yes and not Confirm.ask("  Remove this plugin?", default=False, console=console):
        console.print(dim("  Removal cancelled"))
        return False

    await host.loader.unload_plugin(m.name)
    host.registry.unregister_plugin_commands(m.name)

    result = host.installer.remove_plugin(m.name)
    if not result.success:
        console.print(error(f"  {symbols.cross} Failed to remove: {result.error}"))
        return False

    await host.loader.discover_plugins()
    console.print(f"  {symbols.check} {success('Plugin removed successfully')}")
    return True


async def load_plugin(host: ZammyHost, name: str) -> bool:
    console = host.console
    if host.loader.get_discovered_plugin(name) is None:
        await host.loader.discover_plugins()
    try:
        plugin = await host.loader.load_plugin(name)
    except PluginError as e:
        console.print(error(f"  {symbols.cross} {e}"))
        return False
    console.print(f"  {symbols.check} {success(f'Plugin {plugin.manifest.label} is active')}")
    return True


async def unload_plugin(host: ZammyHost, name: str) -> bool:
    console = host.console
    if await host.loader.unload_plugin(name):
        console.print(f"  {symbols.check} {success(f'Plugin {name} unloaded')}")
        return True
    console.print(dim(f"  Plugin '{name}' is not loaded"))
    return False


def create_plugin(host: ZammyHost, name: str | None = None, directory: Path | None = None) -> bool:
    """Interactively scaffold a new plugin in ``directory`` (default: cwd)."""
    console = host.console
    console.print(f"  {symbols.sparkles} {gradient('CREATE NEW PLUGIN')}")

    if not name:
        name = Prompt.ask("Plugin name", default="zammy-plugin-example", console=console)
    name = normalize_plugin_name(name)

    display_name = Prompt.ask("Display name", default=suggest_display_name(name), console=console)
    description = Prompt.ask("Description", default="A zammy plugin", console=console)
    command_name = Prompt.ask(
        "Main command name", default=suggest_command_name(name), console=console
    )

    target = (directory or Path.cwd()) / name
    if target.exists():
        console.print(error(f"  {symbols.cross} Directory already exists: {target}"))
        return False

    try:
        create_plugin_scaffold(target, name, display_name, description, command_name)
    except (OSError, ValueError) as e:
        console.print(error(f"  {symbols.cross} Failed to create plugin: {e}"))
        return False

    console.print(f"  {symbols.check} {success('Plugin created successfully!')}")
    console.print(f"  {primary('Next steps:')}")
    console.print(f"    {dim('1.')} Edit {accent(str(target / 'plugin.py'))}")
    console.print(f"    {dim('2.')} {escape(f'zammy plugin install {target}')}")
    return True
