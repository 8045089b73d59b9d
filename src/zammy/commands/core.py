"""Built-in commands: help, plugin and exit."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.markup import escape

from zammy.commands.registry import Command, CommandSource
from zammy.ui.colors import accent, dim, error, gradient, symbols

if TYPE_CHECKING:
    from zammy.host import ZammyHost


def _help_command(host: ZammyHost) -> Command:
    async def execute(args: list[str]) -> None:
        console = host.console
        if args:
            entry = host.registry.get_command(args[0].lstrip("/"))
            if entry is None:
                console.print(error(f"  {symbols.cross} Unknown command: {args[0]}"))
                return
            console.print(f"  {accent('/' + entry.name)}  {escape(entry.description)}")
            console.print(dim(f"  Usage: {entry.usage}"))
            return

        console.print()
        console.print(f"  {symbols.star} {gradient('COMMANDS')}")
        console.print()
        for entry in sorted(host.registry.get_all_commands(), key=lambda e: e.name):
            tag = dim(f" ({entry.plugin_name})") if entry.source is CommandSource.PLUGIN else ""
            console.print(f"    {accent(('/' + entry.name).ljust(14))}{escape(entry.description)}{tag}")
        console.print()

    return Command(
        name="help",
        description="Show available commands",
        usage="/help [command]",
        execute=execute,
    )


def _plugin_command(host: ZammyHost) -> Command:
    async def execute(args: list[str]) -> None:
        from zammy.cli import plugin_cmd

        sub = args[0].lower() if args else "help"
        rest = args[1:]
        flags = {"-y", "--yes"}
        yes = any(a in flags for a in rest)
        rest = [a for a in rest if a not in flags]

        if sub == "help":
            plugin_cmd.print_plugin_help(host)
        elif sub in ("list", "ls"):
            await plugin_cmd.list_plugins(host)
        elif sub in ("create", "new", "init"):
            plugin_cmd.create_plugin(host, rest[0] if rest else None)
        elif sub in ("install", "i", "add", "remove", "rm", "uninstall", "info", "load", "unload"):
            if not rest:
                host.console.print(error(f"  {symbols.cross} Missing argument for '{sub}'"))
                plugin_cmd.print_plugin_help(host)
            elif sub in ("install", "i", "add"):
                await plugin_cmd.install_plugin(host, rest[0], yes=yes)
            elif sub in ("remove", "rm", "uninstall"):
                await plugin_cmd.remove_plugin(host, rest[0], yes=yes)
            elif sub == "info":
                await plugin_cmd.info_plugin(host, rest[0])
            elif sub == "load":
                await plugin_cmd.load_plugin(host, rest[0])
            else:
                await plugin_cmd.unload_plugin(host, rest[0])
        else:
            host.console.print(error(f"  {symbols.cross} Unknown subcommand: {sub}"))
            host.console.print(dim("  Use '/plugin help' to see available commands"))

    return Command(
        name="plugin",
        description="Manage zammy plugins",
        usage="/plugin <list|info|install|remove|load|unload|create> [args]",
        execute=execute,
    )


def _exit_command(host: ZammyHost) -> Command:
    async def execute(args: list[str]) -> None:
        host.running = False

    return Command(
        name="exit",
        description="Leave the zammy shell",
        usage="/exit",
        execute=execute,
    )


def register_core_commands(host: ZammyHost) -> None:
    """Register the built-in commands on the host's registry."""
    for factory in (_help_command, _plugin_command, _exit_command):
        host.registry.register_command(factory(host))
