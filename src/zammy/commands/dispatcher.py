"""Runs one command line at a time against the registry."""

from __future__ import annotations

import logging
import shlex

from rich.console import Console

from zammy.commands.registry import CommandRegistry
from zammy.plugins.manifest import PluginError
from zammy.ui.colors import dim, error, symbols

logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Parses command lines and executes the matching registered command.

    Exceptions raised by a command are reported and swallowed here, so a
    failing plugin command never ends the shell session.
    """

    def __init__(self, registry: CommandRegistry, console: Console | None = None) -> None:
        self.registry = registry
        self.console = console or Console()

    @staticmethod
    def parse(line: str) -> tuple[str, list[str]] | None:
        """Split ``/name arg1 "arg 2"`` into ``("name", ["arg1", "arg 2"])``.

        The leading slash is optional. Returns None for blank input.
        """
        line = line.strip()
        if line.startswith("/"):
            line = line[1:]
        if not line:
            return None
        try:
            parts = shlex.split(line)
        except ValueError:
            parts = line.split()
        if not parts:
            return None
        return parts[0], parts[1:]

    async def dispatch(self, line: str) -> bool:
        """Run the command in ``line`` to completion.

        Returns:
            True if a command was found and finished without raising
        """
        parsed = self.parse(line)
        if parsed is None:
            return False
        name, args = parsed

        # Exact name first, then case-insensitive for "/Help"
        entry = self.registry.get_command(name) or self.registry.get_command(name.lower())
        if entry is None:
            self.console.print(error(f"  {symbols.cross} Unknown command: /{name}"))
            self.console.print(dim("  Type /help to see available commands"))
            return False

        try:
            await entry.execute(args)
        except PluginError as e:
            logger.debug("Plugin command '%s' failed", name, exc_info=True)
            self.console.print(error(f"  {symbols.cross} {e}"))
            return False
        except Exception as e:
            owner = f"plugin '{entry.plugin_name}'" if entry.plugin_name else "zammy"
            logger.exception("Command '/%s' from %s raised", name, owner)
            self.console.print(error(f"  {symbols.cross} /{name} failed: {e}"))
            return False

        return True
