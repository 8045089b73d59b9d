"""Command registration and lookup.

The registry is the single source of truth for which commands exist. Core
commands and plugin commands share one namespace; a later registration under
an existing name replaces the earlier one. Conflict detection is advisory.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

# Command execution signature: async function taking the argument list
CommandFunction = Callable[[list[str]], Awaitable[None]]


@dataclass(frozen=True)
class Command:
    """A named operation the shell can run."""

    name: str
    description: str
    usage: str
    execute: CommandFunction


class CommandSource(str, Enum):
    """Who owns a registered command."""

    CORE = "core"
    PLUGIN = "plugin"


@dataclass(frozen=True)
class RegisteredCommand:
    """A command together with its ownership tag."""

    command: Command
    source: CommandSource
    plugin_name: str | None = None

    @property
    def name(self) -> str:
        return self.command.name

    @property
    def description(self) -> str:
        return self.command.description

    @property
    def usage(self) -> str:
        return self.command.usage

    async def execute(self, args: list[str]) -> None:
        """Run the wrapped command."""
        await self.command.execute(args)


@dataclass(frozen=True)
class CommandConflict:
    """Result of an advisory conflict check."""

    exists: bool
    source: CommandSource | None = None
    plugin_name: str | None = None


class CommandRegistry:
    """Map of command name to registered descriptor."""

    def __init__(self) -> None:
        self._commands: dict[str, RegisteredCommand] = {}

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return name in self._commands

    def register_command(self, command: Command) -> None:
        """Register a core command, replacing any existing entry."""
        self._set(RegisteredCommand(command=command, source=CommandSource.CORE))

    def register_plugin_command(self, command: Command, plugin_name: str) -> None:
        """Register a command owned by a plugin, replacing any existing entry."""
        self._set(
            RegisteredCommand(
                command=command,
                source=CommandSource.PLUGIN,
                plugin_name=plugin_name,
            )
        )

    def _set(self, entry: RegisteredCommand) -> None:
        previous = self._commands.get(entry.name)
        if previous is not None and previous.plugin_name != entry.plugin_name:
            logger.debug(
                "Command '%s' (%s) replaced by %s",
                entry.name,
                previous.plugin_name or previous.source.value,
                entry.plugin_name or entry.source.value,
            )
        self._commands[entry.name] = entry

    def unregister_plugin_commands(self, plugin_name: str) -> list[str]:
        """Remove every command owned by ``plugin_name``.

        Core commands and commands owned by other plugins are left alone.

        Returns:
            Names of the removed commands
        """
        removed = [
            name
            for name, entry in self._commands.items()
            if entry.source is CommandSource.PLUGIN and entry.plugin_name == plugin_name
        ]
        for name in removed:
            del self._commands[name]
        if removed:
            logger.debug("Unregistered %d commands of plugin '%s'", len(removed), plugin_name)
        return removed

    def unregister_command(self, name: str) -> bool:
        """Remove a single command regardless of owner."""
        return self._commands.pop(name, None) is not None

    def restore(self, entry: RegisteredCommand) -> None:
        """Put back a descriptor captured earlier with :meth:`get_command`."""
        self._commands[entry.name] = entry

    def get_command(self, name: str) -> RegisteredCommand | None:
        return self._commands.get(name)

    def get_all_commands(self) -> list[RegisteredCommand]:
        return list(self._commands.values())

    def get_core_commands(self) -> list[RegisteredCommand]:
        return [e for e in self._commands.values() if e.source is CommandSource.CORE]

    def get_plugin_commands(self, plugin_name: str | None = None) -> list[RegisteredCommand]:
        """Get plugin-owned commands, optionally only those of one plugin."""
        return [
            e
            for e in self._commands.values()
            if e.source is CommandSource.PLUGIN
            and (plugin_name is None or e.plugin_name == plugin_name)
        ]

    def get_plugin_for_command(self, name: str) -> str | None:
        entry = self._commands.get(name)
        if entry is None or entry.source is not CommandSource.PLUGIN:
            return None
        return entry.plugin_name

    def has_command(self, name: str) -> bool:
        return name in self._commands

    def check_command_conflict(self, name: str) -> CommandConflict:
        """Report who currently owns ``name``, if anyone."""
        entry = self._commands.get(name)
        if entry is None:
            return CommandConflict(exists=False)
        return CommandConflict(exists=True, source=entry.source, plugin_name=entry.plugin_name)
