"""Command registry and dispatch shared by core and plugin commands."""

from zammy.commands.dispatcher import CommandDispatcher
from zammy.commands.registry import (
    Command,
    CommandConflict,
    CommandRegistry,
    CommandSource,
    RegisteredCommand,
)

__all__ = [
    "Command",
    "CommandConflict",
    "CommandDispatcher",
    "CommandRegistry",
    "CommandSource",
    "RegisteredCommand",
]
