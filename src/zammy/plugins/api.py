"""Capability-scoped API handed to a plugin on activation.

A fresh :class:`PluginAPI` is built for every activation. Command
registration is bound to the manifest's name so one plugin cannot register
commands under another plugin's identity. The ``shell`` capability only
exists on the object when the manifest asks for it.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass, field
from pathlib import Path
from types import SimpleNamespace
from typing import Any

from zammy.commands.registry import Command, CommandRegistry
from zammy.plugins.manifest import PluginManifest
from zammy.plugins.storage import PluginStorage, create_plugin_storage
from zammy.plugins.version import get_host_version
from zammy.ui import colors


@dataclass(frozen=True)
class PluginContext:
    """Static facts about the plugin and host, captured at activation."""

    plugin_name: str
    plugin_version: str
    zammy_version: str
    data_dir: Path
    cwd: Path

    @classmethod
    def for_manifest(
        cls,
        manifest: PluginManifest,
        data_dir: Path,
        zammy_version: str | None = None,
    ) -> PluginContext:
        return cls(
            plugin_name=manifest.name,
            plugin_version=manifest.version,
            zammy_version=zammy_version or get_host_version(),
            data_dir=data_dir,
            cwd=Path.cwd(),
        )


@dataclass(frozen=True)
class PluginUI:
    """Read-only theming helpers."""

    theme: SimpleNamespace = field(default_factory=lambda: colors.theme)
    symbols: SimpleNamespace = field(default_factory=lambda: colors.symbols)

    @staticmethod
    def box(content: str, title: str | None = None, padding: int = 1) -> str:
        return colors.box(content, title=title, padding=padding)

    @staticmethod
    def progress_bar(current: float, total: float, width: int = 30) -> str:
        return colors.progress_bar(current, total, width=width)


class PluginLogger(logging.LoggerAdapter):
    """Logger that prefixes every message with the plugin's display name."""

    def __init__(self, manifest: PluginManifest, logger: logging.Logger | None = None) -> None:
        super().__init__(logger or logging.getLogger(f"zammy.plugins.{manifest.name}"), {})
        self.prefix = f"[{manifest.label}]"

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> tuple[Any, MutableMapping[str, Any]]:
        return f"{self.prefix} {msg}", kwargs


@dataclass(frozen=True)
class SpawnResult:
    """Output of :meth:`PluginShell.spawn`."""

    stdout: str
    stderr: str
    code: int


class PluginShell:
    """Host shell access for plugins that declare the ``shell`` permission."""

    def __init__(self, cwd: Path | None = None) -> None:
        self.cwd = cwd

    def exec(self, command: str, timeout: float = 30) -> str:
        """Run ``command`` synchronously and return its stdout.

        A non-zero exit still returns whatever was written to stdout.

        Raises:
            subprocess.TimeoutExpired: If the command exceeds ``timeout`` seconds
        """
        result = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=timeout,
            cwd=self.cwd,
        )
        return result.stdout

    async def spawn(self, command: str, args: Iterable[str] | None = None) -> SpawnResult:
        """Run ``command`` with ``args`` asynchronously and collect its output.

        Failure to start the process is reported as exit code 1.
        """
        line = " ".join([command, *(args or [])])
        try:
            process = await asyncio.create_subprocess_shell(
                line,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            return SpawnResult(stdout="", stderr=str(e), code=1)

        return SpawnResult(
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            code=process.returncode or 0,
        )


@dataclass
class PluginAPI:
    """Everything a plugin may touch in the host."""

    manifest: PluginManifest
    context: PluginContext
    ui: PluginUI
    storage: PluginStorage
    log: PluginLogger
    _registry: CommandRegistry = field(repr=False)
    registered_commands: list[str] = field(default_factory=list)

    def register_command(self, command: Command) -> None:
        self._registry.register_plugin_command(command, self.manifest.name)
        self.registered_commands.append(command.name)

    def register_commands(self, commands: Iterable[Command]) -> None:
        for command in commands:
            self.register_command(command)


def create_plugin_api(
    manifest: PluginManifest,
    context: PluginContext,
    registry: CommandRegistry,
    *,
    storage: PluginStorage | None = None,
    logger: logging.Logger | None = None,
) -> PluginAPI:
    """Build the API object for one activation of ``manifest``.

    Args:
        manifest: Manifest of the plugin being activated
        context: Activation context; its ``data_dir`` roots the plugin's storage
        registry: Registry that receives the plugin's commands
        storage: Storage override, mainly for tests
        logger: Logger the plugin's messages are sent to

    Returns:
        A new PluginAPI; ``shell`` is set only when the manifest permits it
    """
    api = PluginAPI(
        manifest=manifest,
        context=context,
        ui=PluginUI(),
        storage=storage or create_plugin_storage(manifest.name, context.data_dir),
        log=PluginLogger(manifest, logger),
        _registry=registry,
    )

    if manifest.permissions.shell:
        api.shell = PluginShell(cwd=context.cwd)  # type: ignore[attr-defined]

    return api
