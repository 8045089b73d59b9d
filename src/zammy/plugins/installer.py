"""Plugin installation and removal.

Installing stages the plugin in a temporary directory, validates it, checks
its commands against the registry, and only then moves it into the plugins
directory. A failed install leaves the plugins directory untouched.

The installer manages files on disk only. Whether a plugin is running is the
loader's concern: callers unload before removing.
"""

from __future__ import annotations

import logging
import re
import shutil
import tempfile
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from zammy.commands.registry import CommandRegistry, CommandSource
from zammy.plugins.fetcher import (
    DefaultPackageFetcher,
    FetchError,
    PackageFetcher,
    SourceType,
)
from zammy.plugins.manifest import ManifestError, PluginManifest, read_manifest
from zammy.plugins.storage import STORAGE_FILENAME
from zammy.plugins.version import check_version_compatibility, get_host_version

logger = logging.getLogger(__name__)

_DRIVE_LETTER = re.compile(r"^[A-Za-z]:[\\/]")
_URL_SCHEME = re.compile(r"^[A-Za-z][\w+.-]*://")
_PACKAGE_NAME = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9._-]*[A-Za-z0-9])?(?:==[\w.+!-]+)?$")


def detect_source_type(source: str) -> SourceType:
    """Classify an install source string.

    - ``./x``, ``../x``, ``/x``, ``~/x`` or ``C:\\x`` is a local path
    - ``github:user/repo`` is a GitHub shorthand
    - a URL, ``git@host:...`` or anything ending in ``.git`` is a git URL
    - a valid package name (optionally ``name==version``) is a registry package
    """
    source = source.strip()
    if not source:
        return SourceType.UNKNOWN

    if (
        source in (".", "..")
        or source.startswith(("./", "../", "/", "~", ".\\", "..\\"))
        or _DRIVE_LETTER.match(source)
    ):
        return SourceType.LOCAL

    if source.startswith("github:"):
        return SourceType.GITHUB

    if source.endswith(".git") or _URL_SCHEME.match(source) or source.startswith("git@"):
        return SourceType.GIT

    if _PACKAGE_NAME.match(source):
        return SourceType.REGISTRY

    return SourceType.UNKNOWN


@dataclass(frozen=True)
class ConflictReport:
    """A declared command name that is already registered."""

    command: str
    source: CommandSource
    plugin_name: str | None = None

    @property
    def message(self) -> str:
        if self.source is CommandSource.CORE:
            return f"Command '/{self.command}' conflicts with core zammy command"
        return f"Command '/{self.command}' conflicts with plugin '{self.plugin_name}'"


@dataclass
class InstallResult:
    """Outcome of an install attempt."""

    success: bool
    error: str | None = None
    manifest: PluginManifest | None = None
    conflicts: list[ConflictReport] = field(default_factory=list)
    path: Path | None = None


@dataclass
class RemoveResult:
    """Outcome of a removal."""

    success: bool
    error: str | None = None


# Called with the detected conflicts; returning True proceeds with the install
ConfirmConflicts = Callable[[list[ConflictReport]], bool]


class PluginInstaller:
    """Installs plugins into, and removes them from, the plugins directory."""

    def __init__(
        self,
        plugins_dir: str | Path,
        registry: CommandRegistry,
        *,
        fetcher: PackageFetcher | None = None,
        host_version: str | None = None,
    ) -> None:
        self.plugins_dir = Path(plugins_dir).expanduser()
        self.registry = registry
        self.fetcher = fetcher or DefaultPackageFetcher()
        self.host_version = host_version or get_host_version()

    def check_conflicts(
        self, commands: Iterable[str], *, plugin_name: str | None = None
    ) -> list[ConflictReport]:
        """Report declared commands that are already registered.

        Commands already owned by ``plugin_name`` itself (a reinstall) are not
        conflicts.
        """
        reports = []
        for command in commands:
            conflict = self.registry.check_command_conflict(command)
            if not conflict.exists or conflict.source is None:
                continue
            if (
                plugin_name is not None
                and conflict.source is CommandSource.PLUGIN
                and conflict.plugin_name == plugin_name
            ):
                continue
            reports.append(
                ConflictReport(command=command, source=conflict.source, plugin_name=conflict.plugin_name)
            )
        return reports

    def install(
        self,
        source: str,
        *,
        force: bool = False,
        confirm: ConfirmConflicts | None = None,
    ) -> InstallResult:
        """Install from any supported source, detecting its type."""
        source_type = detect_source_type(source)
        if source_type is SourceType.UNKNOWN:
            return InstallResult(success=False, error=f"Could not determine source type for: {source}")
        return self._install(source, source_type, force=force, confirm=confirm)

    def install_from_local(
        self, path: str | Path, *, force: bool = False, confirm: ConfirmConflicts | None = None
    ) -> InstallResult:
        return self._install(str(path), SourceType.LOCAL, force=force, confirm=confirm)

    def install_from_registry(
        self, package: str, *, force: bool = False, confirm: ConfirmConflicts | None = None
    ) -> InstallResult:
        return self._install(package, SourceType.REGISTRY, force=force, confirm=confirm)

    def install_from_github(
        self, ref: str, *, force: bool = False, confirm: ConfirmConflicts | None = None
    ) -> InstallResult:
        return self._install(ref, SourceType.GITHUB, force=force, confirm=confirm)

    def install_from_git(
        self, url: str, *, force: bool = False, confirm: ConfirmConflicts | None = None
    ) -> InstallResult:
        return self._install(url, SourceType.GIT, force=force, confirm=confirm)

    def _install(
        self,
        source: str,
        source_type: SourceType,
        *,
        force: bool,
        confirm: ConfirmConflicts | None,
    ) -> InstallResult:
        logger.info("Installing plugin from %s (%s)", source, source_type.value)

        with tempfile.TemporaryDirectory(prefix="zammy-plugin-") as tmp:
            try:
                root = self.fetcher.fetch(source, source_type, Path(tmp))
            except (FetchError, OSError) as e:
                return InstallResult(success=False, error=f"{source_type.value} install failed: {e}")

            try:
                manifest = read_manifest(root)
            except ManifestError as e:
                return InstallResult(success=False, error=str(e))

            compatible, reason = check_version_compatibility(manifest, self.host_version)
            if not compatible:
                return InstallResult(success=False, error=reason, manifest=manifest)

            if not (root / manifest.main).is_file():
                return InstallResult(
                    success=False,
                    error=f"Entry point not found: {manifest.main}",
                    manifest=manifest,
                )

            conflicts = self.check_conflicts(manifest.commands, plugin_name=manifest.name)
            if conflicts and not force and not (confirm is not None and confirm(conflicts)):
                return InstallResult(
                    success=False,
                    error="Command conflicts: " + "; ".join(c.message for c in conflicts),
                    manifest=manifest,
                    conflicts=conflicts,
                )

            try:
                target = self._commit(root, manifest.name)
            except OSError as e:
                return InstallResult(
                    success=False,
                    error=f"Failed to copy plugin files: {e}",
                    manifest=manifest,
                    conflicts=conflicts,
                )

        logger.info("Installed plugin '%s' v%s into %s", manifest.name, manifest.version, target)
        return InstallResult(success=True, manifest=manifest, conflicts=conflicts, path=target)

    def _commit(self, root: Path, name: str) -> Path:
        """Move staged files into ``plugins_dir/name`` with a rename swap."""
        self.plugins_dir.mkdir(parents=True, exist_ok=True)
        target = self.plugins_dir / name
        staging = self.plugins_dir / f".{name}.installing"
        backup = self.plugins_dir / f".{name}.previous"

        for leftover in (staging, backup):
            if leftover.exists():
                shutil.rmtree(leftover)

        try:
            shutil.copytree(root, staging, ignore=shutil.ignore_patterns(".git"))
            old_data = target / STORAGE_FILENAME
            if old_data.is_file() and not (staging / STORAGE_FILENAME).exists():
                shutil.copy2(old_data, staging / STORAGE_FILENAME)
        except OSError:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        if target.exists():
            target.rename(backup)
        try:
            staging.rename(target)
        except OSError:
            if backup.exists():
                backup.rename(target)
            shutil.rmtree(staging, ignore_errors=True)
            raise

        shutil.rmtree(backup, ignore_errors=True)
        return target

    def remove_plugin(self, name: str) -> RemoveResult:
        """Delete an installed plugin's directory.

        Does not unload the plugin or touch the registry.
        """
        if not name or "/" in name or "\\" in name or name.startswith("."):
            return RemoveResult(success=False, error=f"Invalid plugin name: {name!r}")

        plugin_dir = self.plugins_dir / name
        if not plugin_dir.is_dir():
            return RemoveResult(success=False, error=f"Plugin '{name}' not found")

        try:
            shutil.rmtree(plugin_dir)
        except OSError as e:
            return RemoveResult(success=False, error=str(e))

        logger.info("Removed plugin '%s'", name)
        return RemoveResult(success=True)
