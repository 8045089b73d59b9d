"""Plugin manifest and metadata models."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

MANIFEST_FILENAME = "zammy-plugin.json"


class ManifestError(Exception):
    """Plugin manifest could not be read or failed validation."""

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class PluginPermissions(BaseModel):
    """Declared permissions for a plugin.

    Purely declarative: a permission decides whether a capability is handed
    to the plugin, nothing restricts what a granted capability can do.
    ``filesystem``, ``network`` and ``env`` accept either a flag or a list of
    scopes (paths, hosts, variable names).
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    shell: bool = False
    filesystem: bool | list[str] = False
    network: bool | list[str] = False
    env: bool | list[str] = False


class ZammyCompatibility(BaseModel):
    """Range of host versions a plugin supports."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    min_version: str = Field(alias="minVersion", min_length=1)
    max_version: str | None = Field(default=None, alias="maxVersion")


class PluginManifest(BaseModel):
    """Contents of a plugin's ``zammy-plugin.json``."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)
    main: str = Field(min_length=1)
    commands: list[str] = Field(min_length=1)
    zammy: ZammyCompatibility

    display_name: str | None = Field(default=None, alias="displayName")
    description: str | None = None
    author: str | None = None
    license: str | None = None
    homepage: str | None = None
    repository: str | None = None
    permissions: PluginPermissions = Field(default_factory=PluginPermissions)

    @field_validator("name")
    @classmethod
    def _name_is_directory_safe(cls, value: str) -> str:
        if "/" in value or "\\" in value or value in (".", "..") or value.startswith("."):
            raise ValueError("must be usable as a directory name")
        return value

    @field_validator("main")
    @classmethod
    def _main_is_relative(cls, value: str) -> str:
        if Path(value).is_absolute():
            raise ValueError("must be a path relative to the plugin directory")
        return value

    @field_validator("permissions", mode="before")
    @classmethod
    def _permissions_default(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def label(self) -> str:
        """Name shown to users."""
        return self.display_name or self.name

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)


@dataclass
class ManifestValidation:
    """Outcome of :func:`validate_manifest`."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    manifest: PluginManifest | None = None


def _describe_error(error: dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in error.get("loc", ()))
    if error.get("type") == "missing":
        return f'Missing "{loc}" field'
    return f'Invalid "{loc}" field: {error.get("msg", "invalid value")}'


def validate_manifest(data: Any) -> ManifestValidation:
    """Validate raw manifest data.

    Required: ``name``, ``version``, ``main``, a non-empty ``commands`` list
    and ``zammy.minVersion``.
    """
    if not isinstance(data, dict):
        return ManifestValidation(valid=False, errors=["Manifest must be a JSON object"])

    try:
        manifest = PluginManifest.model_validate(data)
    except ValidationError as e:
        return ManifestValidation(
            valid=False,
            errors=[_describe_error(err) for err in e.errors()],
        )

    return ManifestValidation(valid=True, manifest=manifest)


def read_manifest(plugin_dir: Path) -> PluginManifest:
    """Read and validate the manifest in ``plugin_dir``.

    Raises:
        ManifestError: If the file is missing, not JSON, or invalid
    """
    path = plugin_dir / MANIFEST_FILENAME
    if not path.is_file():
        raise ManifestError(f"No {MANIFEST_FILENAME} found in {plugin_dir}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"Failed to read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ManifestError(f"Invalid JSON in {path}: {e}") from e

    result = validate_manifest(data)
    if not result.valid or result.manifest is None:
        raise ManifestError(
            f"Invalid manifest: {', '.join(result.errors)}",
            errors=result.errors,
        )
    return result.manifest


def format_permissions(manifest: PluginManifest) -> list[str]:
    """Describe requested permissions for display before installing."""
    p = manifest.permissions
    lines: list[str] = []

    if p.shell:
        lines.append("shell: Can run system commands")
    for label, value, full in (
        ("filesystem", p.filesystem, "Full file system access"),
        ("network", p.network, "Full network access"),
        ("env", p.env, "Can read all environment variables"),
    ):
        if value is True:
            lines.append(f"{label}: {full}")
        elif isinstance(value, list) and value:
            lines.append(f"{label}: Access to {', '.join(value)}")

    return lines


class PluginState(str, Enum):
    """Lifecycle state of a plugin."""

    DISCOVERED = "discovered"
    LOADED = "loaded"
    ACTIVE = "active"
    ERROR = "error"


class PluginPhase(str, Enum):
    """Lifecycle phase in which a plugin error happened."""

    DISCOVERY = "discovery"
    LOAD = "load"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"
    EXECUTE = "execute"


class PluginError(Exception):
    """Structured failure of a single plugin."""

    def __init__(
        self,
        plugin_name: str,
        error: BaseException | str,
        phase: PluginPhase,
    ) -> None:
        self.plugin_name = plugin_name
        self.error = error
        self.phase = phase
        super().__init__(f"Plugin '{plugin_name}' failed during {phase.value}: {error}")


@dataclass(frozen=True)
class DiscoveredPlugin:
    """A valid manifest found on disk, not yet executed."""

    manifest: PluginManifest
    path: Path

    @property
    def name(self) -> str:
        return self.manifest.name


@dataclass
class LoadedPlugin:
    """A plugin whose entry module has been imported."""

    manifest: PluginManifest
    instance: Any
    path: Path
    state: PluginState = PluginState.LOADED
    error: PluginError | None = None
    commands: list[str] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.manifest.name
