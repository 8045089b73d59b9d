"""Reading and writing ``zammy.yaml``."""

import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from zammy.config.schema import ZammyConfig

DEFAULT_CONFIG_PATH = Path.home() / ".zammy" / "zammy.yaml"

CONFIG_ENV_VAR = "ZAMMY_CONFIG"


class ConfigError(Exception):
    """Configuration loading or validation error."""


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Pick the config file: explicit path, then ``$ZAMMY_CONFIG``, then the default."""
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return Path(path).expanduser()


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    # An empty file means all defaults
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping at the top of {path}")
    return data


def load_config(path: Optional[Union[str, Path]] = None) -> ZammyConfig:
    """Load and validate zammy configuration.

    A missing file is not an error: zammy runs with defaults until the user
    writes a config.

    Args:
        path: Config file. Defaults to ``$ZAMMY_CONFIG`` or ``~/.zammy/zammy.yaml``

    Returns:
        Validated configuration object

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated
    """
    path = resolve_config_path(path)
    if not path.exists():
        return ZammyConfig()

    data = _read_yaml(path)
    try:
        return ZammyConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration validation failed: {e}") from e


def save_config(config: ZammyConfig, path: Optional[Union[str, Path]] = None) -> Path:
    """Write ``config`` as YAML, creating parent directories.

    Returns:
        The path written to
    """
    path = resolve_config_path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
    return path
