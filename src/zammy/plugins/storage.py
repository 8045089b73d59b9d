"""Per-plugin persistent key/value storage.

Each plugin gets one JSON document at ``<data_dir>/data.json``. Every call
re-reads the file and every write rewrites it whole, so two instances pointed
at the same directory always agree. There is no locking: concurrent writers
from the same plugin can lose updates.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

STORAGE_FILENAME = "data.json"


class PluginStorage:
    """Namespaced storage for one plugin."""

    def __init__(self, plugin_name: str, data_dir: str | Path) -> None:
        self.plugin_name = plugin_name
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / STORAGE_FILENAME

    def _load(self) -> dict[str, Any]:
        """Read the store, treating a missing or corrupt file as empty."""
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read storage for plugin '%s': %s", self.plugin_name, e)
            return {}

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Corrupt storage for plugin '%s', ignoring: %s", self.plugin_name, e)
            return {}

        if not isinstance(data, dict):
            logger.warning("Storage for plugin '%s' is not an object, ignoring", self.plugin_name)
            return {}
        return data

    def _save(self, data: dict[str, Any]) -> None:
        try:
            payload = json.dumps(data, indent=2)
        except (TypeError, ValueError) as e:
            logger.error("Plugin '%s' stored a non-JSON value: %s", self.plugin_name, e)
            return

        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            self.path.write_text(payload, encoding="utf-8")
        except OSError as e:
            logger.error("Failed to save storage for plugin '%s': %s", self.plugin_name, e)

    def get(self, key: str, default: Any = None) -> Any:
        return self._load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def delete(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)

    def clear(self) -> None:
        self._save({})

    def get_all(self) -> dict[str, Any]:
        return self._load()


def create_plugin_storage(plugin_name: str, data_dir: str | Path) -> PluginStorage:
    """Create the storage instance for ``plugin_name`` rooted at ``data_dir``."""
    return PluginStorage(plugin_name, data_dir)
